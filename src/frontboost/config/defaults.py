"""Packaged default configuration.

Every project entry is deep-merged over this mapping before validation, so
it must itself satisfy :class:`~frontboost.core.config.Configuration`.
"""
from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "appURL": "http://localhost:8080/",
    "srcFolder": "src",
    "distFolder": "dist",
    "sass": {
        "enabled": False,
        "includePath": "src/scss",
    },
    "less": {
        "enabled": False,
        "includePath": "src/less",
    },
    "jsConcat": {
        "enabled": False,
        "finalName": "app",
    },
    "cssConcat": {
        "enabled": False,
        "finalName": "app",
    },
    "header": {
        "enabled": False,
        "packageJsonPath": "",
    },
    "rtl": {
        "enabled": False,
    },
    "imageOptimization": {
        "enabled": False,
    },
    "browsersync": {
        "enabled": False,
        "port": 3000,
        "uiPort": 3001,
        "weinrePort": 8080,
        "notify": False,
    },
    "themeroller": {
        "enabled": False,
        "finalName": "themeroller",
        "files": [],
    },
}
