"""Configuration loading, merging and validation."""
from frontboost.config.defaults import DEFAULT_CONFIG
from frontboost.config.resolver import (
    ConfigDocument,
    deep_merge,
    load_banner,
    load_config_document,
    resolve,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigDocument",
    "deep_merge",
    "load_banner",
    "load_config_document",
    "resolve",
]
