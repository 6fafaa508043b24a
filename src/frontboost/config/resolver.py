"""Resolve a project's build configuration.

The configuration document is a JSON object mapping project names to
override objects. Each override is deep-merged over the packaged defaults
(optionally layered with a top-level ``"default"`` object), then validated
against :class:`~frontboost.core.config.Configuration`. Nothing here touches
the filesystem except the two explicit loaders.
"""
from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
from pydantic import ValidationError

from frontboost.config.defaults import DEFAULT_CONFIG
from frontboost.core.config import Configuration
from frontboost.core.exceptions import (
    ConfigError,
    ConflictingOptionError,
    FieldViolation,
    MalformedInputError,
    MissingProjectError,
    SchemaViolationError,
)

logger = structlog.get_logger(__name__)

DEFAULT_SECTION = "default"

_BANNER_TEMPLATE = "\n".join(
    [
        "/*!",
        " * {name} - {description}",
        " * @author {author}",
        " * @version v{version}",
        " * @link {homepage}",
        " * @license {license}",
        " */",
        "",
    ]
)


@dataclass(frozen=True)
class ConfigDocument:
    """A parsed configuration file: the default layer plus the project map."""

    defaults: dict[str, Any]
    projects: dict[str, Any]

    @property
    def project_names(self) -> list[str]:
        return sorted(self.projects)


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Merge *override* into a copy of *base*.

    When both sides hold a mapping under the same key the two are merged
    recursively; otherwise the override value (scalar or list) replaces the
    base value. Neither input is modified.
    """
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _violations(project: str, exc: ValidationError) -> list[FieldViolation]:
    violations: list[FieldViolation] = []
    for error in exc.errors():
        path = ".".join([project, *(str(part) for part in error["loc"])])
        message = str(error["msg"]).removeprefix("Value error, ")
        violations.append(FieldViolation(path=path, message=message))
    return violations


def resolve(
    default_config: Mapping[str, Any],
    user_config_map: Any,
    project_name: str,
) -> Configuration:
    """Build the authoritative :class:`Configuration` for *project_name*.

    Args:
        default_config: The default layer every project inherits.
        user_config_map: Mapping of project name to override object.
        project_name: The project to resolve.

    Raises:
        MalformedInputError: *user_config_map* is not a mapping.
        MissingProjectError: *project_name* has no entry.
        SchemaViolationError: The merged entry fails schema validation.
        ConflictingOptionError: Sass and Less are both enabled.
    """
    if not isinstance(user_config_map, Mapping):
        raise MalformedInputError(
            "Your configuration must be an object mapping project names to settings.",
            code="CONFIG_MALFORMED",
        )

    if project_name not in user_config_map:
        raise MissingProjectError(project_name, list(user_config_map))

    entry = user_config_map[project_name]
    if not isinstance(entry, Mapping):
        raise SchemaViolationError(
            project_name,
            [FieldViolation(project_name, "is not of a type(s) object")],
        )

    merged = deep_merge(default_config, entry)
    try:
        config = Configuration.model_validate(merged)
    except ValidationError as exc:
        raise SchemaViolationError(project_name, _violations(project_name, exc)) from exc

    if config.sass.enabled and config.less.enabled:
        raise ConflictingOptionError(project_name, ("sass", "less"))

    logger.debug(
        "config_resolved",
        project=project_name,
        preprocessor=config.preprocessor,
        theming=config.theming_active,
    )
    return config


def load_config_document(path: Path | str) -> ConfigDocument:
    """Read and parse a JSON configuration document.

    Raises:
        ConfigError: The file cannot be read.
        MalformedInputError: The file is not a JSON object, or its
            ``"default"`` entry is not an object.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(
            f"Cannot read configuration file {str(path)!r}: {exc.strerror or exc}",
            code="CONFIG_UNREADABLE",
            details={"path": str(path)},
        ) from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedInputError(
            f"Your configuration file {path.name} is not valid JSON "
            f"(line {exc.lineno}, column {exc.colno}: {exc.msg}).",
            code="CONFIG_MALFORMED",
            details={"path": str(path)},
        ) from exc

    if not isinstance(data, dict):
        raise MalformedInputError(
            f"Your configuration file {path.name} is not a JSON object.",
            code="CONFIG_MALFORMED",
            details={"path": str(path)},
        )

    projects = dict(data)
    default_layer = projects.pop(DEFAULT_SECTION, {})
    if not isinstance(default_layer, dict):
        raise MalformedInputError(
            f"The {DEFAULT_SECTION!r} section of {path.name} must be an object.",
            code="CONFIG_MALFORMED",
        )

    return ConfigDocument(
        defaults=deep_merge(DEFAULT_CONFIG, default_layer),
        projects=projects,
    )


def load_banner(config: Configuration, root: Path) -> str | None:
    """Render the license banner from ``package.json`` when the header is enabled.

    Returns:
        The banner text, or ``None`` when ``header.enabled`` is false.

    Raises:
        ConfigError: ``package.json`` cannot be read.
        MalformedInputError: ``package.json`` is not a JSON object.
    """
    if not config.header.enabled:
        return None

    package_dir = Path(config.header.package_json_path)
    if not package_dir.is_absolute():
        package_dir = root / package_dir
    package_file = package_dir / "package.json"

    try:
        pkg = json.loads(package_file.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(
            f"header.packageJsonPath points to a missing file: {package_file}",
            code="CONFIG_MISSING_PACKAGE",
            details={"path": str(package_file)},
        ) from exc
    except json.JSONDecodeError as exc:
        raise MalformedInputError(
            f"{package_file} is not valid JSON: {exc.msg}",
            code="CONFIG_MALFORMED",
            details={"path": str(package_file)},
        ) from exc

    if not isinstance(pkg, dict):
        raise MalformedInputError(f"{package_file} is not a JSON object.", code="CONFIG_MALFORMED")

    author = pkg.get("author", "")
    if isinstance(author, dict):
        author = author.get("name", "")

    return _BANNER_TEMPLATE.format(
        name=pkg.get("name", ""),
        description=pkg.get("description", ""),
        author=author,
        version=pkg.get("version", ""),
        homepage=pkg.get("homepage", ""),
        license=pkg.get("license", ""),
    )
