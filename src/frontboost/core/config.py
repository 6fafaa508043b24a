from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Section(BaseModel):
    """Base for every configuration section: immutable and strictly typed; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True, strict=True)


class PreprocessorSection(_Section):
    enabled: bool
    include_path: str = Field(alias="includePath")


class ConcatSection(_Section):
    enabled: bool
    final_name: str = Field(alias="finalName")

    @model_validator(mode="after")
    def _final_name_when_enabled(self) -> ConcatSection:
        if self.enabled and not self.final_name.strip():
            raise ValueError("finalName is required when concatenation is enabled")
        return self


class HeaderSection(_Section):
    enabled: bool
    package_json_path: str = Field(alias="packageJsonPath")

    @model_validator(mode="after")
    def _package_path_when_enabled(self) -> HeaderSection:
        if self.enabled and not self.package_json_path.strip():
            raise ValueError("packageJsonPath is required when the header is enabled")
        return self


class ToggleSection(_Section):
    enabled: bool


class BrowserSyncSection(_Section):
    enabled: bool
    port: int = Field(ge=1, le=65535)
    ui_port: int = Field(alias="uiPort", ge=1, le=65535)
    weinre_port: int = Field(alias="weinrePort", ge=1, le=65535)
    notify: bool


class ThemeRollerSection(_Section):
    enabled: bool
    final_name: str = Field(alias="finalName")
    # JSON arrays arrive as lists
    files: tuple[str, ...] = Field(strict=False)

    @model_validator(mode="after")
    def _files_when_enabled(self) -> ThemeRollerSection:
        if self.enabled:
            if not self.files:
                raise ValueError("files must list at least one entry when themeroller is enabled")
            if not self.final_name.strip():
                raise ValueError("finalName is required when themeroller is enabled")
        return self


class Configuration(_Section):
    """Resolved, immutable per-project build configuration.

    Constructed once per build invocation by
    :func:`frontboost.config.resolver.resolve` and passed explicitly to every
    component. Field aliases match the keys of the JSON configuration file.
    """

    app_url: str = Field(alias="appURL")
    src_folder: str = Field(alias="srcFolder", min_length=1)
    dist_folder: str = Field(alias="distFolder", min_length=1)
    sass: PreprocessorSection
    less: PreprocessorSection
    js_concat: ConcatSection = Field(alias="jsConcat")
    css_concat: ConcatSection = Field(alias="cssConcat")
    header: HeaderSection
    rtl: ToggleSection
    image_optimization: ToggleSection = Field(alias="imageOptimization")
    browsersync: BrowserSyncSection
    themeroller: ThemeRollerSection

    @model_validator(mode="after")
    def _dist_differs_from_src(self) -> Configuration:
        if _normalize(self.src_folder) == _normalize(self.dist_folder):
            raise ValueError("distFolder must differ from srcFolder")
        return self

    @property
    def preprocessor(self) -> Literal["sass", "less"] | None:
        if self.sass.enabled:
            return "sass"
        if self.less.enabled:
            return "less"
        return None

    @property
    def theming_active(self) -> bool:
        """Theme output needs both the toggle and a preprocessor to convert from."""
        return self.themeroller.enabled and self.preprocessor is not None


def _normalize(folder: str) -> str:
    return os.path.normpath(folder.rstrip("/\\") or ".")


# --------------------------------------------------------------------------- #
# External tool settings
# --------------------------------------------------------------------------- #


class ToolchainSettings(BaseModel):
    """Command lines for the external tools invoked by ``CommandToolchain``.

    Each value is an argv prefix; adapters append their own flags.
    """

    sass: list[str] = Field(default_factory=lambda: ["sass"])
    lessc: list[str] = Field(default_factory=lambda: ["lessc"])
    jshint: list[str] = Field(default_factory=lambda: ["jshint"])
    terser: list[str] = Field(default_factory=lambda: ["terser"])
    postcss: list[str] = Field(default_factory=lambda: ["postcss", "--use", "autoprefixer"])
    cleancss: list[str] = Field(default_factory=lambda: ["cleancss"])
    imagemin: list[str] = Field(default_factory=lambda: ["imagemin"])
    browser_sync: list[str] = Field(default_factory=lambda: ["browser-sync"])
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @classmethod
    def from_env(cls) -> ToolchainSettings:
        """Create :class:`ToolchainSettings` from ``FRONTBOOST_*`` environment variables.

        Reads the following env vars (all optional):

        * ``FRONTBOOST_SASS``, ``FRONTBOOST_LESSC``, ``FRONTBOOST_JSHINT``,
          ``FRONTBOOST_TERSER``, ``FRONTBOOST_POSTCSS``, ``FRONTBOOST_CLEANCSS``,
          ``FRONTBOOST_IMAGEMIN``, ``FRONTBOOST_BROWSER_SYNC`` → command lines
          (split with shell rules)
        * ``FRONTBOOST_LOG_LEVEL`` → ``log_level``

        Any variable that is not set or is empty is left at its default value.
        """
        kwargs: dict[str, Any] = {}
        for name in (
            "sass",
            "lessc",
            "jshint",
            "terser",
            "postcss",
            "cleancss",
            "imagemin",
            "browser_sync",
        ):
            value = os.environ.get(f"FRONTBOOST_{name.upper()}")
            if value:
                kwargs[name] = shlex.split(value)

        log_level = os.environ.get("FRONTBOOST_LOG_LEVEL")
        if log_level:
            kwargs["log_level"] = log_level.upper()

        return cls(**kwargs)


def project_root(root: Path | str | None) -> Path:
    return Path(root).resolve() if root is not None else Path.cwd()
