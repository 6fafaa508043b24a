from __future__ import annotations

from enum import StrEnum


class PipelineName(StrEnum):
    THEME = "theme"
    SCRIPT = "script"
    STYLE = "style"
    IMAGE = "image"
    LIBRARY = "library"


# Fixed order for a full build.
PIPELINE_ORDER: tuple[PipelineName, ...] = (
    PipelineName.THEME,
    PipelineName.SCRIPT,
    PipelineName.STYLE,
    PipelineName.IMAGE,
    PipelineName.LIBRARY,
)


class StyleDialect(StrEnum):
    SCSS = "scss"
    SASS = "sass"
    LESS = "less"
    CSS = "css"


class AssetDir(StrEnum):
    """Sub-folder names shared by the source and output trees."""

    JS = "js"
    CSS = "css"
    SCSS = "scss"
    SASS = "sass"
    LESS = "less"
    IMG = "img"
    LIB = "lib"


class ReloadKind(StrEnum):
    FULL = "full"
    STYLES = "styles"


MIN_SUFFIX = ".min"
RTL_SUFFIX = ".rtl"
SOURCEMAP_EXT = ".map"
