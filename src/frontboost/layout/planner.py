from __future__ import annotations

from pathlib import Path

import structlog

from frontboost.core.config import Configuration
from frontboost.core.constants import AssetDir, StyleDialect
from frontboost.core.exceptions import FileSystemError
from frontboost.core.types import BuildPaths, DirectorySet

logger = structlog.get_logger(__name__)


def style_dialect(config: Configuration) -> StyleDialect:
    """The style source dialect selected by the configuration."""
    if config.sass.enabled:
        return StyleDialect.SCSS
    if config.less.enabled:
        return StyleDialect.LESS
    return StyleDialect.CSS


def plan(config: Configuration, root: Path) -> DirectorySet:
    """Compute the source directories *config* requires under *root*.

    Script, image and library folders are always required; the style folder
    is ``scss/``, ``less/`` or ``css/`` depending on the preprocessor.
    """
    paths = BuildPaths.from_config(config, root)
    dialect = style_dialect(config)
    return DirectorySet(
        script=paths.source(AssetDir.JS),
        image=paths.source(AssetDir.IMG),
        library=paths.source(AssetDir.LIB),
        style=paths.source(AssetDir(dialect.value)),
        style_dialect=dialect,
    )


def ensure(directory_set: DirectorySet) -> DirectorySet:
    """Create every directory of *directory_set*, ancestors included.

    Existing directories are left untouched, so calling this repeatedly is
    safe.

    Raises:
        FileSystemError: A directory could not be created.
    """
    for directory in directory_set.paths:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FileSystemError(
                f"Cannot create directory {directory}: {exc.strerror or exc}",
                path=directory,
            ) from exc
    logger.debug("layout_ensured", directories=[str(p) for p in directory_set.paths])
    return directory_set
