from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from frontboost.core.config import Configuration
from frontboost.core.constants import AssetDir, PipelineName, StyleDialect


@dataclass(frozen=True)
class BuildPaths:
    """Absolute source and output roots for one project."""

    root: Path
    src: Path
    dist: Path

    @classmethod
    def from_config(cls, config: Configuration, root: Path) -> BuildPaths:
        src = Path(config.src_folder.rstrip("/\\") or ".")
        dist = Path(config.dist_folder.rstrip("/\\") or ".")
        return cls(
            root=root,
            src=src if src.is_absolute() else root / src,
            dist=dist if dist.is_absolute() else root / dist,
        )

    def source(self, folder: AssetDir) -> Path:
        return self.src / folder.value

    def output(self, folder: AssetDir) -> Path:
        return self.dist / folder.value


class DirectorySet(BaseModel):
    """Source sub-directories a configuration requires on disk.

    Script, image and library folders are mandatory; exactly one style
    folder is selected by the configured preprocessor.
    """

    model_config = ConfigDict(frozen=True)

    script: Path
    image: Path
    library: Path
    style: Path
    style_dialect: StyleDialect

    @property
    def paths(self) -> tuple[Path, ...]:
        return (self.script, self.image, self.library, self.style)


# A run of ``lines`` consecutive output lines copied from ``source``
# (``None`` for generated lines such as a banner).
Segment = tuple[Path | None, int]


@dataclass(frozen=True)
class Asset:
    """One in-flight file travelling through a pipeline.

    ``name`` is relative to the pipeline's source base directory and becomes
    the path under the output directory. ``segments`` tracks where each output
    line came from while the content has only been concatenated or prefixed;
    it is ``None`` once an external transform rewrote the content.
    """

    name: PurePosixPath
    content: bytes
    sources: tuple[Path, ...]
    segments: tuple[Segment, ...] | None = None

    @classmethod
    def from_file(cls, path: Path, name: PurePosixPath) -> Asset:
        content = path.read_bytes()
        return cls(
            name=name,
            content=content,
            sources=(path,),
            segments=((path, content.count(b"\n") + 1),),
        )

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def transformed(self, content: bytes) -> Asset:
        """Return a copy carrying content rewritten by an external transform."""
        return replace(self, content=content, segments=None)

    def renamed(self, name: PurePosixPath) -> Asset:
        return replace(self, name=name)


class StageReport(BaseModel):
    """Size/file-count telemetry for one step of one pipeline."""

    pipeline: PipelineName
    stage: str
    files: int
    size_bytes: int


class BuildOutcome(BaseModel):
    """Result of one pipeline run.

    Attributes:
        pipeline: The pipeline that ran.
        success: ``False`` when a core step failed.
        files_processed: Number of source files read.
        artifacts: Output files written, relative to the output root.
        total_bytes: Bytes written across all artifacts (sourcemaps excluded).
        minified_bytes: Bytes written for minified artifacts.
        warnings: Non-fatal transform warnings.
        errors: Fatal errors (at most one per run).
        latency_ms: Wall-clock duration of the run.
    """

    pipeline: PipelineName
    success: bool = True
    files_processed: int = 0
    artifacts: list[str] = Field(default_factory=list)
    total_bytes: int = 0
    minified_bytes: int = 0
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    latency_ms: int = 0

