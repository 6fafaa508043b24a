"""Pipeline plan models: source specs, step variants and definitions.

A :class:`PipelineDefinition` is an inspectable plan: every conditional
branch the configuration can switch on or off is already decided and
recorded on the step (``enabled``), so the runner never consults the
configuration itself.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Union

from frontboost.core.constants import PipelineName, StyleDialect


@dataclass(frozen=True)
class SourceSpec:
    """A glob evaluated relative to ``base_dir``.

    Matched files keep their path relative to ``base_dir`` as output name.
    Files whose name starts with ``_`` are skipped when ``skip_partials`` is set.
    """

    base_dir: Path
    pattern: str
    skip_partials: bool = False


# --------------------------------------------------------------------------- #
# Step variants
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class LintStep:
    """Report script issues; never changes content."""

    kind: ClassVar[str] = "lint"
    enabled: bool = True


@dataclass(frozen=True)
class BannerStep:
    """Prepend a license banner."""

    kind: ClassVar[str] = "banner"
    text: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class PreprocessStep:
    """Compile a style dialect to CSS (passthrough for plain CSS)."""

    kind: ClassVar[str] = "preprocess"
    dialect: StyleDialect = StyleDialect.CSS
    include_paths: tuple[Path, ...] = ()
    enabled: bool = True


@dataclass(frozen=True)
class ConvertDialectStep:
    """Rewrite sources from one style dialect into another."""

    kind: ClassVar[str] = "convert_dialect"
    source: StyleDialect = StyleDialect.SCSS
    target: StyleDialect = StyleDialect.LESS
    enabled: bool = True


@dataclass(frozen=True)
class ConcatStep:
    """Merge all assets into one file called ``filename``."""

    kind: ClassVar[str] = "concat"
    filename: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class AutoprefixStep:
    kind: ClassVar[str] = "autoprefix"
    enabled: bool = True


@dataclass(frozen=True)
class MinifyStep:
    """Size-reduce scripts or stylesheets (``language`` is ``"js"`` or ``"css"``)."""

    kind: ClassVar[str] = "minify"
    language: str = "js"
    enabled: bool = True


@dataclass(frozen=True)
class RenameStep:
    """Insert ``suffix`` before the file extension (``app.css`` → ``app.min.css``)."""

    kind: ClassVar[str] = "rename"
    suffix: str = ""
    enabled: bool = True


@dataclass(frozen=True)
class RtlStep:
    """Mirror a stylesheet for right-to-left layouts."""

    kind: ClassVar[str] = "rtl"
    enabled: bool = True


@dataclass(frozen=True)
class OptimizeImageStep:
    kind: ClassVar[str] = "optimize_image"
    enabled: bool = True


@dataclass(frozen=True)
class DropEmptyStep:
    """Discard assets whose content is empty or whitespace only."""

    kind: ClassVar[str] = "drop_empty"
    enabled: bool = True


@dataclass(frozen=True)
class EmitStep:
    """Write assets under ``directory``, optionally with sourcemaps."""

    kind: ClassVar[str] = "emit"
    directory: Path = Path(".")
    sourcemap: bool = False
    enabled: bool = True


@dataclass(frozen=True)
class Branch:
    """One arm of a :class:`ForkStep`; receives its own copy of the assets."""

    name: str
    steps: tuple[Step, ...] = ()
    enabled: bool = True


@dataclass(frozen=True)
class ForkStep:
    """Run every enabled branch on the same input, one after the other."""

    kind: ClassVar[str] = "fork"
    branches: tuple[Branch, ...] = ()
    enabled: bool = True


# Union of all step types handled by PipelineRunner
Step = Union[
    LintStep,
    BannerStep,
    PreprocessStep,
    ConvertDialectStep,
    ConcatStep,
    AutoprefixStep,
    MinifyStep,
    RenameStep,
    RtlStep,
    OptimizeImageStep,
    DropEmptyStep,
    EmitStep,
    ForkStep,
]


@dataclass(frozen=True)
class PipelineDefinition:
    """Ordered plan for one asset category.

    Args:
        name: Pipeline identifier.
        sources: Globs selecting the input files.
        steps: Steps applied strictly in order.
        output_dir: Root the pipeline writes under.
    """

    name: PipelineName
    sources: tuple[SourceSpec, ...]
    steps: tuple[Step, ...]
    output_dir: Path

    def active_steps(self) -> list[str]:
        """Kinds of the enabled top-level steps, in execution order."""
        return [step.kind for step in self.steps if step.enabled]
