from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable
from dataclasses import dataclass, replace
from pathlib import Path, PurePosixPath

import structlog

from frontboost.callbacks.handler import BuildCallbackHandler, CompositeCallbackHandler
from frontboost.core.constants import MIN_SUFFIX, SOURCEMAP_EXT, StyleDialect
from frontboost.core.exceptions import FileSystemError, PipelineError, TransformError
from frontboost.core.types import Asset, BuildOutcome, Segment, StageReport
from frontboost.pipeline.models import (
    AutoprefixStep,
    BannerStep,
    ConcatStep,
    ConvertDialectStep,
    DropEmptyStep,
    EmitStep,
    ForkStep,
    LintStep,
    MinifyStep,
    OptimizeImageStep,
    PipelineDefinition,
    PreprocessStep,
    RenameStep,
    RtlStep,
    Step,
)
from frontboost.tools.base import PassthroughToolchain, Toolchain
from frontboost.tools.sourcemap import build_sourcemap, dumps, sourcemap_comment

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


def collect_sources(definition: PipelineDefinition) -> list[Asset]:
    """Read every file matched by *definition*'s source globs.

    Files are returned in sorted order per glob; a file matched by more than
    one glob is read once. Missing base directories simply match nothing.

    Raises:
        FileSystemError: A matched file could not be read.
    """
    assets: list[Asset] = []
    seen: set[Path] = set()
    for spec in definition.sources:
        base, pattern = spec.base_dir, spec.pattern
        if Path(pattern).is_absolute():
            base = Path(Path(pattern).anchor)
            pattern = str(Path(pattern).relative_to(base))
        if not base.is_dir():
            continue
        for path in sorted(base.glob(pattern)):
            if not path.is_file() or path in seen:
                continue
            if spec.skip_partials and path.name.startswith("_"):
                continue
            seen.add(path)
            try:
                assets.append(Asset.from_file(path, PurePosixPath(path.relative_to(base).as_posix())))
            except OSError as exc:
                raise FileSystemError(f"Cannot read {path}: {exc.strerror or exc}", path) from exc
    return assets


def with_suffix(name: PurePosixPath, suffix: str) -> PurePosixPath:
    """Insert *suffix* before the extension: ``app.css`` + ``.min`` → ``app.min.css``."""
    return name.with_name(f"{name.stem}{suffix}{name.suffix}")


@dataclass
class _RunState:
    """Mutable bookkeeping for one pipeline run."""

    definition: PipelineDefinition
    outcome: BuildOutcome

    @property
    def name(self) -> str:
        return self.definition.name.value


class PipelineRunner:
    """Execute one :class:`PipelineDefinition` against the filesystem.

    Steps run strictly in plan order. Core conversions (preprocessing,
    dialect conversion, reading and writing files) are fatal to the pipeline
    and reported in the returned :class:`BuildOutcome`; lint, autoprefix,
    minify, RTL and image optimisation failures are logged as warnings and
    the best available output is kept.

    Args:
        toolchain: Adapter for the external transforms.
        callbacks: Handlers receiving lifecycle and per-stage telemetry events.
    """

    def __init__(
        self,
        toolchain: Toolchain | None = None,
        callbacks: list[BuildCallbackHandler] | None = None,
    ) -> None:
        self._toolchain = toolchain or PassthroughToolchain()
        self._callbacks = CompositeCallbackHandler(callbacks or [])

    def __repr__(self) -> str:
        return f"PipelineRunner(toolchain={type(self._toolchain).__name__})"

    async def run(self, definition: PipelineDefinition) -> BuildOutcome:
        """Run *definition* and return its outcome; never raises :class:`PipelineError`."""
        start_ms = _now_ms()
        outcome = BuildOutcome(pipeline=definition.name)
        state = _RunState(definition=definition, outcome=outcome)
        log = logger.bind(pipeline=definition.name.value)
        await self._callbacks.on_pipeline_start(definition.name)

        try:
            try:
                assets = await asyncio.to_thread(collect_sources, definition)
            except FileSystemError as exc:
                raise PipelineError(state.name, exc) from exc

            outcome.files_processed = len(assets)
            if not assets:
                log.info("pipeline_empty")
            else:
                log.debug("pipeline_started", files=len(assets))
                await self._apply(definition.steps, assets, state, prefix="")
        except PipelineError as exc:
            outcome.success = False
            outcome.errors.append(str(exc.cause))
            log.error("pipeline_failed", cause=str(exc.cause))
            await self._callbacks.on_error(definition.name, exc)
        except Exception as exc:
            error = PipelineError(state.name, exc)
            outcome.success = False
            outcome.errors.append(f"{type(exc).__name__}: {exc}")
            log.exception("pipeline_crashed", cause=str(exc))
            await self._callbacks.on_error(definition.name, error)

        outcome.latency_ms = _now_ms() - start_ms
        await self._callbacks.on_pipeline_end(outcome)
        return outcome

    # ------------------------------------------------------------------ #
    # Step dispatch
    # ------------------------------------------------------------------ #

    async def _apply(
        self,
        steps: tuple[Step, ...],
        assets: list[Asset],
        state: _RunState,
        prefix: str,
    ) -> list[Asset]:
        for step in steps:
            if not step.enabled:
                continue
            assets = await self._apply_step(step, assets, state)
            await self._callbacks.on_stage(
                StageReport(
                    pipeline=state.definition.name,
                    stage=f"{prefix}/{step.kind}" if prefix else step.kind,
                    files=len(assets),
                    size_bytes=sum(len(a.content) for a in assets),
                )
            )
        return assets

    async def _apply_step(self, step: Step, assets: list[Asset], state: _RunState) -> list[Asset]:
        tc = self._toolchain

        if isinstance(step, LintStep):
            for asset in assets:
                try:
                    issues = await tc.lint(asset)
                except TransformError as exc:
                    issues = [str(exc)]
                for issue in issues:
                    await self._warn(state, f"lint {asset.name}: {issue}")
            return assets

        elif isinstance(step, BannerStep):
            banner = step.text.encode("utf-8")
            return [
                replace(
                    asset,
                    content=banner + asset.content,
                    segments=(
                        ((None, banner.count(b"\n")), *asset.segments)
                        if asset.segments is not None
                        else None
                    ),
                )
                for asset in assets
            ]

        elif isinstance(step, PreprocessStep):
            if step.dialect is StyleDialect.CSS:
                return assets
            result = []
            for asset in assets:
                try:
                    content = await tc.preprocess(asset, step.dialect, step.include_paths)
                except TransformError as exc:
                    raise PipelineError(state.name, exc) from exc
                result.append(asset.transformed(content).renamed(asset.name.with_suffix(".css")))
            return result

        elif isinstance(step, ConvertDialectStep):
            result = []
            for asset in assets:
                try:
                    content = await tc.convert_dialect(asset, step.source, step.target)
                except TransformError as exc:
                    raise PipelineError(state.name, exc) from exc
                result.append(
                    asset.transformed(content).renamed(asset.name.with_suffix(f".{step.target}"))
                )
            return result

        elif isinstance(step, ConcatStep):
            return [self._concat(assets, step.filename)] if assets else []

        elif isinstance(step, AutoprefixStep):
            return [
                await self._best_effort(state, "autoprefix", asset, tc.autoprefix(asset))
                for asset in assets
            ]

        elif isinstance(step, MinifyStep):
            return [
                await self._best_effort(state, "minify", asset, tc.minify(asset, step.language))
                for asset in assets
            ]

        elif isinstance(step, RenameStep):
            return [asset.renamed(with_suffix(asset.name, step.suffix)) for asset in assets]

        elif isinstance(step, RtlStep):
            result = []
            for asset in assets:
                try:
                    result.append(asset.transformed(await tc.mirror_rtl(asset)))
                except TransformError as exc:
                    await self._warn(state, f"rtl {asset.name}: {exc}; RTL variant skipped")
            return result

        elif isinstance(step, OptimizeImageStep):
            return [
                await self._best_effort(state, "optimize_image", asset, tc.optimize_image(asset))
                for asset in assets
            ]

        elif isinstance(step, DropEmptyStep):
            kept = [asset for asset in assets if asset.content.strip()]
            if len(kept) != len(assets):
                logger.debug(
                    "empty_files_dropped",
                    pipeline=state.name,
                    dropped=[str(a.name) for a in assets if a not in kept],
                )
            return kept

        elif isinstance(step, EmitStep):
            for asset in assets:
                await self._emit(asset, step, state)
            return assets

        elif isinstance(step, ForkStep):
            merged: list[Asset] = []
            for branch in step.branches:
                if branch.enabled:
                    merged.extend(await self._apply(branch.steps, list(assets), state, branch.name))
            return merged

        raise PipelineError(state.name, f"unknown step type {type(step).__name__}")

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _warn(self, state: _RunState, message: str) -> None:
        state.outcome.warnings.append(message)
        logger.warning("transform_warning", pipeline=state.name, message=message)
        await self._callbacks.on_warning(state.definition.name, message)

    async def _best_effort(
        self, state: _RunState, transform: str, asset: Asset, pending: Awaitable[bytes]
    ) -> Asset:
        """Await a non-critical transform; on failure keep *asset* unchanged."""
        try:
            return asset.transformed(await pending)
        except TransformError as exc:
            await self._warn(state, f"{transform} {asset.name}: {exc}; keeping untransformed output")
            return asset

    @staticmethod
    def _concat(assets: list[Asset], filename: str) -> Asset:
        segments: tuple[Segment, ...] | None = ()
        for asset in assets:
            if asset.segments is None or segments is None:
                segments = None
            else:
                segments = (*segments, *asset.segments)
        return Asset(
            name=PurePosixPath(filename),
            content=b"\n".join(asset.content for asset in assets),
            sources=tuple(dict.fromkeys(src for asset in assets for src in asset.sources)),
            segments=segments,
        )

    async def _emit(self, asset: Asset, step: EmitStep, state: _RunState) -> None:
        target = step.directory / asset.name
        try:
            size = await asyncio.to_thread(self._write, asset, target, step.sourcemap)
        except OSError as exc:
            raise PipelineError(
                state.name,
                FileSystemError(f"Cannot write {target}: {exc.strerror or exc}", target),
            ) from exc

        outcome = state.outcome
        try:
            artifact = target.relative_to(state.definition.output_dir).as_posix()
        except ValueError:
            artifact = target.as_posix()
        outcome.artifacts.append(artifact)
        outcome.total_bytes += size
        if MIN_SUFFIX in asset.name.suffixes:
            outcome.minified_bytes += size

    @staticmethod
    def _write(asset: Asset, target: Path, sourcemap: bool) -> int:
        target.parent.mkdir(parents=True, exist_ok=True)
        data = asset.content
        if sourcemap:
            map_path = target.with_name(target.name + SOURCEMAP_EXT)
            map_path.write_bytes(dumps(build_sourcemap(asset, target)))
            data = data + sourcemap_comment(map_path.name, target.suffix)
        target.write_bytes(data)
        return len(data)
