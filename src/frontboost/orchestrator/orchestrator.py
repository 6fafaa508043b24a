"""Full builds and watch mode for one resolved project configuration."""
from __future__ import annotations

import asyncio
import shutil
import time
from pathlib import Path

import structlog

from frontboost.callbacks.handler import BuildCallbackHandler
from frontboost.core.config import Configuration
from frontboost.core.constants import PipelineName
from frontboost.core.exceptions import BuildError
from frontboost.core.types import BuildOutcome, BuildPaths, DirectorySet
from frontboost.layout.planner import ensure, plan
from frontboost.livereload.server import LiveReloadServer, LoggingLiveReload, reload_kind
from frontboost.pipeline.models import PipelineDefinition
from frontboost.pipeline.registry import build_pipelines
from frontboost.pipeline.runner import PipelineRunner
from frontboost.tools.base import Toolchain
from frontboost.watcher.sources import EventSource
from frontboost.watcher.watcher import Subscription, WatchBinding, Watcher, watch_bindings

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.monotonic() * 1000)


class Orchestrator:
    """Run the build for one project and keep it up to date.

    A full :meth:`build` cleans the output tree, runs every active pipeline
    (theme, script, style, image, library) and starts the live-reload server
    when it is enabled. :meth:`watch` then reruns single pipelines as their
    sources change, one run at a time per pipeline.

    Args:
        config: The resolved, immutable project configuration.
        root: Directory that relative ``srcFolder``/``distFolder`` resolve against.
        banner: Rendered license banner, or ``None`` when headers are disabled.
        toolchain: Adapter for the external transforms.
        live_reload: Live-reload collaborator; a logging fallback is used
            when ``browsersync`` is enabled and none is given.
        callbacks: Telemetry handlers passed to every pipeline run.
        event_source: Source of file-change events for watch mode.
        parallel: Run the pipelines of a full build concurrently.

    Example::

        orchestrator = Orchestrator(config, root=Path("."))
        outcomes = await orchestrator.build()
        await orchestrator.watch()
    """

    def __init__(
        self,
        config: Configuration,
        *,
        root: Path,
        banner: str | None = None,
        toolchain: Toolchain | None = None,
        live_reload: LiveReloadServer | None = None,
        callbacks: list[BuildCallbackHandler] | None = None,
        event_source: EventSource | None = None,
        parallel: bool = True,
    ) -> None:
        self.config = config
        self.paths = BuildPaths.from_config(config, root)
        self.pipelines: dict[PipelineName, PipelineDefinition] = build_pipelines(
            config, self.paths, banner
        )
        self._runner = PipelineRunner(toolchain=toolchain, callbacks=callbacks)
        self._live_reload: LiveReloadServer | None = None
        if config.browsersync.enabled:
            self._live_reload = live_reload or LoggingLiveReload()
        self._live_reload_started = False
        self._event_source = event_source
        self._parallel = parallel
        self._locks: dict[PipelineName, asyncio.Lock] = {}

    def __repr__(self) -> str:
        return (
            f"Orchestrator(dist={str(self.paths.dist)!r}, "
            f"pipelines={[name.value for name in self.pipelines]})"
        )

    # ------------------------------------------------------------------ #
    # Full build
    # ------------------------------------------------------------------ #

    def scaffold(self) -> DirectorySet:
        """Create the source directories the configuration requires.

        Raises:
            FileSystemError: A directory could not be created.
        """
        return ensure(plan(self.config, self.paths.root))

    async def clean(self) -> None:
        """Delete the whole output tree.

        Raises:
            BuildError: The output directory exists but could not be removed.
        """
        dist = self.paths.dist
        try:
            await asyncio.to_thread(shutil.rmtree, dist)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise BuildError(
                f"Cannot clean output directory {dist}: {exc.strerror or exc}",
                details={"path": str(dist)},
            ) from exc
        logger.info("output_cleaned", directory=str(dist))

    async def build(self) -> list[BuildOutcome]:
        """Clean, run every active pipeline and start live reload.

        A failing pipeline never stops its siblings; inspect the returned
        outcomes (in execution order) for per-pipeline errors.

        Raises:
            BuildError: The output directory could not be cleaned.
        """
        start_ms = _now_ms()
        await self.clean()

        if self._parallel:
            outcomes = list(
                await asyncio.gather(*(self.run_pipeline(name) for name in self.pipelines))
            )
        else:
            outcomes = [await self.run_pipeline(name) for name in self.pipelines]

        failed = [outcome.pipeline.value for outcome in outcomes if not outcome.success]
        log = logger.warning if failed else logger.info
        log(
            "build_complete",
            pipelines=len(outcomes),
            failed=failed,
            files=sum(outcome.files_processed for outcome in outcomes),
            latency_ms=_now_ms() - start_ms,
        )

        await self._start_live_reload()
        return outcomes

    async def run_pipeline(self, name: PipelineName) -> BuildOutcome:
        """Run one pipeline, never concurrently with another run of itself.

        Raises:
            KeyError: *name* is not active for this configuration.
        """
        definition = self.pipelines[name]
        lock = self._locks.setdefault(name, asyncio.Lock())
        async with lock:
            outcome = await self._runner.run(definition)
        if outcome.success and self._live_reload_started and self._live_reload is not None:
            await self._live_reload.notify(name, reload_kind(name), outcome.artifacts)
        return outcome

    async def _start_live_reload(self) -> None:
        if self._live_reload is None or self._live_reload_started:
            return
        await self._live_reload.start()
        self._live_reload_started = True

    # ------------------------------------------------------------------ #
    # Watch mode
    # ------------------------------------------------------------------ #

    def watch_bindings(self) -> list[WatchBinding]:
        """Bindings for the pipelines this configuration activates."""
        return [
            binding
            for binding in watch_bindings(self.config, self.paths)
            if binding.pipelines & set(self.pipelines)
        ]

    def start_watching(self) -> Subscription:
        """Subscribe to source changes; returns the cancellation handle."""
        watcher = Watcher(self._rerun, self._event_source)
        return watcher.start(self.watch_bindings())

    async def _rerun(self, name: PipelineName) -> BuildOutcome:
        logger.info("watch_rerun", pipeline=name.value)
        return await self.run_pipeline(name)

    async def watch(self) -> None:
        """Rerun pipelines on source changes until cancelled."""
        subscription = self.start_watching()
        try:
            await subscription.wait()
        finally:
            subscription.cancel()

    async def run(self, watch: bool = True) -> list[BuildOutcome]:
        """Build once, then stay in watch mode when *watch* is true."""
        outcomes = await self.build()
        if watch:
            await self.watch()
        return outcomes

    async def close(self) -> None:
        """Stop the live-reload server if it was started."""
        if self._live_reload is not None and self._live_reload_started:
            await self._live_reload.stop()
            self._live_reload_started = False
