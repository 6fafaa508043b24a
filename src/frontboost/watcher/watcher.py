"""Watch source directories and rerun the pipelines that own changed files.

Every :class:`WatchBinding` is one watched ``(directory, glob)`` pair mapped
to the pipelines it feeds. Reruns go through a :class:`RerunGate` per
pipeline: while a run is in flight further triggers collapse into a single
follow-up run, so one pipeline never runs concurrently with itself.
"""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from dataclasses import dataclass
from fnmatch import fnmatch
from pathlib import Path

import structlog

from frontboost.core.config import Configuration
from frontboost.core.constants import PIPELINE_ORDER, AssetDir, PipelineName
from frontboost.core.types import BuildPaths
from frontboost.watcher.sources import EventSource, FileChange, WatchfilesEventSource

logger = structlog.get_logger(__name__)

Rerun = Callable[[PipelineName], Awaitable[object]]


@dataclass(frozen=True)
class WatchBinding:
    """A watched directory, the file glob inside it, and the pipelines it feeds."""

    base_dir: Path
    pattern: str
    pipelines: frozenset[PipelineName]

    def matches(self, path: Path) -> bool:
        try:
            relative = path.relative_to(self.base_dir)
        except ValueError:
            return False
        return fnmatch(relative.name, self.pattern.rsplit("/", 1)[-1])


def watch_bindings(config: Configuration, paths: BuildPaths) -> list[WatchBinding]:
    """Map the project's source directories to the pipelines they feed.

    Every stylesheet dialect directory is watched regardless of which
    preprocessor is enabled; when theming is active the preprocessor
    directories also trigger the theme pipeline.
    """
    style = frozenset({PipelineName.STYLE})
    themed = style | {PipelineName.THEME} if config.theming_active else style

    return [
        WatchBinding(paths.source(AssetDir.JS), "**/*.js", frozenset({PipelineName.SCRIPT})),
        WatchBinding(paths.source(AssetDir.SCSS), "**/*.scss", themed),
        WatchBinding(paths.source(AssetDir.SASS), "**/*.sass", themed),
        WatchBinding(paths.source(AssetDir.LESS), "**/*.less", themed),
        WatchBinding(paths.source(AssetDir.CSS), "**/*.css", style),
        WatchBinding(paths.source(AssetDir.IMG), "**/*", frozenset({PipelineName.IMAGE})),
        WatchBinding(paths.source(AssetDir.LIB), "**/*", frozenset({PipelineName.LIBRARY})),
    ]


class RerunGate:
    """Serialise reruns of one pipeline and coalesce triggers that arrive mid-run.

    Args:
        pipeline: Name used in log events.
        run: Coroutine factory performing one run.
    """

    def __init__(self, pipeline: PipelineName, run: Callable[[], Awaitable[object]]) -> None:
        self.pipeline = pipeline
        self.runs = 0
        self._run = run
        self._pending = False
        self._task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"RerunGate(pipeline={self.pipeline.value!r}, runs={self.runs})"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        """Request a run; starts one now or queues exactly one follow-up."""
        if self.running:
            self._pending = True
            logger.debug("rerun_coalesced", pipeline=self.pipeline.value)
            return
        self._pending = True
        self._task = asyncio.create_task(self._drain(), name=f"rerun-{self.pipeline.value}")

    async def _drain(self) -> None:
        while self._pending:
            self._pending = False
            self.runs += 1
            try:
                await self._run()
            except Exception:
                logger.exception("rerun_failed", pipeline=self.pipeline.value)

    async def wait_idle(self) -> None:
        task = self._task
        if task is not None and not task.done():
            await asyncio.shield(task)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
        self._pending = False


class Subscription:
    """Handle for an active watch; cancel it to stop watching."""

    def __init__(
        self,
        tasks: list[asyncio.Task[None]],
        gates: dict[PipelineName, RerunGate],
        source: EventSource,
    ) -> None:
        self._tasks = tasks
        self._gates = gates
        self._source = source

    def __repr__(self) -> str:
        return f"Subscription(streams={len(self._tasks)}, active={self.active})"

    @property
    def active(self) -> bool:
        return any(not task.done() for task in self._tasks)

    @property
    def gates(self) -> dict[PipelineName, RerunGate]:
        return dict(self._gates)

    def cancel(self) -> None:
        self._source.close()
        for task in self._tasks:
            task.cancel()
        for gate in self._gates.values():
            gate.cancel()
        logger.info("watch_stopped")

    async def wait(self) -> None:
        """Block until every watched stream has ended or been cancelled."""
        await asyncio.gather(*self._tasks, return_exceptions=True)

    async def idle(self) -> None:
        """Block until no rerun is in flight or queued."""
        for gate in self._gates.values():
            await gate.wait_idle()


class Watcher:
    """Dispatch file changes from an :class:`EventSource` to pipeline reruns.

    Args:
        rerun: Coroutine function running one pipeline by name.
        source: Where change events come from; defaults to the filesystem.
    """

    def __init__(self, rerun: Rerun, source: EventSource | None = None) -> None:
        self._rerun = rerun
        self._source = source or WatchfilesEventSource()

    def __repr__(self) -> str:
        return f"Watcher(source={self._source!r})"

    def start(self, bindings: Iterable[WatchBinding]) -> Subscription:
        """Register every binding and begin dispatching.

        A binding whose directory does not exist yet is watched through its
        parent, so the directory is picked up once it is created. Bindings
        with neither are skipped.
        """
        gates: dict[PipelineName, RerunGate] = {}
        tasks: list[asyncio.Task[None]] = []
        for binding in bindings:
            watched = binding.base_dir
            if not watched.is_dir():
                watched = watched.parent
                if not watched.is_dir():
                    logger.info(
                        "watch_skipped", directory=str(binding.base_dir), pattern=binding.pattern
                    )
                    continue
            for name in binding.pipelines:
                if name not in gates:
                    gates[name] = RerunGate(name, self._runner(name))
            stream = self._source.changes(watched)
            tasks.append(
                asyncio.create_task(
                    self._consume(binding, stream, gates),
                    name=f"watch-{binding.base_dir.name}",
                )
            )
            logger.info(
                "watch_started",
                directory=str(binding.base_dir),
                watched=str(watched),
                pattern=binding.pattern,
                pipelines=sorted(binding.pipelines),
            )
        return Subscription(tasks, gates, self._source)

    def _runner(self, name: PipelineName) -> Callable[[], Awaitable[object]]:
        return lambda: self._rerun(name)

    async def _consume(
        self,
        binding: WatchBinding,
        stream: AsyncIterator[list[FileChange]],
        gates: dict[PipelineName, RerunGate],
    ) -> None:
        async for batch in stream:
            changed = [change for change in batch if binding.matches(change.path)]
            if not changed:
                continue
            logger.info(
                "files_changed",
                directory=str(binding.base_dir),
                files=[str(change.path) for change in changed],
            )
            for name in PIPELINE_ORDER:
                if name in binding.pipelines:
                    gates[name].trigger()
