"""Live-reload collaborators.

A :class:`LiveReloadServer` is a long-lived background listener. Pipelines
only ever notify it; notifications are fire-and-forget and never block a
pipeline run.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

from frontboost.core.config import Configuration, ToolchainSettings
from frontboost.core.constants import PipelineName, ReloadKind

logger = structlog.get_logger(__name__)


def reload_kind(pipeline: PipelineName) -> ReloadKind:
    """Style output is swapped in place; everything else reloads the page."""
    if pipeline in (PipelineName.STYLE, PipelineName.THEME):
        return ReloadKind.STYLES
    return ReloadKind.FULL


class LiveReloadServer(ABC):
    """Interface of the live-reload collaborator the orchestrator drives."""

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def notify(self, pipeline: PipelineName, kind: ReloadKind, files: list[str]) -> None:
        """Tell connected browsers that *pipeline* produced *files*."""

    @abstractmethod
    async def stop(self) -> None: ...


class LoggingLiveReload(LiveReloadServer):
    """Records notifications and logs them; used when no transport is configured."""

    def __init__(self) -> None:
        self.started = False
        self.notifications: list[tuple[PipelineName, ReloadKind, list[str]]] = []

    async def start(self) -> None:
        self.started = True
        logger.info("live_reload_started", transport="log")

    async def notify(self, pipeline: PipelineName, kind: ReloadKind, files: list[str]) -> None:
        self.notifications.append((pipeline, kind, list(files)))
        logger.info("live_reload_notified", pipeline=pipeline, kind=kind, files=len(files))

    async def stop(self) -> None:
        self.started = False


class BrowserSyncServer(LiveReloadServer):
    """Run ``browser-sync`` as a proxy in front of the application.

    The proxy targets ``appURL`` and serves ``distFolder`` statically; reloads
    go through ``browser-sync reload`` on the same port, with ``--files``
    restricted to stylesheets for in-place CSS injection.
    """

    def __init__(
        self,
        config: Configuration,
        dist_dir: Path,
        settings: ToolchainSettings | None = None,
    ) -> None:
        self._config = config
        self._dist_dir = dist_dir
        self._argv = (settings or ToolchainSettings()).browser_sync
        self._process: asyncio.subprocess.Process | None = None
        self._pending: set[asyncio.Task[None]] = set()

    def __repr__(self) -> str:
        return f"BrowserSyncServer(port={self._config.browsersync.port})"

    def start_command(self) -> list[str]:
        bs = self._config.browsersync
        argv = [
            *self._argv,
            "start",
            "--proxy",
            self._config.app_url,
            "--serveStatic",
            str(self._dist_dir),
            "--port",
            str(bs.port),
            "--ui-port",
            str(bs.ui_port),
            "--no-open",
        ]
        if not bs.notify:
            argv.append("--no-notify")
        return argv

    def reload_command(self, kind: ReloadKind) -> list[str]:
        argv = [*self._argv, "reload", "--port", str(self._config.browsersync.port)]
        if kind is ReloadKind.STYLES:
            argv += ["--files", "**/*.css"]
        return argv

    async def start(self) -> None:
        """Launch the proxy; a missing or unstartable binary only disables reloads."""
        argv = self.start_command()
        try:
            self._process = await asyncio.create_subprocess_exec(*argv)
        except OSError as exc:
            logger.warning("live_reload_failed", command=argv[0], error=str(exc))
            self._process = None
            return
        logger.info("live_reload_started", transport="browser-sync", port=self._config.browsersync.port)

    async def notify(self, pipeline: PipelineName, kind: ReloadKind, files: list[str]) -> None:
        if self._process is None:
            return
        task = asyncio.create_task(self._send(pipeline, kind))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, pipeline: PipelineName, kind: ReloadKind) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.reload_command(kind),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await proc.wait()
        except OSError as exc:
            logger.warning("live_reload_failed", pipeline=pipeline, error=str(exc))
            return
        logger.info("live_reload_notified", pipeline=pipeline, kind=kind)

    async def stop(self) -> None:
        if self._process is not None and self._process.returncode is None:
            self._process.terminate()
            await self._process.wait()
        self._process = None
