"""Shared test fixtures."""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from frontboost.callbacks.handler import BuildCallbackHandler
from frontboost.config.defaults import DEFAULT_CONFIG
from frontboost.config.resolver import resolve
from frontboost.core.config import Configuration
from frontboost.core.constants import PipelineName
from frontboost.core.types import BuildOutcome, BuildPaths, StageReport


class RecordingHandler(BuildCallbackHandler):
    """Collects every callback event as ``(event, payload)`` tuples."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []

    async def on_pipeline_start(self, pipeline: PipelineName) -> None:
        self.events.append(("start", pipeline))

    async def on_stage(self, report: StageReport) -> None:
        self.events.append(("stage", report))

    async def on_warning(self, pipeline: PipelineName, message: str) -> None:
        self.events.append(("warning", message))

    async def on_pipeline_end(self, outcome: BuildOutcome) -> None:
        self.events.append(("end", outcome))

    async def on_error(self, pipeline: PipelineName, error: Exception) -> None:
        self.events.append(("error", error))

    def of(self, event: str) -> list[Any]:
        return [payload for name, payload in self.events if name == event]


@pytest.fixture
def make_config() -> Callable[..., Configuration]:
    """Resolve a ``demo`` project whose overrides are given as keyword arguments."""

    def _make(**overrides: Any) -> Configuration:
        return resolve(DEFAULT_CONFIG, {"demo": overrides}, "demo")

    return _make


@pytest.fixture
def write_tree(tmp_path: Path) -> Callable[[dict[str, str | bytes]], Path]:
    """Write ``{relative path: content}`` under ``tmp_path`` and return it."""

    def _write(files: dict[str, str | bytes]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content if isinstance(content, bytes) else content.encode("utf-8"))
        return tmp_path

    return _write


@pytest.fixture
def paths_for(tmp_path: Path) -> Callable[[Configuration], BuildPaths]:
    def _paths(config: Configuration) -> BuildPaths:
        return BuildPaths.from_config(config, tmp_path)

    return _paths


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()
