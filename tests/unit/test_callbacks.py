"""Tests for callbacks/handler.py."""
from __future__ import annotations

import pytest

from frontboost.callbacks.handler import (
    BuildCallbackHandler,
    CompositeCallbackHandler,
    LoggingCallbackHandler,
)
from frontboost.core.constants import PipelineName
from frontboost.core.exceptions import PipelineError
from frontboost.core.types import BuildOutcome, StageReport


# ---------------------------------------------------------------------------
# Helpers / fixtures
# ---------------------------------------------------------------------------


def _report() -> StageReport:
    return StageReport(pipeline=PipelineName.SCRIPT, stage="minify", files=2, size_bytes=120)


def _outcome(success: bool = True) -> BuildOutcome:
    return BuildOutcome(pipeline=PipelineName.SCRIPT, success=success, artifacts=["app.js"])


class ConcreteHandler(BuildCallbackHandler):
    """Minimal concrete subclass using every default no-op."""


class BrokenHandler(BuildCallbackHandler):
    async def on_pipeline_start(self, pipeline: PipelineName) -> None:
        raise RuntimeError("handler exploded")


# ---------------------------------------------------------------------------
# BuildCallbackHandler defaults
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_default_handlers_are_noops() -> None:
    h = ConcreteHandler()
    await h.on_pipeline_start(PipelineName.SCRIPT)
    await h.on_stage(_report())
    await h.on_warning(PipelineName.SCRIPT, "Missing semicolon.")
    await h.on_pipeline_end(_outcome())
    await h.on_error(PipelineName.SCRIPT, PipelineError("script", "boom"))


# ---------------------------------------------------------------------------
# LoggingCallbackHandler
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_logging_handler_accepts_every_event() -> None:
    h = LoggingCallbackHandler()
    await h.on_pipeline_start(PipelineName.STYLE)
    await h.on_stage(_report())
    await h.on_warning(PipelineName.STYLE, "autoprefix: command not found")
    await h.on_pipeline_end(_outcome(success=False))
    await h.on_error(PipelineName.STYLE, PipelineError("style", "Undefined variable"))


# ---------------------------------------------------------------------------
# CompositeCallbackHandler
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_composite_fans_out_in_order(recorder) -> None:
    second = type(recorder)()
    composite = CompositeCallbackHandler([recorder, second])

    await composite.on_pipeline_start(PipelineName.IMAGE)
    await composite.on_stage(_report())
    await composite.on_pipeline_end(_outcome())

    for handler in (recorder, second):
        assert [name for name, _ in handler.events] == ["start", "stage", "end"]
        assert handler.of("start") == [PipelineName.IMAGE]


@pytest.mark.asyncio
async def test_composite_isolates_failing_handler(recorder) -> None:
    composite = CompositeCallbackHandler([BrokenHandler(), recorder])
    await composite.on_pipeline_start(PipelineName.LIBRARY)
    assert recorder.of("start") == [PipelineName.LIBRARY]


@pytest.mark.asyncio
async def test_composite_forwards_warnings_and_errors(recorder) -> None:
    composite = CompositeCallbackHandler([recorder])
    error = PipelineError("theme", "convert_dialect failed")

    await composite.on_warning(PipelineName.THEME, "lint issue")
    await composite.on_error(PipelineName.THEME, error)

    assert recorder.of("warning") == ["lint issue"]
    assert recorder.of("error") == [error]


def test_composite_copies_handler_list(recorder) -> None:
    handlers: list[BuildCallbackHandler] = [recorder]
    composite = CompositeCallbackHandler(handlers)
    handlers.append(ConcreteHandler())
    assert len(composite._handlers) == 1
