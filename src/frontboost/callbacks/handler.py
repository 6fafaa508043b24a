from __future__ import annotations

from abc import ABC
from typing import Any

import structlog

from frontboost.core.constants import PipelineName
from frontboost.core.types import BuildOutcome, StageReport

logger = structlog.get_logger(__name__)


class BuildCallbackHandler(ABC):
    """Override any methods to inject custom logic. All have default no-op implementations."""

    async def on_pipeline_start(self, pipeline: PipelineName) -> None:
        pass

    async def on_stage(self, report: StageReport) -> None:
        pass

    async def on_warning(self, pipeline: PipelineName, message: str) -> None:
        pass

    async def on_pipeline_end(self, outcome: BuildOutcome) -> None:
        pass

    async def on_error(self, pipeline: PipelineName, error: Exception) -> None:
        pass


class LoggingCallbackHandler(BuildCallbackHandler):
    """Logs all events via structlog."""

    async def on_pipeline_start(self, pipeline: PipelineName) -> None:
        logger.info("pipeline_start", pipeline=pipeline)

    async def on_stage(self, report: StageReport) -> None:
        logger.info(
            "stage_completed",
            pipeline=report.pipeline,
            stage=report.stage,
            files=report.files,
            size_bytes=report.size_bytes,
        )

    async def on_warning(self, pipeline: PipelineName, message: str) -> None:
        logger.info("warning_reported", pipeline=pipeline, message=message)

    async def on_pipeline_end(self, outcome: BuildOutcome) -> None:
        logger.info(
            "pipeline_end",
            pipeline=outcome.pipeline,
            success=outcome.success,
            files=outcome.files_processed,
            artifacts=len(outcome.artifacts),
            total_bytes=outcome.total_bytes,
            minified_bytes=outcome.minified_bytes,
            latency_ms=outcome.latency_ms,
        )

    async def on_error(self, pipeline: PipelineName, error: Exception) -> None:
        logger.error("pipeline_error", pipeline=pipeline, error=str(error), exc_info=error)


class CompositeCallbackHandler(BuildCallbackHandler):
    """Fans out all callback calls to multiple handlers.

    Each handler is called in order. Exceptions from individual handlers are
    caught and logged so one failing handler does not block the others or
    the pipeline that emitted the event.
    """

    def __init__(self, handlers: list[BuildCallbackHandler]) -> None:
        self._handlers = list(handlers)

    async def _dispatch(self, event: str, *args: Any) -> None:
        for handler in self._handlers:
            try:
                await getattr(handler, event)(*args)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "callback_handler_error",
                    callback_event=event,
                    handler=type(handler).__name__,
                    error=str(exc),
                )

    async def on_pipeline_start(self, pipeline: PipelineName) -> None:
        await self._dispatch("on_pipeline_start", pipeline)

    async def on_stage(self, report: StageReport) -> None:
        await self._dispatch("on_stage", report)

    async def on_warning(self, pipeline: PipelineName, message: str) -> None:
        await self._dispatch("on_warning", pipeline, message)

    async def on_pipeline_end(self, outcome: BuildOutcome) -> None:
        await self._dispatch("on_pipeline_end", outcome)

    async def on_error(self, pipeline: PipelineName, error: Exception) -> None:
        await self._dispatch("on_error", pipeline, error)
