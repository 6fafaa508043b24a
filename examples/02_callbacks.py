# RUN: python examples/02_callbacks.py
"""Callbacks: a size report handler next to LoggingCallbackHandler."""

import asyncio
import tempfile
from pathlib import Path

from frontboost import (
    DEFAULT_CONFIG,
    BuildCallbackHandler,
    BuildOutcome,
    LoggingCallbackHandler,
    Orchestrator,
    PipelineName,
    StageReport,
    configure_logging,
    resolve,
)


# ---------------------------------------------------------------------------
# Custom size report
# ---------------------------------------------------------------------------


class SizeReport(BuildCallbackHandler):
    """Collects per-stage sizes, like gulp-size output."""

    def __init__(self) -> None:
        self.rows: list[StageReport] = []
        self.warnings: list[str] = []

    async def on_stage(self, report: StageReport) -> None:
        self.rows.append(report)

    async def on_warning(self, pipeline: PipelineName, message: str) -> None:
        self.warnings.append(f"{pipeline.value}: {message}")

    async def on_pipeline_end(self, outcome: BuildOutcome) -> None:
        if not outcome.success:
            self.warnings.extend(f"{outcome.pipeline.value}: {e}" for e in outcome.errors)


async def main() -> None:
    configure_logging("INFO")
    root = Path(tempfile.mkdtemp(prefix="frontboost-"))
    config = resolve(DEFAULT_CONFIG, {"demo": {}}, "demo")

    report = SizeReport()
    orchestrator = Orchestrator(config, root=root, callbacks=[report, LoggingCallbackHandler()])
    directories = orchestrator.scaffold()
    (directories.script / "app.js").write_text("function hello() {\n  return 'hi';\n}\n")
    (directories.style / "app.css").write_text("a { color: red; }\n")

    await orchestrator.build()

    print()
    for row in report.rows:
        print(f"{row.pipeline.value:<8} {row.stage:<18} {row.files:>3} files {row.size_bytes:>6} B")
    for warning in report.warnings:
        print("warning:", warning)


if __name__ == "__main__":
    asyncio.run(main())
