# RUN: python examples/01_build_once.py
"""Build once: resolve a project, scaffold its sources and run every pipeline.

Uses the passthrough toolchain so no Node.js tools are needed; swap in
``CommandToolchain()`` to run sass, terser, cleancss and friends.
"""

import asyncio
import tempfile
from pathlib import Path

from frontboost import (
    DEFAULT_CONFIG,
    Orchestrator,
    PassthroughToolchain,
    configure_logging,
    resolve,
)


async def main() -> None:
    configure_logging("WARNING")
    root = Path(tempfile.mkdtemp(prefix="frontboost-"))

    config = resolve(
        DEFAULT_CONFIG,
        {"demo": {"jsConcat": {"enabled": True, "finalName": "bundle"}, "rtl": {"enabled": True}}},
        "demo",
    )
    orchestrator = Orchestrator(config, root=root, toolchain=PassthroughToolchain())
    directories = orchestrator.scaffold()

    (directories.script / "a.js").write_text("var a = 1;\n")
    (directories.script / "b.js").write_text("var b = a + 1;\n")
    (directories.style / "site.css").write_text("body { margin-left: 4px; float: left; }\n")

    for outcome in await orchestrator.build():
        status = "ok" if outcome.success else "FAILED"
        print(f"{outcome.pipeline.value:<8} {status:<6} {', '.join(outcome.artifacts) or '-'}")

    print()
    print((root / "dist" / "css" / "site.min.rtl.css").read_text())


if __name__ == "__main__":
    asyncio.run(main())
