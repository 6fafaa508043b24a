# RUN: python examples/03_watch.py
"""Watch mode: build, then rebuild the script pipeline as files change.

The example drives changes through a QueueEventSource so it finishes on its
own; leave ``event_source`` unset to watch the real filesystem.
"""

import asyncio
import tempfile
from pathlib import Path

from frontboost import (
    DEFAULT_CONFIG,
    LoggingLiveReload,
    Orchestrator,
    QueueEventSource,
    configure_logging,
    resolve,
)


async def main() -> None:
    configure_logging("INFO")
    root = Path(tempfile.mkdtemp(prefix="frontboost-"))
    config = resolve(DEFAULT_CONFIG, {"demo": {"browsersync": {"enabled": True}}}, "demo")

    source = QueueEventSource()
    live_reload = LoggingLiveReload()
    orchestrator = Orchestrator(config, root=root, live_reload=live_reload, event_source=source)
    directories = orchestrator.scaffold()
    script = directories.script / "app.js"
    script.write_text("var version = 1;\n")

    await orchestrator.build()
    subscription = orchestrator.start_watching()

    for version in (2, 3):
        script.write_text(f"var version = {version};\n")
        source.emit(script)
        await source.join()
        await subscription.idle()
        print((root / "dist" / "js" / "app.js").read_text().splitlines()[0])

    subscription.cancel()
    await subscription.wait()
    await orchestrator.close()
    print(f"{len(live_reload.notifications)} live reload notifications")


if __name__ == "__main__":
    asyncio.run(main())
