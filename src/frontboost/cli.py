from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog

from frontboost.__version__ import __version__
from frontboost.callbacks.handler import LoggingCallbackHandler
from frontboost.config.resolver import load_banner, load_config_document, resolve
from frontboost.core.config import ToolchainSettings, project_root
from frontboost.core.exceptions import BuildError, ConfigError, FileSystemError, SchemaViolationError
from frontboost.core.types import BuildPaths, DirectorySet
from frontboost.livereload.server import BrowserSyncServer
from frontboost.orchestrator.orchestrator import Orchestrator
from frontboost.tools.commands import CommandToolchain
from frontboost.utils.logging import configure_logging

logger = structlog.get_logger(__name__)

CONFIG_FILENAME = "config.json"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="frontboost",
        description="Build a project's front-end assets and rebuild them as sources change.",
    )
    parser.add_argument("project", help="Name of the project entry in the configuration file")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Configuration file (default: <root>/{CONFIG_FILENAME})",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Directory srcFolder and distFolder are relative to (default: current directory)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: FRONTBOOST_LOG_LEVEL or INFO)",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON lines")
    parser.add_argument("--once", action="store_true", help="Build once and exit instead of watching")
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Run the pipelines of the initial build one after another",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _diagnostic(message: str) -> None:
    print(f"frontboost: {message}", file=sys.stderr)


def _config_diagnostic(exc: ConfigError) -> None:
    _diagnostic(str(exc))
    if isinstance(exc, SchemaViolationError):
        for violation in exc.violations:
            print(f"  - {violation}", file=sys.stderr)


def _print_directories(directories: DirectorySet) -> None:
    print("Your files have been processed. Edit any file within:")
    for directory in directories.paths:
        print(f"  {directory}")


async def _run(orchestrator: Orchestrator, directories: DirectorySet, watch: bool) -> int:
    try:
        outcomes = await orchestrator.build()
        _print_directories(directories)
        if watch:
            await orchestrator.watch()
    except BuildError as exc:
        _diagnostic(str(exc))
        return 1
    finally:
        await orchestrator.close()
    if not watch and any(not outcome.success for outcome in outcomes):
        logger.warning("build_finished_with_errors")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = ToolchainSettings.from_env()
    configure_logging(args.log_level or settings.log_level, json=args.log_json)

    root = project_root(args.root)
    config_path = args.config or root / CONFIG_FILENAME
    try:
        document = load_config_document(config_path)
        config = resolve(document.defaults, document.projects, args.project)
        banner = load_banner(config, root)
    except ConfigError as exc:
        _config_diagnostic(exc)
        return 1

    orchestrator = Orchestrator(
        config,
        root=root,
        banner=banner,
        toolchain=CommandToolchain(settings),
        live_reload=(
            BrowserSyncServer(config, BuildPaths.from_config(config, root).dist, settings)
            if config.browsersync.enabled
            else None
        ),
        callbacks=[LoggingCallbackHandler()],
        parallel=not args.sequential,
    )
    try:
        directories = orchestrator.scaffold()
    except FileSystemError as exc:
        _diagnostic(str(exc))
        return 1

    logger.info("project_loaded", project=args.project, root=str(root), config=str(config_path))
    try:
        return asyncio.run(_run(orchestrator, directories, watch=not args.once))
    except KeyboardInterrupt:
        logger.info("watch_interrupted")
        return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    sys.exit(main())
