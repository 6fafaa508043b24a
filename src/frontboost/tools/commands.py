"""Toolchain backed by the usual Node.js command-line tools.

Each transform pipes the asset through a subprocess (stdin → stdout). The
command lines come from :class:`~frontboost.core.config.ToolchainSettings`,
so any compatible tool can be swapped in through ``FRONTBOOST_*`` variables.
"""
from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from frontboost.core.config import ToolchainSettings
from frontboost.core.constants import StyleDialect
from frontboost.core.exceptions import TransformError, TransformWarning
from frontboost.core.types import Asset
from frontboost.tools.base import Toolchain

logger = structlog.get_logger(__name__)


async def _exec(
    transform: str, argv: list[str], data: bytes, path: str
) -> tuple[int, bytes, bytes]:
    logger.debug("transform_command", transform=transform, argv=argv, path=path)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise TransformError(transform, f"command not found: {argv[0]}", path=path) from exc
    except OSError as exc:
        raise TransformError(transform, f"cannot start {argv[0]}: {exc}", path=path) from exc

    stdout, stderr = await proc.communicate(data)
    return proc.returncode or 0, stdout, stderr


async def run_command(transform: str, argv: list[str], data: bytes, path: str) -> bytes:
    """Run *argv* with *data* on stdin and return its stdout.

    Raises:
        TransformError: The command is missing or exits non-zero.
    """
    returncode, stdout, stderr = await _exec(transform, argv, data, path)
    if returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip() or stdout.decode(
            "utf-8", errors="replace"
        ).strip()
        raise TransformError(
            transform,
            f"{argv[0]} exited with status {returncode}: {detail}",
            path=path,
        )
    return stdout


class CommandToolchain(Toolchain):
    """Run sass, lessc, jshint, terser, postcss, cleancss and imagemin as subprocesses."""

    def __init__(self, settings: ToolchainSettings | None = None) -> None:
        self._settings = settings or ToolchainSettings()

    def __repr__(self) -> str:
        return f"CommandToolchain(sass={self._settings.sass[0]!r})"

    async def lint(self, asset: Asset) -> list[str]:
        argv = [*self._settings.jshint, "--reporter=unix", f"--filename={asset.name}", "-"]
        returncode, stdout, stderr = await _exec("lint", argv, asset.content, str(asset.name))
        if returncode == 0:
            return []
        report = stdout.decode("utf-8", errors="replace")
        issues = [line for line in report.splitlines() if line.strip()]
        if not issues:
            raise TransformWarning(
                "lint", stderr.decode("utf-8", errors="replace").strip(), path=str(asset.name)
            )
        return issues

    async def preprocess(
        self,
        asset: Asset,
        dialect: StyleDialect,
        include_paths: tuple[Path, ...],
    ) -> bytes:
        if dialect is StyleDialect.CSS:
            return asset.content
        if dialect is StyleDialect.LESS:
            argv = [*self._settings.lessc]
            argv += [f"--include-path={p}" for p in include_paths]
            argv.append("-")
        else:
            argv = [*self._settings.sass, "--stdin", "--no-source-map"]
            argv += [f"--load-path={p}" for p in include_paths]
            if asset.name.suffix == ".sass":
                argv.append("--indented")
        return await run_command("preprocess", argv, asset.content, str(asset.name))

    async def autoprefix(self, asset: Asset) -> bytes:
        return await run_command(
            "autoprefix", [*self._settings.postcss, "--no-map"], asset.content, str(asset.name)
        )

    async def minify(self, asset: Asset, language: str) -> bytes:
        if language == "css":
            argv = [*self._settings.cleancss]
        else:
            argv = [*self._settings.terser, "--compress", "--mangle", "--comments", "some"]
        return await run_command("minify", argv, asset.content, str(asset.name))

    async def optimize_image(self, asset: Asset) -> bytes:
        return await run_command(
            "optimize_image", [*self._settings.imagemin], asset.content, str(asset.name)
        )
