from __future__ import annotations

from abc import ABC
from pathlib import Path

from frontboost.core.constants import StyleDialect
from frontboost.core.exceptions import TransformError
from frontboost.core.types import Asset
from frontboost.tools.dialect import scss_to_less
from frontboost.tools.rtl import mirror_css


def decode(asset: Asset, transform: str) -> str:
    """Return the asset's text, or raise :class:`TransformError` when it is not UTF-8."""
    try:
        return asset.text
    except UnicodeDecodeError as exc:
        raise TransformError(
            transform,
            f"not valid UTF-8 (byte {exc.object[exc.start]:#04x} at offset {exc.start})",
            path=str(asset.name),
        ) from exc


class Toolchain(ABC):
    """Stable interface to the external transforms a pipeline invokes.

    Every method receives the in-flight :class:`~frontboost.core.types.Asset`
    and returns the new content as bytes, or raises
    :class:`~frontboost.core.exceptions.TransformError`. Override any method
    to plug in a real tool; the defaults pass content through unchanged,
    except for the two transforms frontboost implements itself (Sass → Less
    conversion and RTL mirroring).
    """

    async def lint(self, asset: Asset) -> list[str]:
        """Return human-readable lint issues for a script (empty when clean)."""
        return []

    async def preprocess(
        self,
        asset: Asset,
        dialect: StyleDialect,
        include_paths: tuple[Path, ...],
    ) -> bytes:
        return asset.content

    async def convert_dialect(
        self, asset: Asset, source: StyleDialect, target: StyleDialect
    ) -> bytes:
        if (source, target) == (StyleDialect.SCSS, StyleDialect.LESS):
            return scss_to_less(decode(asset, "convert_dialect")).encode("utf-8")
        raise TransformError(
            "convert_dialect",
            f"unsupported conversion {source} -> {target}",
            path=str(asset.name),
        )

    async def autoprefix(self, asset: Asset) -> bytes:
        return asset.content

    async def minify(self, asset: Asset, language: str) -> bytes:
        return asset.content

    async def mirror_rtl(self, asset: Asset) -> bytes:
        return mirror_css(decode(asset, "mirror_rtl")).encode("utf-8")

    async def optimize_image(self, asset: Asset) -> bytes:
        return asset.content


class PassthroughToolchain(Toolchain):
    """Toolchain that only uses the built-in defaults."""
