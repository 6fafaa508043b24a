"""Source map v3 generation for emitted scripts and stylesheets."""
from __future__ import annotations

import json
import os
from pathlib import Path

from frontboost.core.types import Asset

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def encode_vlq(value: int) -> str:
    """Base64 VLQ encoding used by the ``mappings`` field."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    encoded = ""
    while True:
        digit = vlq & 0b11111
        vlq >>= 5
        if vlq:
            digit |= 0b100000
        encoded += _BASE64[digit]
        if not vlq:
            return encoded


def _mappings(asset: Asset, source_index: dict[Path, int]) -> str:
    if asset.segments is None:
        return ""

    lines: list[str] = []
    prev_source = 0
    prev_line = 0
    for source, count in asset.segments:
        for line in range(count):
            if source is None:
                lines.append("")
                continue
            index = source_index[source]
            # [generated column, source index, source line, source column]
            lines.append(
                encode_vlq(0)
                + encode_vlq(index - prev_source)
                + encode_vlq(line - prev_line)
                + encode_vlq(0)
            )
            prev_source, prev_line = index, line
    return ";".join(lines)


def build_sourcemap(asset: Asset, output_path: Path) -> dict[str, object]:
    """Return the v3 source map for *asset* written at *output_path*.

    Line mappings are exact while the asset has only been prefixed or
    concatenated; after a rewriting transform only the source list is kept.
    """
    sources = list(dict.fromkeys(asset.sources))
    source_index = {source: i for i, source in enumerate(sources)}
    return {
        "version": 3,
        "file": output_path.name,
        "sources": [
            Path(os.path.relpath(source, output_path.parent)).as_posix() for source in sources
        ],
        "names": [],
        "mappings": _mappings(asset, source_index),
    }


def sourcemap_comment(map_name: str, suffix: str) -> bytes:
    """The trailing ``sourceMappingURL`` comment for a ``.js`` or ``.css`` file."""
    if suffix == ".css":
        return f"\n/*# sourceMappingURL={map_name} */\n".encode("utf-8")
    return f"\n//# sourceMappingURL={map_name}\n".encode("utf-8")


def dumps(sourcemap: dict[str, object]) -> bytes:
    return json.dumps(sourcemap, separators=(",", ":")).encode("utf-8")
