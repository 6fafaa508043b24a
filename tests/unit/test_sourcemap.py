"""Tests for tools/sourcemap.py."""
from __future__ import annotations

import json
from pathlib import Path, PurePosixPath

import pytest

from frontboost.core.types import Asset
from frontboost.tools.sourcemap import build_sourcemap, dumps, encode_vlq, sourcemap_comment


@pytest.mark.parametrize(
    ("value", "expected"),
    [(0, "A"), (1, "C"), (-1, "D"), (15, "e"), (16, "gB"), (123, "2H"), (-123, "3H")],
)
def test_encode_vlq(value: int, expected: str) -> None:
    assert encode_vlq(value) == expected


def test_map_lists_sources_relative_to_output(tmp_path: Path) -> None:
    source = tmp_path / "src" / "js" / "a.js"
    asset = Asset(
        name=PurePosixPath("a.js"),
        content=b"one\ntwo",
        sources=(source,),
        segments=((source, 2),),
    )
    sourcemap = build_sourcemap(asset, tmp_path / "dist" / "js" / "a.js")
    assert sourcemap == {
        "version": 3,
        "file": "a.js",
        "sources": ["../../src/js/a.js"],
        "names": [],
        "mappings": "AAAA;AACA",
    }


def test_generated_lines_have_empty_mappings(tmp_path: Path) -> None:
    source = tmp_path / "a.css"
    asset = Asset(
        name=PurePosixPath("a.css"),
        content=b"/*!\n */\na{}",
        sources=(source,),
        segments=((None, 2), (source, 1)),
    )
    assert build_sourcemap(asset, tmp_path / "a.css")["mappings"] == ";;AAAA"


def test_rewritten_asset_keeps_sources_only(tmp_path: Path) -> None:
    source = tmp_path / "a.js"
    source.write_text("var a = 1;\n")
    asset = Asset.from_file(source, PurePosixPath("a.js")).transformed(b"var a=1")
    sourcemap = build_sourcemap(asset, tmp_path / "out" / "a.js")
    assert sourcemap["sources"] == ["../a.js"]
    assert sourcemap["mappings"] == ""


def test_sourcemap_comment_syntax() -> None:
    assert sourcemap_comment("app.css.map", ".css") == b"\n/*# sourceMappingURL=app.css.map */\n"
    assert sourcemap_comment("app.js.map", ".js") == b"\n//# sourceMappingURL=app.js.map\n"


def test_dumps_is_compact_json() -> None:
    data = dumps({"version": 3, "sources": ["a.js"]})
    assert data == b'{"version":3,"sources":["a.js"]}'
    assert json.loads(data)["version"] == 3
