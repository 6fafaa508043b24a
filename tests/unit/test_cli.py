"""Tests for cli.py."""
from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from frontboost.cli import build_parser, main

MISSING_TOOL = "frontboost-test-missing-tool"


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture(autouse=True)
def _no_external_tools(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("SASS", "LESSC", "JSHINT", "TERSER", "POSTCSS", "CLEANCSS", "IMAGEMIN"):
        monkeypatch.setenv(f"FRONTBOOST_{name}", MISSING_TOOL)
    monkeypatch.delenv("FRONTBOOST_LOG_LEVEL", raising=False)


def _write_config(root: Path, document: object) -> Path:
    path = root / "config.json"
    path.write_text(json.dumps(document) if not isinstance(document, str) else document)
    return path


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["demo"])
    assert args.project == "demo"
    assert args.config is None
    assert args.once is False
    assert args.sequential is False


def test_missing_project_argument_exits_with_usage(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2
    assert "project" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Configuration diagnostics
# ---------------------------------------------------------------------------


def test_unknown_project_reports_and_fails(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_config(tmp_path, {"site": {}})
    assert main(["blog", "--root", str(tmp_path), "--once"]) == 1

    err = capsys.readouterr().err
    assert "frontboost: Project 'blog' doesn't exist in your configuration file." in err
    assert not (tmp_path / "src").exists()


def test_conflicting_preprocessors_fail_before_any_io(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_config(tmp_path, {"site": {"sass": {"enabled": True}, "less": {"enabled": True}}})
    assert main(["site", "--root", str(tmp_path), "--once"]) == 1

    assert "Choose only one of sass, less" in capsys.readouterr().err
    assert sorted(p.name for p in tmp_path.iterdir()) == ["config.json"]


def test_schema_violations_are_listed(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_config(tmp_path, {"site": {"rtl": {"enabled": "maybe"}, "colour": "blue"}})
    assert main(["site", "--root", str(tmp_path), "--once"]) == 1

    lines = capsys.readouterr().err.splitlines()
    assert lines[0].startswith("frontboost: Configuration for project 'site' is not valid")
    violations = [line for line in lines if line.startswith("  - ")]
    assert any("site.rtl.enabled" in line for line in violations)
    assert any("site.colour" in line for line in violations)


def test_malformed_json_fails(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _write_config(tmp_path, "{not json")
    assert main(["site", "--root", str(tmp_path), "--once"]) == 1
    assert "is not valid JSON" in capsys.readouterr().err


def test_missing_config_file_fails(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["site", "--root", str(tmp_path), "--once"]) == 1
    assert "Cannot read configuration file" in capsys.readouterr().err


def test_explicit_config_path(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    config = tmp_path / "settings" / "frontboost.json"
    config.parent.mkdir()
    config.write_text(json.dumps({"site": {}}))

    assert main(["site", "--root", str(tmp_path), "--config", str(config), "--once"]) == 0
    assert (tmp_path / "src" / "js").is_dir()


# ---------------------------------------------------------------------------
# Single build
# ---------------------------------------------------------------------------


def test_once_builds_and_lists_source_directories(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_config(tmp_path, {"site": {"distFolder": "public"}})
    (tmp_path / "src" / "js").mkdir(parents=True)
    (tmp_path / "src" / "js" / "app.js").write_text("var a = 1;\n")
    (tmp_path / "src" / "css").mkdir()
    (tmp_path / "src" / "css" / "site.css").write_text("a { color: red; }\n")

    assert main(["site", "--root", str(tmp_path), "--once", "--sequential"]) == 0

    public = tmp_path / "public"
    assert (public / "js" / "app.js").exists()
    assert (public / "js" / "app.min.js").exists()
    assert (public / "css" / "site.css").exists()
    assert (public / "css" / "site.min.css").exists()

    out = capsys.readouterr().out
    assert out.startswith("Your files have been processed. Edit any file within:")
    for folder in ("js", "img", "lib", "css"):
        assert str(tmp_path.resolve() / "src" / folder) in out


def test_once_with_failing_pipeline_still_exits_zero(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _write_config(tmp_path, {"site": {"sass": {"enabled": True}}})
    (tmp_path / "src" / "scss").mkdir(parents=True)
    (tmp_path / "src" / "scss" / "main.scss").write_text("a { color: $brand; }\n")

    assert main(["site", "--root", str(tmp_path), "--once"]) == 0
    assert not (tmp_path / "dist" / "css").exists()
    assert "Your files have been processed" in capsys.readouterr().out
