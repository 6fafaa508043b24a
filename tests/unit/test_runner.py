"""Tests for pipeline/runner.py: executing plans against a project tree."""
from __future__ import annotations

import json
from pathlib import Path, PurePosixPath

import pytest

from frontboost.callbacks.handler import BuildCallbackHandler
from frontboost.core.constants import PipelineName
from frontboost.core.exceptions import TransformError
from frontboost.core.types import Asset
from frontboost.pipeline.models import PipelineDefinition, SourceSpec
from frontboost.pipeline.registry import build_pipelines
from frontboost.pipeline.runner import PipelineRunner, collect_sources, with_suffix
from frontboost.tools.base import PassthroughToolchain


# ---------------------------------------------------------------------------
# Helpers / fake toolchains
# ---------------------------------------------------------------------------


def _without_map_comment(data: bytes) -> bytes:
    return data.split(b"\n//# sourceMappingURL=")[0].split(b"\n/*# sourceMappingURL=")[0]


class FailingMinifier(PassthroughToolchain):
    async def minify(self, asset: Asset, language: str) -> bytes:
        raise TransformError("minify", "terser exited with status 1", path=str(asset.name))


class FailingPreprocessor(PassthroughToolchain):
    async def preprocess(self, asset, dialect, include_paths) -> bytes:
        raise TransformError("preprocess", "Undefined variable: $brand", path=str(asset.name))


class PickyLinter(PassthroughToolchain):
    async def lint(self, asset: Asset) -> list[str]:
        return [f"{asset.name}:1:10: Missing semicolon."]


class ShoutingMinifier(PassthroughToolchain):
    async def minify(self, asset: Asset, language: str) -> bytes:
        return asset.content.upper().replace(b" ", b"")


async def _run(config, paths, name: PipelineName, toolchain=None, callbacks=None, banner=None):
    definition = build_pipelines(config, paths, banner)[name]
    runner = PipelineRunner(toolchain=toolchain, callbacks=callbacks)
    return await runner.run(definition)


# ---------------------------------------------------------------------------
# Script pipeline
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_concatenated_scripts_emit_bundle_and_minified_bundle(
    make_config, paths_for, write_tree
) -> None:
    root = write_tree({"src/js/a.js": "var a = 1;\n", "src/js/b.js": "var b = 2;\n"})
    config = make_config(
        sass={"enabled": True},
        less={"enabled": False},
        jsConcat={"enabled": True, "finalName": "app"},
        rtl={"enabled": False},
    )
    outcome = await _run(config, paths_for(config), PipelineName.SCRIPT)

    assert outcome.success
    assert outcome.files_processed == 2
    assert sorted(outcome.artifacts) == ["app.js", "app.min.js"]

    out = root / "dist" / "js"
    assert sorted(p.name for p in out.iterdir()) == [
        "app.js",
        "app.js.map",
        "app.min.js",
        "app.min.js.map",
    ]
    bundle = (out / "app.js").read_bytes()
    assert bundle.startswith(b"var a = 1;\n\nvar b = 2;\n")
    assert bundle.endswith(b"//# sourceMappingURL=app.js.map\n")
    assert (out / "app.min.js").read_bytes().endswith(b"//# sourceMappingURL=app.min.js.map\n")


@pytest.mark.asyncio
async def test_bundle_sourcemap_maps_lines_to_sources(make_config, paths_for, write_tree) -> None:
    root = write_tree({"src/js/a.js": "var a = 1;\n", "src/js/b.js": "var b = 2;\n"})
    config = make_config(jsConcat={"enabled": True, "finalName": "app"})
    await _run(config, paths_for(config), PipelineName.SCRIPT)

    sourcemap = json.loads((root / "dist" / "js" / "app.js.map").read_text())
    assert sourcemap["version"] == 3
    assert sourcemap["file"] == "app.js"
    assert sourcemap["sources"] == ["../../src/js/a.js", "../../src/js/b.js"]
    assert sourcemap["mappings"] == "AAAA;AACA;ACDA;AACA"


@pytest.mark.asyncio
async def test_banner_is_prepended_and_offsets_mappings(make_config, paths_for, write_tree) -> None:
    root = write_tree({"src/js/a.js": "var a = 1;"})
    config = make_config(header={"enabled": True, "packageJsonPath": "."})
    await _run(config, paths_for(config), PipelineName.SCRIPT, banner="/*! demo v1 */\n")

    emitted = (root / "dist" / "js" / "a.js").read_bytes()
    assert emitted.startswith(b"/*! demo v1 */\nvar a = 1;")
    sourcemap = json.loads((root / "dist" / "js" / "a.js.map").read_text())
    assert sourcemap["mappings"] == ";AAAA"


@pytest.mark.asyncio
async def test_scripts_without_concat_keep_their_names(make_config, paths_for, write_tree) -> None:
    write_tree({"src/js/a.js": "var a;", "src/js/b.js": "var b;"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.SCRIPT)
    assert sorted(outcome.artifacts) == ["a.js", "a.min.js", "b.js", "b.min.js"]


@pytest.mark.asyncio
async def test_minify_failure_ships_unminified_output(make_config, paths_for, write_tree) -> None:
    root = write_tree({"src/js/a.js": "var a = 1;"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.SCRIPT, toolchain=FailingMinifier())

    assert outcome.success
    assert any("minify" in warning for warning in outcome.warnings)
    minified = (root / "dist" / "js" / "a.min.js").read_bytes()
    assert _without_map_comment(minified) == b"var a = 1;"


@pytest.mark.asyncio
async def test_minified_bytes_are_tracked(make_config, paths_for, write_tree) -> None:
    write_tree({"src/js/a.js": "var a = 1;"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.SCRIPT, toolchain=ShoutingMinifier())

    assert 0 < outcome.minified_bytes < outcome.total_bytes


@pytest.mark.asyncio
async def test_lint_issues_are_warnings(make_config, paths_for, write_tree, recorder) -> None:
    root = write_tree({"src/js/a.js": "var a = 1"})
    config = make_config()
    outcome = await _run(
        config, paths_for(config), PipelineName.SCRIPT, toolchain=PickyLinter(), callbacks=[recorder]
    )

    assert outcome.success
    assert outcome.warnings == ["lint a.js: a.js:1:10: Missing semicolon."]
    assert recorder.of("warning") == outcome.warnings
    assert (root / "dist" / "js" / "a.js").exists()


# ---------------------------------------------------------------------------
# Style pipeline
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sass_with_rtl_produces_three_artifacts(make_config, paths_for, write_tree) -> None:
    root = write_tree(
        {
            "src/scss/main.scss": "a { margin-left: 4px; float: left; }\n",
            "src/scss/_partial.scss": "$unused: 1px;\n",
        }
    )
    config = make_config(
        sass={"enabled": True},
        rtl={"enabled": True},
        cssConcat={"enabled": True, "finalName": "app"},
    )
    outcome = await _run(config, paths_for(config), PipelineName.STYLE)

    assert outcome.success
    assert outcome.files_processed == 1
    assert sorted(outcome.artifacts) == ["app.css", "app.min.css", "app.min.rtl.css"]

    out = root / "dist" / "css"
    minified = _without_map_comment((out / "app.min.css").read_bytes())
    mirrored = _without_map_comment((out / "app.min.rtl.css").read_bytes())
    assert mirrored != minified
    assert mirrored == b"a { margin-right: 4px; float: right; }\n"
    assert (out / "app.min.rtl.css").read_bytes().endswith(
        b"/*# sourceMappingURL=app.min.rtl.css.map */\n"
    )


@pytest.mark.asyncio
async def test_style_without_rtl_emits_two_artifacts_per_file(make_config, paths_for, write_tree) -> None:
    write_tree({"src/css/site.css": "body { color: red; }", "src/css/print.css": "a { color: #000; }"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.STYLE)
    assert sorted(outcome.artifacts) == ["print.css", "print.min.css", "site.css", "site.min.css"]


@pytest.mark.asyncio
async def test_preprocessed_files_are_renamed_to_css(make_config, paths_for, write_tree) -> None:
    write_tree({"src/less/theme.less": "@c: red; a { color: @c; }"})
    config = make_config(less={"enabled": True})
    outcome = await _run(config, paths_for(config), PipelineName.STYLE)
    assert sorted(outcome.artifacts) == ["theme.css", "theme.min.css"]


@pytest.mark.asyncio
async def test_empty_stylesheets_are_dropped(make_config, paths_for, write_tree) -> None:
    root = write_tree({"src/css/empty.css": "  \n", "src/css/main.css": "a{}"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.STYLE)

    assert sorted(outcome.artifacts) == ["main.css", "main.min.css"]
    assert not (root / "dist" / "css" / "empty.css").exists()


@pytest.mark.asyncio
async def test_preprocess_failure_is_fatal_to_the_pipeline(
    make_config, paths_for, write_tree, recorder
) -> None:
    root = write_tree({"src/scss/main.scss": "a { color: $brand; }"})
    config = make_config(sass={"enabled": True})
    outcome = await _run(
        config,
        paths_for(config),
        PipelineName.STYLE,
        toolchain=FailingPreprocessor(),
        callbacks=[recorder],
    )

    assert outcome.success is False
    assert len(outcome.errors) == 1
    assert "Undefined variable" in outcome.errors[0]
    assert outcome.artifacts == []
    assert not (root / "dist" / "css").exists()
    assert len(recorder.of("error")) == 1
    assert recorder.of("end") == [outcome]


# ---------------------------------------------------------------------------
# Image, library and theme pipelines
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_image_copy_is_byte_exact_with_subpaths(make_config, paths_for, write_tree) -> None:
    png = bytes(range(256))
    svg = b"<svg xmlns='http://www.w3.org/2000/svg'/>"
    root = write_tree({"src/img/logo.png": png, "src/img/icons/nested/arrow.svg": svg})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.IMAGE)

    assert outcome.success
    assert sorted(outcome.artifacts) == ["icons/nested/arrow.svg", "logo.png"]
    assert (root / "dist" / "img" / "logo.png").read_bytes() == png
    assert (root / "dist" / "img" / "icons" / "nested" / "arrow.svg").read_bytes() == svg
    assert not (root / "dist" / "img" / "logo.png.map").exists()


@pytest.mark.asyncio
async def test_empty_library_succeeds_with_zero_files(make_config, paths_for, tmp_path: Path) -> None:
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.LIBRARY)

    assert outcome.success
    assert outcome.files_processed == 0
    assert outcome.errors == []
    assert outcome.artifacts == []


@pytest.mark.asyncio
async def test_library_files_are_copied_verbatim(make_config, paths_for, write_tree) -> None:
    root = write_tree({"src/lib/vendor/jquery.js": "/* vendor */ (function(){})();"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.LIBRARY)
    assert outcome.artifacts == ["vendor/jquery.js"]
    assert (root / "dist" / "lib" / "vendor" / "jquery.js").read_text() == (
        "/* vendor */ (function(){})();"
    )


@pytest.mark.asyncio
async def test_theme_converts_and_concatenates(make_config, paths_for, write_tree) -> None:
    root = write_tree(
        {
            "src/scss/theme/colors.scss": "$primary: #333 !default;\n",
            "src/scss/theme/layout.scss": ".box { color: $primary; }\n",
        }
    )
    config = make_config(
        sass={"enabled": True},
        themeroller={"enabled": True, "finalName": "roller", "files": ["src/scss/theme/*.scss"]},
    )
    outcome = await _run(config, paths_for(config), PipelineName.THEME)

    assert outcome.success
    assert outcome.artifacts == ["roller.less"]
    assert (root / "dist" / "css" / "roller.less").read_text() == (
        "@primary: #333;\n\n.box { color: @primary; }\n"
    )


@pytest.mark.asyncio
async def test_write_failure_is_reported_with_path(make_config, paths_for, write_tree) -> None:
    root = write_tree({"src/lib/a.txt": "a", "dist": "not a directory"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.LIBRARY)

    assert outcome.success is False
    assert "Cannot write" in outcome.errors[0]
    assert str(root / "dist" / "lib" / "a.txt") in outcome.errors[0]


# ---------------------------------------------------------------------------
# Undecodable input and unexpected failures
# ---------------------------------------------------------------------------


class CrashingAutoprefixer(PassthroughToolchain):
    async def autoprefix(self, asset: Asset) -> bytes:
        raise RuntimeError("disk exploded")


class CountingMinifier(PassthroughToolchain):
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def minify(self, asset: Asset, language: str) -> bytes:
        self.calls.append(str(asset.name))
        return asset.content


@pytest.mark.asyncio
async def test_latin1_stylesheet_only_loses_its_rtl_variant(
    make_config, paths_for, write_tree
) -> None:
    root = write_tree(
        {"src/css/a.css": b"/* \xa9 ACME */ .x{float:left}", "src/css/b.css": "b{float:left}"}
    )
    config = make_config(rtl={"enabled": True})
    outcome = await _run(config, paths_for(config), PipelineName.STYLE)

    assert outcome.success
    assert sorted(outcome.artifacts) == [
        "a.css",
        "a.min.css",
        "b.css",
        "b.min.css",
        "b.min.rtl.css",
    ]
    assert len(outcome.warnings) == 1
    assert "UTF-8" in outcome.warnings[0]
    assert "RTL variant skipped" in outcome.warnings[0]
    assert _without_map_comment((root / "dist" / "css" / "a.css").read_bytes()) == (
        b"/* \xa9 ACME */ .x{float:left}"
    )


@pytest.mark.asyncio
async def test_latin1_theme_source_fails_the_theme_pipeline(
    make_config, paths_for, write_tree, recorder
) -> None:
    write_tree({"src/scss/theme/vars.scss": b"$accent: red; // \xe9t\xe9\n"})
    config = make_config(
        sass={"enabled": True},
        themeroller={"enabled": True, "finalName": "roller", "files": ["src/scss/theme/*.scss"]},
    )
    outcome = await _run(config, paths_for(config), PipelineName.THEME, callbacks=[recorder])

    assert outcome.success is False
    assert "UTF-8" in outcome.errors[0]
    assert outcome.artifacts == []
    assert recorder.of("end") == [outcome]


@pytest.mark.asyncio
async def test_unexpected_exception_becomes_failed_outcome(
    make_config, paths_for, write_tree, recorder
) -> None:
    write_tree({"src/css/a.css": "a{}"})
    config = make_config()
    outcome = await _run(
        config,
        paths_for(config),
        PipelineName.STYLE,
        toolchain=CrashingAutoprefixer(),
        callbacks=[recorder],
    )

    assert outcome.success is False
    assert outcome.errors == ["RuntimeError: disk exploded"]
    assert len(recorder.of("error")) == 1
    assert recorder.of("end") == [outcome]


@pytest.mark.asyncio
async def test_rtl_reuses_the_minified_output(make_config, paths_for, write_tree) -> None:
    write_tree({"src/css/a.css": "a{float:left}", "src/css/b.css": "b{float:left}"})
    config = make_config(rtl={"enabled": True})
    toolchain = CountingMinifier()
    outcome = await _run(config, paths_for(config), PipelineName.STYLE, toolchain=toolchain)

    assert outcome.success
    assert sorted(toolchain.calls) == ["a.css", "b.css"]
    assert "a.min.rtl.css" in outcome.artifacts


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_stage_reports_follow_plan_order(make_config, paths_for, write_tree, recorder) -> None:
    write_tree({"src/js/a.js": "var a;", "src/js/b.js": "var b;"})
    config = make_config(jsConcat={"enabled": True, "finalName": "app"})
    outcome = await _run(config, paths_for(config), PipelineName.SCRIPT, callbacks=[recorder])

    assert recorder.events[0] == ("start", PipelineName.SCRIPT)
    assert recorder.events[-1] == ("end", outcome)
    stages = recorder.of("stage")
    assert [s.stage for s in stages] == ["lint", "concat", "emit", "minify", "rename", "emit"]
    assert [s.files for s in stages] == [2, 1, 1, 1, 1, 1]
    assert stages[0].size_bytes == len(b"var a;") + len(b"var b;")


@pytest.mark.asyncio
async def test_fork_stages_are_prefixed_with_branch(make_config, paths_for, write_tree, recorder) -> None:
    write_tree({"src/css/a.css": "a { left: 0; }"})
    config = make_config(rtl={"enabled": True})
    await _run(config, paths_for(config), PipelineName.STYLE, callbacks=[recorder])

    stages = [s.stage for s in recorder.of("stage")]
    assert "unminified/autoprefix" in stages
    assert "minified/minify" in stages
    assert "rtl/rtl" in stages
    assert stages[-1] == "fork"


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_run(make_config, paths_for, write_tree) -> None:
    class Exploding(BuildCallbackHandler):
        async def on_stage(self, report) -> None:
            raise RuntimeError("telemetry sink down")

    write_tree({"src/js/a.js": "var a;"})
    config = make_config()
    outcome = await _run(config, paths_for(config), PipelineName.SCRIPT, callbacks=[Exploding()])
    assert outcome.success


# ---------------------------------------------------------------------------
# collect_sources / with_suffix
# ---------------------------------------------------------------------------


def test_collect_sources_skips_partials_and_missing_dirs(write_tree, tmp_path: Path) -> None:
    write_tree({"src/scss/main.scss": "a{}", "src/scss/_vars.scss": "$a: 1;"})
    definition = PipelineDefinition(
        name=PipelineName.STYLE,
        sources=(
            SourceSpec(tmp_path / "src" / "scss", "*.scss", skip_partials=True),
            SourceSpec(tmp_path / "src" / "sass", "*.sass", skip_partials=True),
        ),
        steps=(),
        output_dir=tmp_path / "dist",
    )
    assets = collect_sources(definition)
    assert [str(a.name) for a in assets] == ["main.scss"]
    assert assets[0].sources == (tmp_path / "src" / "scss" / "main.scss",)


def test_collect_sources_accepts_absolute_patterns(write_tree, tmp_path: Path) -> None:
    write_tree({"themes/base.scss": "$a: 1;"})
    definition = PipelineDefinition(
        name=PipelineName.THEME,
        sources=(SourceSpec(tmp_path / "elsewhere", str(tmp_path / "themes" / "*.scss")),),
        steps=(),
        output_dir=tmp_path / "dist",
    )
    assert [a.content for a in collect_sources(definition)] == [b"$a: 1;"]


def test_collect_sources_reads_each_file_once(write_tree, tmp_path: Path) -> None:
    write_tree({"src/js/a.js": "var a;"})
    base = tmp_path / "src" / "js"
    definition = PipelineDefinition(
        name=PipelineName.SCRIPT,
        sources=(SourceSpec(base, "*.js"), SourceSpec(base, "a.*")),
        steps=(),
        output_dir=tmp_path / "dist",
    )
    assert len(collect_sources(definition)) == 1


def test_with_suffix_inserts_before_extension() -> None:
    assert with_suffix(PurePosixPath("css/app.css"), ".min") == PurePosixPath("css/app.min.css")
    assert with_suffix(PurePosixPath("app.min.css"), ".rtl") == PurePosixPath("app.min.rtl.css")


def test_passthrough_toolchain_is_the_default() -> None:
    assert "PassthroughToolchain" in repr(PipelineRunner())
