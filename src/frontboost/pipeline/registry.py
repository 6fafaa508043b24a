"""Build the fixed set of pipeline plans for a configuration.

Everything here is a pure function of the configuration and the resolved
paths: no file is read or written.
"""
from __future__ import annotations

from pathlib import Path

from frontboost.core.config import Configuration
from frontboost.core.constants import (
    MIN_SUFFIX,
    PIPELINE_ORDER,
    RTL_SUFFIX,
    AssetDir,
    PipelineName,
    StyleDialect,
)
from frontboost.core.types import BuildPaths
from frontboost.layout.planner import style_dialect
from frontboost.pipeline.models import (
    AutoprefixStep,
    BannerStep,
    Branch,
    ConcatStep,
    ConvertDialectStep,
    DropEmptyStep,
    EmitStep,
    ForkStep,
    LintStep,
    MinifyStep,
    OptimizeImageStep,
    PipelineDefinition,
    PreprocessStep,
    RenameStep,
    RtlStep,
    SourceSpec,
    Step,
)

ALL_FILES = "**/*"


def _include_paths(config: Configuration, root: Path) -> tuple[Path, ...]:
    section = config.sass if config.sass.enabled else config.less
    if not section.include_path:
        return ()
    path = Path(section.include_path)
    return (path if path.is_absolute() else root / path,)


def style_sources(config: Configuration, paths: BuildPaths) -> tuple[SourceSpec, ...]:
    """Source globs of the style pipeline for the selected dialect."""
    dialect = style_dialect(config)
    if dialect is StyleDialect.SCSS:
        return (
            SourceSpec(paths.source(AssetDir.SCSS), "*.scss", skip_partials=True),
            SourceSpec(paths.source(AssetDir.SASS), "*.sass", skip_partials=True),
        )
    if dialect is StyleDialect.LESS:
        return (SourceSpec(paths.source(AssetDir.LESS), "*.less"),)
    return (SourceSpec(paths.source(AssetDir.CSS), "*.css"),)


def script_pipeline(
    config: Configuration, paths: BuildPaths, banner: str | None
) -> PipelineDefinition:
    out = paths.output(AssetDir.JS)
    return PipelineDefinition(
        name=PipelineName.SCRIPT,
        sources=(SourceSpec(paths.source(AssetDir.JS), "*.js"),),
        steps=(
            LintStep(),
            BannerStep(text=banner or "", enabled=config.header.enabled and bool(banner)),
            ConcatStep(
                filename=f"{config.js_concat.final_name}.js",
                enabled=config.js_concat.enabled,
            ),
            EmitStep(directory=out, sourcemap=True),
            MinifyStep(language="js"),
            RenameStep(suffix=MIN_SUFFIX),
            EmitStep(directory=out, sourcemap=True),
        ),
        output_dir=out,
    )


def style_pipeline(
    config: Configuration, paths: BuildPaths, banner: str | None
) -> PipelineDefinition:
    out = paths.output(AssetDir.CSS)
    minified: tuple[Step, ...] = (
        AutoprefixStep(),
        MinifyStep(language="css"),
        RenameStep(suffix=MIN_SUFFIX),
    )
    return PipelineDefinition(
        name=PipelineName.STYLE,
        sources=style_sources(config, paths),
        steps=(
            BannerStep(text=banner or "", enabled=config.header.enabled and bool(banner)),
            PreprocessStep(
                dialect=style_dialect(config),
                include_paths=_include_paths(config, paths.root),
            ),
            ConcatStep(
                filename=f"{config.css_concat.final_name}.css",
                enabled=config.css_concat.enabled,
            ),
            ForkStep(
                branches=(
                    Branch(
                        name="unminified",
                        steps=(
                            AutoprefixStep(),
                            DropEmptyStep(),
                            EmitStep(directory=out, sourcemap=True),
                        ),
                    ),
                    Branch(
                        name="minified",
                        steps=(
                            *minified,
                            DropEmptyStep(),
                            EmitStep(directory=out, sourcemap=True),
                            ForkStep(
                                branches=(
                                    Branch(
                                        name="rtl",
                                        steps=(
                                            RtlStep(),
                                            RenameStep(suffix=RTL_SUFFIX),
                                            DropEmptyStep(),
                                            EmitStep(directory=out, sourcemap=True),
                                        ),
                                    ),
                                ),
                                enabled=config.rtl.enabled,
                            ),
                        ),
                    ),
                )
            ),
        ),
        output_dir=out,
    )


def image_pipeline(config: Configuration, paths: BuildPaths) -> PipelineDefinition:
    out = paths.output(AssetDir.IMG)
    return PipelineDefinition(
        name=PipelineName.IMAGE,
        sources=(SourceSpec(paths.source(AssetDir.IMG), ALL_FILES),),
        steps=(
            OptimizeImageStep(enabled=config.image_optimization.enabled),
            EmitStep(directory=out),
        ),
        output_dir=out,
    )


def library_pipeline(paths: BuildPaths) -> PipelineDefinition:
    out = paths.output(AssetDir.LIB)
    return PipelineDefinition(
        name=PipelineName.LIBRARY,
        sources=(SourceSpec(paths.source(AssetDir.LIB), ALL_FILES),),
        steps=(EmitStep(directory=out),),
        output_dir=out,
    )


def theme_pipeline(config: Configuration, paths: BuildPaths) -> PipelineDefinition:
    out = paths.output(AssetDir.CSS)
    return PipelineDefinition(
        name=PipelineName.THEME,
        sources=tuple(SourceSpec(paths.root, pattern) for pattern in config.themeroller.files),
        steps=(
            ConvertDialectStep(
                source=StyleDialect.SCSS,
                target=StyleDialect.LESS,
                enabled=config.sass.enabled,
            ),
            ConcatStep(filename=f"{config.themeroller.final_name}.less"),
            EmitStep(directory=out),
        ),
        output_dir=out,
    )


def build_pipelines(
    config: Configuration,
    paths: BuildPaths,
    banner: str | None = None,
) -> dict[PipelineName, PipelineDefinition]:
    """Return every pipeline *config* activates, keyed and ordered by name.

    The theme pipeline is only present when theming is enabled together with
    a preprocessor.
    """
    pipelines = {
        PipelineName.SCRIPT: script_pipeline(config, paths, banner),
        PipelineName.STYLE: style_pipeline(config, paths, banner),
        PipelineName.IMAGE: image_pipeline(config, paths),
        PipelineName.LIBRARY: library_pipeline(paths),
    }
    if config.theming_active:
        pipelines[PipelineName.THEME] = theme_pipeline(config, paths)
    return {name: pipelines[name] for name in PIPELINE_ORDER if name in pipelines}
