"""frontboost: configurable front-end asset builds with watch mode and live reload."""

from frontboost.__version__ import __version__

from frontboost.callbacks.handler import (
    BuildCallbackHandler,
    CompositeCallbackHandler,
    LoggingCallbackHandler,
)
from frontboost.config.defaults import DEFAULT_CONFIG
from frontboost.config.resolver import (
    ConfigDocument,
    deep_merge,
    load_banner,
    load_config_document,
    resolve,
)
from frontboost.core.config import Configuration, ToolchainSettings
from frontboost.core.constants import PIPELINE_ORDER, PipelineName, ReloadKind, StyleDialect
from frontboost.core.exceptions import (
    BuildError,
    ConfigError,
    ConflictingOptionError,
    FieldViolation,
    FileSystemError,
    FrontboostError,
    MalformedInputError,
    MissingProjectError,
    PipelineError,
    SchemaViolationError,
    TransformError,
    TransformWarning,
)
from frontboost.core.types import Asset, BuildOutcome, BuildPaths, DirectorySet, StageReport
from frontboost.layout.planner import ensure, plan
from frontboost.livereload.server import BrowserSyncServer, LiveReloadServer, LoggingLiveReload
from frontboost.orchestrator.orchestrator import Orchestrator
from frontboost.pipeline.models import PipelineDefinition
from frontboost.pipeline.registry import build_pipelines
from frontboost.pipeline.runner import PipelineRunner
from frontboost.tools.base import PassthroughToolchain, Toolchain
from frontboost.tools.commands import CommandToolchain
from frontboost.utils.logging import configure_logging, get_logger
from frontboost.watcher.sources import EventSource, QueueEventSource, WatchfilesEventSource
from frontboost.watcher.watcher import Subscription, WatchBinding, Watcher, watch_bindings

__all__ = [
    "__version__",
    # Configuration
    "DEFAULT_CONFIG",
    "ConfigDocument",
    "Configuration",
    "ToolchainSettings",
    "deep_merge",
    "load_banner",
    "load_config_document",
    "resolve",
    # Constants
    "PIPELINE_ORDER",
    "PipelineName",
    "ReloadKind",
    "StyleDialect",
    # Errors
    "FrontboostError",
    "ConfigError",
    "MalformedInputError",
    "MissingProjectError",
    "SchemaViolationError",
    "ConflictingOptionError",
    "FieldViolation",
    "FileSystemError",
    "PipelineError",
    "BuildError",
    "TransformError",
    "TransformWarning",
    # Layout and pipelines
    "Asset",
    "BuildOutcome",
    "BuildPaths",
    "DirectorySet",
    "StageReport",
    "PipelineDefinition",
    "PipelineRunner",
    "build_pipelines",
    "ensure",
    "plan",
    # Toolchains
    "Toolchain",
    "PassthroughToolchain",
    "CommandToolchain",
    # Orchestration and watch mode
    "Orchestrator",
    "EventSource",
    "QueueEventSource",
    "WatchfilesEventSource",
    "Subscription",
    "WatchBinding",
    "Watcher",
    "watch_bindings",
    # Live reload
    "LiveReloadServer",
    "LoggingLiveReload",
    "BrowserSyncServer",
    # Callbacks and logging
    "BuildCallbackHandler",
    "CompositeCallbackHandler",
    "LoggingCallbackHandler",
    "configure_logging",
    "get_logger",
]
