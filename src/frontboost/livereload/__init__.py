"""Live-reload collaborators."""
from frontboost.livereload.server import (
    BrowserSyncServer,
    LiveReloadServer,
    LoggingLiveReload,
    reload_kind,
)

__all__ = ["BrowserSyncServer", "LiveReloadServer", "LoggingLiveReload", "reload_kind"]
