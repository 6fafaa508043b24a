from frontboost.watcher.sources import (
    ChangeKind,
    EventSource,
    FileChange,
    QueueEventSource,
    WatchfilesEventSource,
)
from frontboost.watcher.watcher import (
    RerunGate,
    Subscription,
    WatchBinding,
    Watcher,
    watch_bindings,
)

__all__ = [
    "ChangeKind",
    "EventSource",
    "FileChange",
    "QueueEventSource",
    "RerunGate",
    "Subscription",
    "WatchBinding",
    "Watcher",
    "WatchfilesEventSource",
    "watch_bindings",
]
