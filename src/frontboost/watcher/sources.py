"""File-change event sources.

An :class:`EventSource` turns a directory into an async stream of change
batches. :class:`WatchfilesEventSource` watches the real filesystem;
:class:`QueueEventSource` is fed programmatically, which lets tests inject
synthetic events and wait until every one of them has been dispatched.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from watchfiles import Change, awatch


class ChangeKind(StrEnum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass(frozen=True)
class FileChange:
    path: Path
    kind: ChangeKind = ChangeKind.MODIFIED


class EventSource(ABC):
    """Produces batches of :class:`FileChange` for one directory tree."""

    @abstractmethod
    def changes(self, directory: Path) -> AsyncIterator[list[FileChange]]:
        """Return an async iterator of change batches under *directory*."""

    def close(self) -> None:
        """Stop producing events; iterators end at their next batch boundary."""


_KINDS = {
    Change.added: ChangeKind.ADDED,
    Change.modified: ChangeKind.MODIFIED,
    Change.deleted: ChangeKind.DELETED,
}


class WatchfilesEventSource(EventSource):
    """Filesystem events from ``watchfiles`` (native notify, debounced).

    Args:
        debounce_ms: Window in which raw events are grouped into one batch.
    """

    def __init__(self, debounce_ms: int = 200) -> None:
        self._debounce_ms = debounce_ms
        self._stop = asyncio.Event()

    def __repr__(self) -> str:
        return f"WatchfilesEventSource(debounce_ms={self._debounce_ms})"

    async def changes(self, directory: Path) -> AsyncIterator[list[FileChange]]:
        async for batch in awatch(
            directory,
            debounce=self._debounce_ms,
            stop_event=self._stop,
            recursive=True,
        ):
            yield [FileChange(Path(path), _KINDS[change]) for change, path in sorted(batch)]

    def close(self) -> None:
        self._stop.set()


class _QueueStream:
    """Async iterator over one queue; marks a batch done when the next is requested."""

    def __init__(self, queue: asyncio.Queue[list[FileChange]]) -> None:
        self._queue = queue
        self._holding = False

    def __aiter__(self) -> _QueueStream:
        return self

    async def __anext__(self) -> list[FileChange]:
        if self._holding:
            self._queue.task_done()
            self._holding = False
        batch = await self._queue.get()
        self._holding = True
        return batch


class QueueEventSource(EventSource):
    """In-memory event source fed with :meth:`emit`.

    Streams are registered as soon as :meth:`changes` is called, so events
    emitted right after a watcher starts are never lost.
    """

    def __init__(self) -> None:
        self._queues: list[tuple[Path, asyncio.Queue[list[FileChange]]]] = []

    def changes(self, directory: Path) -> AsyncIterator[list[FileChange]]:
        queue: asyncio.Queue[list[FileChange]] = asyncio.Queue()
        self._queues.append((directory, queue))
        return _QueueStream(queue)

    def emit(self, path: Path | str, kind: ChangeKind = ChangeKind.MODIFIED) -> int:
        """Deliver a change to every stream watching an ancestor of *path*.

        Returns:
            The number of streams the change was delivered to.
        """
        path = Path(path)
        delivered = 0
        for directory, queue in self._queues:
            if path.is_relative_to(directory):
                queue.put_nowait([FileChange(path, kind)])
                delivered += 1
        return delivered

    async def join(self) -> None:
        """Wait until every emitted batch has been handled by its consumer."""
        await asyncio.gather(*(queue.join() for _, queue in self._queues))
