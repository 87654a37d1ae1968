"""
File-change detection for generated enum files.

Everything here is single-threaded: the watcher is polled, events are
queued, and the sync service drains the queue synchronously. Polling keeps
the watcher dependency-free and cross-platform.

Two independent mtime maps are involved:
- FileWatcher keeps the mtimes seen on its last poll, to notice changes;
- RevisionTracker keeps the last mtime actually handled per path, so a
  revision is processed at most once no matter how many events name it.
"""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

logger = logging.getLogger(__name__)


class EventKind(StrEnum):
    """Triggers the sync service reacts to."""

    FILE_CHANGED = "file_changed"  # generated file created or modified
    BUILD_FINISHED = "build_finished"  # flush files held until the build ends
    STARTUP_SCAN = "startup_scan"  # check every generated file
    APPLY_REQUESTED = "apply_requested"  # regenerate one definition's file


@dataclass(frozen=True)
class SyncEvent:
    """One queued trigger."""

    kind: EventKind
    path: Path | None = None
    enum_name: str | None = None


class EventQueue:
    """FIFO of SyncEvents."""

    def __init__(self) -> None:
        self._events: deque[SyncEvent] = deque()

    def put(self, event: SyncEvent) -> None:
        self._events.append(event)

    def get(self) -> SyncEvent | None:
        return self._events.popleft() if self._events else None

    def drain(self) -> Iterator[SyncEvent]:
        """Yield events until the queue is empty, including ones added meanwhile."""
        while self._events:
            yield self._events.popleft()

    def __len__(self) -> int:
        return len(self._events)


class RevisionTracker:
    """Last handled modification time per file."""

    def __init__(self) -> None:
        self._handled: dict[Path, float] = {}

    @staticmethod
    def _key(path: Path) -> Path:
        return path.resolve()

    def is_new(self, path: Path, mtime: float) -> bool:
        """True if ``mtime`` is newer than the last handled revision of ``path``."""
        last = self._handled.get(self._key(path))
        return last is None or mtime > last

    def record(self, path: Path, mtime: float) -> None:
        self._handled[self._key(path)] = mtime

    def forget(self, path: Path) -> None:
        self._handled.pop(self._key(path), None)

    def last_handled(self, path: Path) -> float | None:
        return self._handled.get(self._key(path))


class FileWatcher:
    """
    Polls a directory for new or modified files and queues FILE_CHANGED.

    Only the directory itself is watched, not subdirectories.
    """

    def __init__(self, directory: Path, queue: EventQueue, pattern: str = "*.cs"):
        self.directory = directory
        self.queue = queue
        self.pattern = pattern
        self._file_mtimes: dict[Path, float] = {}

    def _scan_files(self) -> dict[Path, float]:
        """Return the mtimes of all matching files."""
        mtimes: dict[Path, float] = {}
        if not self.directory.is_dir():
            return mtimes
        for file_path in self.directory.glob(self.pattern):
            try:
                if file_path.is_file():
                    mtimes[file_path] = file_path.stat().st_mtime
            except OSError:
                # Deleted between glob and stat
                continue
        return mtimes

    def prime(self) -> None:
        """Record current mtimes without queuing anything."""
        self._file_mtimes = self._scan_files()

    def poll(self) -> list[Path]:
        """
        Queue a FILE_CHANGED event for each new or modified file.

        Returns:
            The changed paths, in sorted order
        """
        current = self._scan_files()
        changed = sorted(
            path
            for path, mtime in current.items()
            if path not in self._file_mtimes or mtime > self._file_mtimes[path]
        )
        self._file_mtimes = current

        for path in changed:
            logger.debug("Detected change in %s", path)
            self.queue.put(SyncEvent(EventKind.FILE_CHANGED, path=path))
        return changed

    def run(
        self,
        process: Callable[[], object],
        poll_interval: float = 0.5,
        max_cycles: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """
        Poll, hand the queue to ``process``, sleep; repeat.

        Runs until interrupted, or for ``max_cycles`` cycles when given.

        Returns:
            Number of completed cycles
        """
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            self.poll()
            if self.queue:
                process()
            cycles += 1
            if max_cycles is None or cycles < max_cycles:
                sleep(poll_interval)
        return cycles


__all__ = [
    "EventKind",
    "SyncEvent",
    "EventQueue",
    "RevisionTracker",
    "FileWatcher",
]
