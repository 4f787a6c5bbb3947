"""Coalesce bursts of raw filesystem events into settled batches."""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from .exceptions import ObservationError
from .models import ChangeKind, RawEvent, SettledBatch, SettledChange


@dataclass
class PendingPath:
    """A path waiting for its quiet window to elapse."""
    path: Path
    kind: ChangeKind
    first_seen: float
    last_seen: float
    event_count: int = 1

    def settle(self) -> SettledChange:
        return SettledChange(
            path=self.path,
            kind=self.kind,
            first_seen=self.first_seen,
            last_seen=self.last_seen,
            event_count=self.event_count,
        )


class Debouncer:
    """
    Debounces rapid file change events per path.

    Every event on a path restarts that path's quiet window and
    replaces its recorded kind, so an editor that writes, truncates
    and writes again produces a single settled change carrying the
    kind of the last event. Paths settle independently of each other.
    """

    def __init__(self, debounce_ms: int = 2000):
        """
        Initialize the debouncer.

        Args:
            debounce_ms: Quiet window in milliseconds
        """
        self.debounce_ms = debounce_ms
        self._pending: Dict[Path, PendingPath] = {}
        self._errors: List[ObservationError] = []
        self._lock = threading.Lock()

    def add(self, event: RawEvent) -> None:
        """
        Record a raw event.

        Args:
            event: The raw event; both paths of a rename are recorded
        """
        with self._lock:
            for path in event.paths:
                existing = self._pending.pop(path, None)
                if existing is None:
                    self._pending[path] = PendingPath(
                        path=path,
                        kind=event.kind,
                        first_seen=event.timestamp,
                        last_seen=event.timestamp,
                    )
                    continue

                existing.kind = event.kind
                existing.last_seen = max(existing.last_seen, event.timestamp)
                existing.event_count += 1
                self._pending[path] = existing

    def add_error(self, error: ObservationError) -> None:
        """Queue an observation error; errors are emitted on the next flush."""
        with self._lock:
            self._errors.append(error)

    def flush(self, current_time: float) -> List[SettledBatch]:
        """
        Collect everything that is ready to emit.

        Args:
            current_time: Current timestamp

        Returns:
            An error batch if errors were queued, followed by a batch of
            paths whose quiet window has elapsed. Empty if nothing is ready.
        """
        window_sec = self.debounce_ms / 1000.0
        batches: List[SettledBatch] = []

        with self._lock:
            if self._errors:
                batches.append(SettledBatch(errors=list(self._errors)))
                self._errors.clear()

            ready = [
                pending for pending in self._pending.values()
                if (current_time - pending.last_seen) >= window_sec
            ]
            for pending in ready:
                del self._pending[pending.path]

        if ready:
            batches.append(SettledBatch(changes=[pending.settle() for pending in ready]))

        return batches

    def pending_count(self) -> int:
        """Get number of paths still inside their quiet window."""
        with self._lock:
            return len(self._pending)

    def clear(self) -> None:
        """Drop all pending paths and errors."""
        with self._lock:
            self._pending.clear()
            self._errors.clear()
