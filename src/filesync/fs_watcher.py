"""File system event source using the watchdog library."""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .exceptions import ObservationError, WatchError
from .models import ChangeKind, RawEvent, WatchRoot

logger = logging.getLogger(__name__)


def _to_path(raw) -> Path:
    return Path(os.fsdecode(raw))


class FSEventHandler(FileSystemEventHandler):
    """Handler that converts watchdog events to RawEvent."""

    def __init__(
        self,
        root: WatchRoot,
        on_event: Callable[[RawEvent], None],
        on_error: Callable[[ObservationError], None],
        should_ignore: Optional[Callable[[Path], bool]] = None,
    ):
        super().__init__()
        self.root = root
        self.on_event = on_event
        self.on_error = on_error
        self.should_ignore = should_ignore

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            super().dispatch(event)
        except Exception as e:
            self.on_error(ObservationError(
                f"Failed to handle {event.event_type} event for {event.src_path!r}: {e}",
                path=_to_path(event.src_path) if event.src_path else None,
                cause=e,
            ))

    def _is_root(self, path: Path) -> bool:
        return path == self.root.path

    def _emit(self, kind: ChangeKind, src_path: Path, dest_path: Optional[Path] = None, is_directory: bool = False):
        """Emit a RawEvent to the callback."""
        if self.should_ignore is not None:
            if self.should_ignore(src_path):
                return
            if dest_path is not None and self.should_ignore(dest_path):
                return

        self.on_event(RawEvent(
            kind=kind,
            src_path=src_path,
            dest_path=dest_path,
            is_directory=is_directory,
            timestamp=time.time(),
        ))

    def on_created(self, event):
        self._emit(ChangeKind.CREATED, _to_path(event.src_path), is_directory=event.is_directory)

    def on_deleted(self, event):
        path = _to_path(event.src_path)
        if event.is_directory and self._is_root(path):
            self.on_error(ObservationError(f"Watch root was deleted: {path}", path=path))
            return
        self._emit(ChangeKind.DELETED, path, is_directory=event.is_directory)

    def on_modified(self, event):
        self._emit(ChangeKind.MODIFIED, _to_path(event.src_path), is_directory=event.is_directory)

    def on_moved(self, event):
        src_path = _to_path(event.src_path)
        if event.is_directory and self._is_root(src_path):
            self.on_error(ObservationError(f"Watch root was moved away: {src_path}", path=src_path))
            return
        self._emit(
            ChangeKind.RENAMED,
            src_path,
            _to_path(event.dest_path),
            is_directory=event.is_directory,
        )


class EventSource:
    """
    Observes one watch root and reports raw events and observation errors.

    The watchdog observer runs on its own background thread; callbacks
    are invoked from that thread.
    """

    def __init__(
        self,
        root: WatchRoot,
        on_event: Callable[[RawEvent], None],
        on_error: Callable[[ObservationError], None],
        should_ignore: Optional[Callable[[Path], bool]] = None,
    ):
        """
        Initialize the event source.

        Args:
            root: Directory to observe and its mode
            on_event: Callback for raw filesystem events
            on_error: Callback for observation errors
            should_ignore: Predicate for paths to drop at the source
        """
        self.root = root
        self._handler = FSEventHandler(root, on_event, on_error, should_ignore)
        self._observer: Optional[Observer] = None
        self._lock = threading.Lock()

    def start(self) -> bool:
        """
        Start observing the root.

        Returns:
            True if observation started, False if already running

        Raises:
            WatchError: If the observer cannot be scheduled or started
        """
        with self._lock:
            if self._observer is not None:
                return False

            observer = Observer()
            try:
                observer.schedule(self._handler, str(self.root.path), recursive=self.root.recursive)
                observer.start()
            except OSError as e:
                raise WatchError(f"Cannot watch {self.root.path}: {e}") from e

            self._observer = observer
            logger.info(
                f"Watching {self.root.path} ({'recursive' if self.root.recursive else 'single-level'})"
            )
            return True

    def stop(self, timeout: float = 5.0) -> bool:
        """
        Stop observing.

        Args:
            timeout: Seconds to wait for the observer thread

        Returns:
            True if observation stopped, False if it was not running
        """
        with self._lock:
            if self._observer is None:
                return False

            observer = self._observer
            self._observer = None

        observer.stop()
        observer.join(timeout=timeout)
        logger.info(f"Stopped watching {self.root.path}")
        return True

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._observer is not None

    @property
    def is_alive(self) -> bool:
        """
        Check that the observer and all of its emitters are still running.

        An emitter thread exits on its own when the backend fails, e.g.
        when the inotify watch limit is reached for a new subdirectory.
        """
        with self._lock:
            observer = self._observer
        if observer is None or not observer.is_alive():
            return False
        return all(emitter.is_alive() for emitter in observer.emitters)
