"""Tests for filesystem watcher module."""

import pytest
import time
from pathlib import Path

from watchdog.events import (
    DirDeletedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from filesync.config import SyncConfig
from filesync.exceptions import ObservationError
from filesync.fs_watcher import EventSource, FSEventHandler
from filesync.models import ChangeKind, WatchMode, WatchRoot


@pytest.fixture
def root(tmp_path):
    return WatchRoot.create(tmp_path)


class TestFSEventHandler:
    """Tests for FSEventHandler class."""

    def test_event_kinds(self, root):
        events = []
        handler = FSEventHandler(root, events.append, lambda e: None)
        path = str(root.path / "report.xls")

        handler.dispatch(FileCreatedEvent(path))
        handler.dispatch(FileModifiedEvent(path))
        handler.dispatch(FileDeletedEvent(path))

        assert [e.kind for e in events] == [ChangeKind.CREATED, ChangeKind.MODIFIED, ChangeKind.DELETED]
        assert all(e.src_path == Path(path) for e in events)

    def test_moved_event(self, root):
        events = []
        handler = FSEventHandler(root, events.append, lambda e: None)

        handler.dispatch(FileMovedEvent(str(root.path / "a.tmp"), str(root.path / "a.xls")))

        assert len(events) == 1
        assert events[0].kind is ChangeKind.RENAMED
        assert events[0].dest_path == root.path / "a.xls"

    def test_ignored_paths_dropped(self, tmp_path, root):
        config = SyncConfig(target_path=tmp_path, upload_url="http://x")
        events = []
        handler = FSEventHandler(root, events.append, lambda e: None, config.should_ignore)

        handler.dispatch(FileModifiedEvent(str(root.path / ".report.xls.swp")))
        handler.dispatch(FileMovedEvent(str(root.path / "a.xls"), str(root.path / "a.tmp")))
        handler.dispatch(FileModifiedEvent(str(root.path / "report.xls")))

        assert [e.src_path.name for e in events] == ["report.xls"]

    def test_root_deleted_reports_error(self, root):
        events, errors = [], []
        handler = FSEventHandler(root, events.append, errors.append)

        handler.dispatch(DirDeletedEvent(str(root.path)))

        assert events == []
        assert len(errors) == 1
        assert errors[0].path == root.path

    def test_root_moved_reports_error(self, root, tmp_path):
        errors = []
        handler = FSEventHandler(root, lambda e: None, errors.append)

        handler.dispatch(DirMovedEvent(str(root.path), str(tmp_path.parent / "elsewhere")))

        assert len(errors) == 1

    def test_callback_failure_reported(self, root):
        errors = []

        def broken(event):
            raise RuntimeError("boom")

        handler = FSEventHandler(root, broken, errors.append)
        handler.dispatch(FileModifiedEvent(str(root.path / "report.xls")))

        assert len(errors) == 1
        assert isinstance(errors[0], ObservationError)
        assert isinstance(errors[0].cause, RuntimeError)


class TestEventSource:
    """Tests for EventSource with a real observer."""

    def test_start_stop(self, root):
        source = EventSource(root, lambda e: None, lambda e: None)

        assert source.start() is True
        assert source.is_running
        assert source.start() is False

        assert source.stop() is True
        assert not source.is_running
        assert source.stop() is False

    def test_detects_modification(self, root):
        events = []
        source = EventSource(root, events.append, lambda e: None)
        source.start()
        try:
            time.sleep(0.3)
            (root.path / "report.xls").write_text("data")
            time.sleep(0.5)
        finally:
            source.stop()

        modified = [e for e in events if e.kind is ChangeKind.MODIFIED and e.src_path.name == "report.xls"]
        assert modified

    def test_recursive_sees_nested_files(self, root):
        sub = root.path / "a" / "b"
        sub.mkdir(parents=True)
        events = []
        source = EventSource(root, events.append, lambda e: None)
        source.start()
        try:
            time.sleep(0.3)
            (sub / "report.xls").write_text("data")
            time.sleep(0.5)
        finally:
            source.stop()

        assert any(e.src_path == sub / "report.xls" for e in events)

    def test_non_recursive_ignores_subdirectories(self, tmp_path):
        root = WatchRoot.create(tmp_path, WatchMode.NON_RECURSIVE)
        sub = root.path / "sub"
        sub.mkdir()
        events = []
        source = EventSource(root, events.append, lambda e: None)
        source.start()
        try:
            time.sleep(0.3)
            (sub / "nested.xls").write_text("data")
            (root.path / "top.xls").write_text("data")
            time.sleep(0.5)
        finally:
            source.stop()

        paths = {e.src_path for e in events}
        assert root.path / "top.xls" in paths
        assert sub / "nested.xls" not in paths

    def test_is_alive(self, root):
        source = EventSource(root, lambda e: None, lambda e: None)
        assert not source.is_alive

        source.start()
        try:
            assert source.is_alive
        finally:
            source.stop()

        assert not source.is_alive

    def test_is_alive_detects_dead_observer(self, root):
        source = EventSource(root, lambda e: None, lambda e: None)
        source.start()
        try:
            observer = source._observer
            observer.stop()
            observer.join(timeout=5.0)

            assert source.is_running
            assert not source.is_alive
        finally:
            source.stop()
