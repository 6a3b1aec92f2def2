"""Tests for mdwiki.converter.handler: per-document change detection."""

import queue
import threading
import time
from pathlib import Path

import pytest
from watchdog.events import DirModifiedEvent, FileModifiedEvent, FileMovedEvent

from mdwiki.converter.documents import TrackedDocument, discover_documents
from mdwiki.converter.handler import ChangeWatcher, ContentChangeHandler, check_document, emit_change
from mdwiki.errors import WikiError


def tracked(source_tree: Path, rel_path: str) -> TrackedDocument:
    document = TrackedDocument(rel_path, source_tree.joinpath(*rel_path.split("/")))
    document.observe(document.source_path.stat())
    return document


def wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return False


# ---------------------------------------------------------------------------
# Single checks
# ---------------------------------------------------------------------------


class TestCheckDocument:
    def test_unchanged_emits_nothing(self, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        assert not check_document(tracked(source_tree, "index.md"), changes, threading.Event(), 0.1)
        assert changes.empty()

    def test_size_change_emits_once(self, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        document = tracked(source_tree, "a/b.md")
        (source_tree / "a" / "b.md").write_text("# Hello again, longer now\n", encoding="utf-8")

        assert check_document(document, changes, threading.Event(), 0.1)
        assert changes.get_nowait() == "a/b.md"
        # The new state was adopted, so a second check is quiet.
        assert not check_document(document, changes, threading.Event(), 0.1)

    def test_stat_failure_keeps_previous_state(self, source_tree: Path, caplog: pytest.LogCaptureFixture) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        document = tracked(source_tree, "a/b.md")
        before = document.signature
        (source_tree / "a" / "b.md").unlink()

        assert not check_document(document, changes, threading.Event(), 0.1)
        assert document.signature == before
        assert "Could not get file info" in caplog.text

    def test_never_observed_document_counts_as_changed(self, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        document = TrackedDocument("index.md", source_tree / "index.md")
        assert check_document(document, changes, threading.Event(), 0.1)


class TestEmitChange:
    def test_gives_up_when_stopped(self) -> None:
        changes: "queue.Queue[str]" = queue.Queue(maxsize=1)
        changes.put("first.md")
        stop = threading.Event()
        stop.set()
        assert not emit_change(changes, "second.md", stop, 0.05)

    def test_waits_for_room(self) -> None:
        changes: "queue.Queue[str]" = queue.Queue(maxsize=1)
        changes.put("first.md")
        results = []
        worker = threading.Thread(target=lambda: results.append(emit_change(changes, "second.md", threading.Event(), 0.05)))
        worker.start()
        time.sleep(0.2)
        assert changes.get_nowait() == "first.md"
        worker.join(timeout=5)
        assert results == [True]
        assert changes.get_nowait() == "second.md"


# ---------------------------------------------------------------------------
# Polling backend
# ---------------------------------------------------------------------------


class TestChangeWatcherPolling:
    def test_detects_edit(self, settings, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue(maxsize=10)
        watcher = ChangeWatcher(settings, changes)
        watcher.start(discover_documents(settings))
        try:
            assert watcher.is_running
            time.sleep(0.1)
            (source_tree / "a" / "b.md").write_text("# Hello, edited\n", encoding="utf-8")
            assert changes.get(timeout=5) == "a/b.md"
        finally:
            watcher.stop(timeout=5)
        assert not watcher.is_running

    def test_keeps_watching_after_file_disappears(self, settings, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue(maxsize=10)
        watcher = ChangeWatcher(settings, changes)
        watcher.start(discover_documents(settings))
        try:
            path = source_tree / "a" / "b.md"
            path.unlink()
            time.sleep(0.3)
            assert changes.empty()
            path.write_text("# Back again with more text\n", encoding="utf-8")
            assert changes.get(timeout=5) == "a/b.md"
        finally:
            watcher.stop(timeout=5)

    def test_stop_ends_all_pollers(self, settings) -> None:
        watcher = ChangeWatcher(settings, queue.Queue(maxsize=10))
        watcher.start(discover_documents(settings))
        watcher.stop(timeout=5)
        assert not watcher.is_running

    def test_unknown_backend(self, make_settings) -> None:
        with pytest.raises(WikiError):
            ChangeWatcher(make_settings(WATCH_BACKEND="inotify"), queue.Queue())


# ---------------------------------------------------------------------------
# Watchdog backend
# ---------------------------------------------------------------------------


class TestContentChangeHandler:
    def make_handler(self, source_tree: Path, changes: "queue.Queue[str]") -> ContentChangeHandler:
        documents = [tracked(source_tree, "index.md"), tracked(source_tree, "a/b.md")]
        return ContentChangeHandler(documents, changes, threading.Event(), 0.1)

    def test_modified_event(self, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        handler = self.make_handler(source_tree, changes)
        path = source_tree / "a" / "b.md"
        path.write_text("# Hello, edited\n", encoding="utf-8")
        handler.dispatch(FileModifiedEvent(str(path)))
        assert changes.get_nowait() == "a/b.md"

    def test_move_onto_tracked_document(self, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        handler = self.make_handler(source_tree, changes)
        path = source_tree / "index.md"
        temp = source_tree / ".index.md.swp"
        temp.write_text("# Home, saved via rename\n", encoding="utf-8")
        temp.replace(path)
        handler.dispatch(FileMovedEvent(str(temp), str(path)))
        assert changes.get_nowait() == "index.md"

    def test_untracked_and_directory_events_ignored(self, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        handler = self.make_handler(source_tree, changes)
        handler.dispatch(FileModifiedEvent(str(source_tree / "notes.txt")))
        handler.dispatch(DirModifiedEvent(str(source_tree / "a")))
        assert changes.empty()

    def test_event_without_change_is_quiet(self, source_tree: Path) -> None:
        changes: "queue.Queue[str]" = queue.Queue()
        handler = self.make_handler(source_tree, changes)
        handler.dispatch(FileModifiedEvent(str(source_tree / "index.md")))
        assert changes.empty()


class TestChangeWatcherWatchdog:
    def test_detects_edit(self, make_settings, source_tree: Path) -> None:
        settings = make_settings(WATCH_BACKEND="watchdog")
        changes: "queue.Queue[str]" = queue.Queue(maxsize=10)
        watcher = ChangeWatcher(settings, changes)
        watcher.start(discover_documents(settings))
        try:
            assert wait_until(lambda: watcher.is_running)
            time.sleep(0.2)
            (source_tree / "a" / "b.md").write_text("# Hello from watchdog\n", encoding="utf-8")
            assert changes.get(timeout=5) == "a/b.md"
        finally:
            watcher.stop(timeout=5)
