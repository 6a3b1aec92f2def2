import logging
import os
import queue
import threading
from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from mdwiki.errors import WikiError

if TYPE_CHECKING:
    from mdwiki.converter.documents import TrackedDocument
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("change_watcher")

WATCH_BACKENDS = ("poll", "watchdog")


def emit_change(changes: "queue.Queue[str]", rel_path: str, stop_event: threading.Event, retry_interval: float) -> bool:
    """
    Puts a Change Event on the shared queue, waiting while the queue is full.

    :return bool: True once delivered, False if the watcher was stopped first.
    """
    while not stop_event.is_set():
        try:
            changes.put(rel_path, timeout=retry_interval)
            return True
        except queue.Full:
            log.debug(f"Change queue is full; holding change for '{rel_path}'.")
    return False


def check_document(
    document: "TrackedDocument",
    changes: "queue.Queue[str]",
    stop_event: threading.Event,
    retry_interval: float,
) -> bool:
    """
    Re-stats one document and emits a Change Event if its size or mtime moved.

    A failed stat is logged and the previous observation is kept, so a file
    that is briefly missing (e.g. while an editor replaces it) does not stop
    it from being watched.

    :return bool: True if a change was emitted.
    """
    try:
        stat_result = document.source_path.stat()
    except OSError as e:
        log.warning(f"Could not get file info for '{document.rel_path}': {e}")
        return False

    if (stat_result.st_size, stat_result.st_mtime_ns) == document.signature:
        return False

    if not emit_change(changes, document.rel_path, stop_event, retry_interval):
        return False

    log.info(f"Change detected in '{document.rel_path}'.")
    document.observe(stat_result)
    return True


class DocumentPoller(threading.Thread):
    """Polls a single document's size and mtime until the stop event is set."""

    def __init__(
        self,
        document: "TrackedDocument",
        changes: "queue.Queue[str]",
        stop_event: threading.Event,
        interval: float,
    ) -> None:
        super().__init__(name=f"Watch:{document.rel_path}", daemon=True)
        self.document = document
        self.changes = changes
        self.stop_event = stop_event
        self.interval = interval

    def run(self) -> None:
        while not self.stop_event.wait(self.interval):
            check_document(self.document, self.changes, self.stop_event, self.interval)


class ContentChangeHandler(FileSystemEventHandler):
    """A watchdog event handler that turns events on tracked documents into Change Events."""

    def __init__(
        self,
        documents: Sequence["TrackedDocument"],
        changes: "queue.Queue[str]",
        stop_event: threading.Event,
        retry_interval: float,
    ) -> None:
        super().__init__()
        self.documents: Dict[str, "TrackedDocument"] = {
            os.path.normpath(str(d.source_path)): d for d in documents
        }
        self.changes = changes
        self.stop_event = stop_event
        self.retry_interval = retry_interval

    def on_any_event(self, event: FileSystemEvent) -> None:
        """The main event handler method for watchdog, called on any file change."""
        if event.is_directory:
            return

        # Editors that save through a temporary file show up as a move onto the document.
        for raw_path in (event.src_path, getattr(event, "dest_path", "")):
            if not raw_path:
                continue
            path = os.fsdecode(raw_path)
            document = self.documents.get(os.path.normpath(path))
            if document is None:
                continue
            log.debug(f"Watchdog event: {event.event_type} on {path}")
            check_document(document, self.changes, self.stop_event, self.retry_interval)


class ChangeWatcher:
    """
    Watches every document discovered at startup and feeds the shared change queue.

    With the 'poll' backend, one DocumentPoller thread runs per document. With
    the 'watchdog' backend, a single observer thread receives filesystem
    notifications for the source tree. Both emit the same Change Events, and
    both stop when `stop()` sets the shared stop event.
    """

    def __init__(self, settings: "WikiSettings", changes: "queue.Queue[str]") -> None:
        if settings.WATCH_BACKEND not in WATCH_BACKENDS:
            raise WikiError(
                f"Unknown WATCH_BACKEND '{settings.WATCH_BACKEND}'. Expected one of: {', '.join(WATCH_BACKENDS)}."
            )
        self._settings = settings
        self._changes = changes
        self._stop_event = threading.Event()
        self._pollers: List[DocumentPoller] = []
        self._observer: Optional[Observer] = None

    @property
    def is_running(self) -> bool:
        """Whether any watcher thread is alive."""
        if self._observer is not None and self._observer.is_alive():
            return True
        return any(p.is_alive() for p in self._pollers)

    def start(self, documents: Sequence["TrackedDocument"]) -> None:
        """Starts watching the given documents."""
        if self.is_running:
            return

        self._stop_event.clear()
        if self._settings.WATCH_BACKEND == "watchdog":
            self._start_observer(documents)
        else:
            self._start_pollers(documents)

    def _start_pollers(self, documents: Sequence["TrackedDocument"]) -> None:
        interval = self._settings.POLL_INTERVAL_SECONDS
        self._pollers = [DocumentPoller(d, self._changes, self._stop_event, interval) for d in documents]
        for poller in self._pollers:
            poller.start()
        log.info(f"Polling {len(self._pollers)} document(s) every {interval}s.")

    def _start_observer(self, documents: Sequence["TrackedDocument"]) -> None:
        event_handler = ContentChangeHandler(
            documents, self._changes, self._stop_event, self._settings.POLL_INTERVAL_SECONDS
        )
        self._observer = Observer()
        self._observer.schedule(event_handler, str(self._settings.SOURCE_DIR), recursive=True)
        self._observer.start()
        log.info(f"Watching {len(documents)} document(s) for filesystem notifications.")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signals every watcher thread to stop and waits for them to finish."""
        self._stop_event.set()

        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=timeout)
            self._observer = None

        for poller in self._pollers:
            poller.join(timeout=timeout)
        alive = [p.name for p in self._pollers if p.is_alive()]
        if alive:
            log.warning(f"{len(alive)} watcher thread(s) did not stop in time.")
        self._pollers = []
        log.info("Change watcher stopped.")
