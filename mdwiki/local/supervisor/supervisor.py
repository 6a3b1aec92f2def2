import logging
import queue
import signal
import threading
import time
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from mdwiki.errors import EXIT_OK, WikiError
from mdwiki.local.supervisor import shutdown, startup

if TYPE_CHECKING:
    from mdwiki.converter import BuildReport, ChangeWatcher, Recompiler, TrackedDocument
    from mdwiki.local.config import WikiSettings
    from mdwiki.web.server import WebServerThread

log = logging.getLogger("supervisor")


class WikiManager:
    """
    Owns the lifecycle of one wiki run.

    It builds the wiki, starts the web server, the change watcher and the
    recompiler, waits for an interrupt or a fatal error, and tears everything
    down again. It is the only place that decides the process exit status.
    """

    def __init__(self, settings: "WikiSettings") -> None:
        self.settings = settings

        self.shutdown_signal_received = threading.Event()
        self.fatal_errors: "queue.Queue[BaseException]" = queue.Queue()
        self.change_queue: "queue.Queue[str]" = queue.Queue(maxsize=max(1, settings.CHANGE_QUEUE_SIZE))
        self.cleanup_lock = threading.Lock()

        self.output_root: Optional[Path] = None
        self.documents: List["TrackedDocument"] = []
        self.build_report: Optional["BuildReport"] = None
        self.server_thread: Optional["WebServerThread"] = None
        self.watcher: Optional["ChangeWatcher"] = None
        self.recompiler: Optional["Recompiler"] = None
        self.start_time: Optional[float] = None

    def _handle_interrupt(self, signum, frame) -> None:
        log.info("Interrupt received, shutting down...")
        self.shutdown_signal_received.set()

    def start_all(self) -> None:
        """
        Runs every startup step in order.

        :raises WikiError: If any step fails. Already-started parts are left for `stop_all`.
        """
        log.info("=" * 20 + " MDWiki Starting " + "=" * 20)
        self.start_time = time.time()

        startup.verify_environment(self)
        startup.create_output_root(self)
        startup.perform_initial_content_processing(self)

        if self.shutdown_signal_received.is_set():
            return

        startup.start_background_services(self)
        log.info(f"All services started in {time.time() - self.start_time:.2f} seconds.")

    def wait_for_shutdown(self) -> int:
        """
        Blocks until an interrupt or a fatal error.

        :return int: The exit status.
        """
        while not self.shutdown_signal_received.is_set():
            try:
                error = self.fatal_errors.get(timeout=0.2)
            except queue.Empty:
                continue
            log.critical(f"Fatal error: {error}")
            return getattr(error, "exit_code", 1)
        return EXIT_OK

    def stop_all(self) -> None:
        """Stops all services and removes the output directory. Safe to call more than once."""
        self.shutdown_signal_received.set()
        shutdown.stop_background_services(self)
        self.remove_output_root()

        if self.start_time:
            log.info(f"Stop sequence completed. Total runtime: {time.strftime('%H:%M:%S', time.gmtime(time.time() - self.start_time))}")
        else:
            log.info("Stop sequence completed.")

    def remove_output_root(self) -> None:
        shutdown.remove_output_root(self)

    def run(self) -> int:
        """
        Runs the wiki until interrupted.

        :return int: 0 after an interrupt, otherwise the exit code of the fatal error.
        """
        previous_handler = None
        if threading.current_thread() is threading.main_thread():
            previous_handler = signal.signal(signal.SIGINT, self._handle_interrupt)

        try:
            try:
                self.start_all()
            except WikiError as e:
                log.critical(f"Startup failed: {e}")
                return e.exit_code
            return self.wait_for_shutdown()
        finally:
            self.stop_all()
            if previous_handler is not None:
                signal.signal(signal.SIGINT, previous_handler)
