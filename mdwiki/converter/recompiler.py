import logging
import queue
import threading
from pathlib import Path
from typing import Callable, Optional, TYPE_CHECKING

from mdwiki.converter.worker import process_document
from mdwiki.errors import ConversionError

if TYPE_CHECKING:
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("recompiler")

CompileFn = Callable[[str, Path, "WikiSettings"], Path]


class Recompiler(threading.Thread):
    """
    Consumes Change Events and recompiles one document at a time.

    This is the only writer to the output root once the bulk build has
    finished. A failed recompile leaves the previous artifact in place.
    """

    def __init__(
        self,
        settings: "WikiSettings",
        output_root: Path,
        changes: "queue.Queue[str]",
        compile_fn: CompileFn = process_document,
        poll_timeout: float = 0.5,
    ) -> None:
        super().__init__(name="Recompiler", daemon=True)
        self.settings = settings
        self.output_root = output_root
        self.changes = changes
        self.compile_fn = compile_fn
        self.poll_timeout = poll_timeout
        self.processed = 0
        self._stop_event = threading.Event()

    def run(self) -> None:
        log.info("Recompiler started.")
        while not self._stop_event.is_set():
            try:
                rel_path = self.changes.get(timeout=self.poll_timeout)
            except queue.Empty:
                continue
            try:
                self.recompile(rel_path)
            finally:
                self.changes.task_done()
        log.info("Recompiler stopped.")

    def recompile(self, rel_path: str) -> bool:
        """
        Runs the compile step for one changed document.

        :param rel_path: The changed document's relative path.
        :return bool: True if the artifact was rewritten.
        """
        log.info(f"Recompiling '{rel_path}'...")
        try:
            self.compile_fn(rel_path, self.output_root, self.settings)
        except ConversionError as e:
            log.error(f"Could not parse file '{rel_path}': {e}")
            return False
        except OSError as e:
            log.error(f"Could not write output for '{rel_path}': {e}")
            return False
        except Exception as e:
            log.error(f"Unhandled exception recompiling '{rel_path}': {e}", exc_info=True)
            return False
        finally:
            self.processed += 1

        log.info(f"Recompiled '{rel_path}'.")
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """Asks the loop to exit after the current document and waits for it."""
        self._stop_event.set()
        if self.is_alive():
            self.join(timeout=timeout)
            if self.is_alive():
                log.warning("Recompiler did not stop in time.")
