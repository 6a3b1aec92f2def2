import atexit
import logging
import shutil
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .supervisor import WikiManager

log = logging.getLogger("supervisor")


def stop_background_services(manager: "WikiManager") -> None:
    """
    Stops the watcher, the recompiler and the web server, in that order.

    Each step is bounded by `SHUTDOWN_TIMEOUT_SECONDS`. Components that were
    never started are skipped.

    :param manager: The WikiManager instance.
    """
    timeout = manager.settings.SHUTDOWN_TIMEOUT_SECONDS

    if manager.watcher is not None:
        manager.watcher.stop(timeout=timeout)
        manager.watcher = None

    if manager.recompiler is not None:
        manager.recompiler.stop(timeout=timeout)
        manager.recompiler = None

    if manager.server_thread is not None:
        manager.server_thread.stop(timeout=timeout)
        manager.server_thread = None


def remove_output_root(manager: "WikiManager") -> None:
    """
    Deletes the output root. Safe to call from several places; only the first call removes anything.

    :param manager: The WikiManager instance.
    """
    with manager.cleanup_lock:
        output_root = manager.output_root
        if output_root is None:
            return
        manager.output_root = None
        atexit.unregister(manager.remove_output_root)

    try:
        shutil.rmtree(output_root)
    except FileNotFoundError:
        log.debug(f"Output directory '{output_root}' was already gone.")
    except OSError as e:
        log.error(f"Could not remove output directory '{output_root}': {e}")
    else:
        log.info(f"Removed output directory '{output_root}'.")
