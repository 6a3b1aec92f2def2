import atexit
import logging
import queue
import tempfile
import time
from pathlib import Path
from typing import TYPE_CHECKING

from mdwiki.converter import (ChangeWatcher, Recompiler, check_converter_available,
                              discover_documents, scan_and_process_all_content)
from mdwiki.errors import OutputRootError, ServerStartupError, SourceDirectoryError
from mdwiki.web.server import WebServerThread, wait_for_server
from mdwiki.web.setup import create_app

if TYPE_CHECKING:
    from .supervisor import WikiManager

log = logging.getLogger("supervisor")


def verify_environment(manager: "WikiManager") -> None:
    """
    Checks that the source directory exists and the converter is installed.

    :param manager: The WikiManager instance.
    :raises SourceDirectoryError: If the source directory is missing.
    :raises ConverterUnavailableError: If the converter is not on PATH.
    """
    source_dir = manager.settings.SOURCE_DIR
    if not source_dir.is_dir():
        raise SourceDirectoryError(f"Source directory '{source_dir}' does not exist.")

    check_converter_available(manager.settings)


def create_output_root(manager: "WikiManager") -> Path:
    """
    Creates the ephemeral output directory and registers its removal at exit.

    :param manager: The WikiManager instance.
    :return Path: The new output root.
    :raises OutputRootError: If the directory cannot be created.
    """
    settings = manager.settings
    prefix = f"{settings.OUTPUT_DIR_PREFIX}{settings.SOURCE_DIR.name or 'root'}-"
    try:
        output_root = Path(tempfile.mkdtemp(prefix=prefix)).resolve()
    except OSError as e:
        raise OutputRootError(f"Could not create output directory: {e}") from e

    manager.output_root = output_root
    atexit.register(manager.remove_output_root)
    log.info(f"Output directory: {output_root}")
    return output_root


def perform_initial_content_processing(manager: "WikiManager") -> None:
    """
    Discovers every document and converts all of them before anything is served.

    :param manager: The WikiManager instance.
    :raises SourceTreeError: If the source tree cannot be walked.
    """
    log.info("--- Performing initial content scan ---")
    manager.documents = discover_documents(manager.settings)
    manager.build_report = scan_and_process_all_content(manager.documents, manager.output_root, manager.settings)
    report = manager.build_report
    log.info(
        f"Wiki built: {len(report.converted)} page(s) converted, {len(report.failed)} failed "
        f"in {report.duration:.2f}s."
    )


def _raise_pending_server_error(manager: "WikiManager") -> None:
    try:
        error = manager.fatal_errors.get_nowait()
    except queue.Empty:
        raise ServerStartupError("Web server stopped before it became reachable.")
    raise error


def wait_for_web_server(manager: "WikiManager") -> None:
    """
    Waits for the web server to accept connections.

    :param manager: The WikiManager instance.
    :raises ServerStartupError: If the server dies or does not come up in time.
    """
    settings = manager.settings
    host, port = settings.WEB_SERVER_HOST, settings.WEB_SERVER_PORT
    timeout = settings.SERVER_STARTUP_TIMEOUT

    log.info(f"Waiting for web server at {host}:{port}...")
    start_time = time.monotonic()
    while time.monotonic() - start_time < timeout:
        if not manager.server_thread.is_alive():
            _raise_pending_server_error(manager)
        if wait_for_server(host, port, timeout=0.5):
            log.info("Web server is up and listening.")
            return
    raise ServerStartupError(f"Web server did not become available after {timeout} seconds.")


def start_background_services(manager: "WikiManager") -> None:
    """
    Starts the web server, the change watcher and the recompiler.

    :param manager: The WikiManager instance.
    """
    settings = manager.settings

    app = create_app(manager.output_root, settings)
    manager.server_thread = WebServerThread(app, settings, manager.fatal_errors)
    manager.server_thread.start()

    manager.watcher = ChangeWatcher(settings, manager.change_queue)
    manager.watcher.start(manager.documents)

    wait_for_web_server(manager)

    manager.recompiler = Recompiler(settings, manager.output_root, manager.change_queue)
    manager.recompiler.start()
