import asyncio
import logging
import queue
import socket
import threading
import time
from typing import Optional, TYPE_CHECKING

from hypercorn.asyncio import serve
from hypercorn.config import Config
from starlette.applications import Starlette

from mdwiki.errors import ServerStartupError

if TYPE_CHECKING:
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("web_server")


def build_hypercorn_config(settings: "WikiSettings") -> Config:
    """Creates the Hypercorn config for one bind address."""
    config = Config()
    config.bind = [f"{settings.WEB_SERVER_HOST}:{settings.WEB_SERVER_PORT}"]
    config.graceful_timeout = float(settings.SHUTDOWN_TIMEOUT_SECONDS)
    config.errorlog = logging.getLogger("hypercorn.error")
    config.accesslog = logging.getLogger("hypercorn.access") if settings.ACCESS_LOG_ENABLED else None
    return config


class WebServerThread(threading.Thread):
    """
    Runs the ASGI app under Hypercorn in a private event loop.

    The thread never ends the process. If the server cannot start (most often
    because the port is taken), a ServerStartupError is put on `fatal_errors`
    for the lifecycle controller to act on.
    """

    def __init__(self, app: Starlette, settings: "WikiSettings", fatal_errors: "queue.Queue[BaseException]") -> None:
        super().__init__(name="WebServer", daemon=True)
        self.app = app
        self.settings = settings
        self.fatal_errors = fatal_errors
        self.config = build_hypercorn_config(settings)

        self._stop_requested = threading.Event()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._shutdown_event: Optional[asyncio.Event] = None

    @property
    def address(self) -> str:
        return f"http://{self.settings.WEB_SERVER_HOST}:{self.settings.WEB_SERVER_PORT}"

    def run(self) -> None:
        try:
            asyncio.run(self._serve())
        except OSError as e:
            log.error(f"Web server could not bind to {self.address}: {e}")
            self.fatal_errors.put(ServerStartupError(f"Could not start web server on {self.address}: {e}"))
        except Exception as e:
            log.error(f"Web server crashed: {e}", exc_info=True)
            self.fatal_errors.put(ServerStartupError(f"Web server stopped unexpectedly: {e}"))
        else:
            log.info("Web server stopped.")

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()
        if self._stop_requested.is_set():
            return

        log.info(f"Serving wiki at {self.address}")
        # Passing a shutdown trigger keeps Hypercorn from installing its own signal handlers.
        await serve(self.app, self.config, shutdown_trigger=self._shutdown_event.wait)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Triggers Hypercorn's graceful shutdown and waits for the thread."""
        self._stop_requested.set()
        loop, shutdown_event = self._loop, self._shutdown_event
        if loop is not None and shutdown_event is not None:
            try:
                loop.call_soon_threadsafe(shutdown_event.set)
            except RuntimeError:
                # Loop already closed.
                pass

        if self.is_alive():
            self.join(timeout=timeout)
            if self.is_alive():
                log.warning("Web server did not stop in time.")


def wait_for_server(host: str, port: int, timeout: float) -> bool:
    """
    Waits until a TCP connection to the server succeeds.

    :param host: The bind host. Wildcard addresses are checked on loopback.
    :param port: The bind port.
    :param timeout: Seconds to wait before giving up.
    :return bool: True if the server accepted a connection in time.
    """
    connect_host = {"0.0.0.0": "127.0.0.1", "::": "::1", "": "127.0.0.1"}.get(host, host)
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection((connect_host, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.1)
    return False
