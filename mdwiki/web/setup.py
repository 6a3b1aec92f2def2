import html
import logging
import os
import stat
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING
from urllib.parse import quote

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import FileResponse, HTMLResponse, RedirectResponse, Response
from starlette.routing import Route

from mdwiki.web.middleware import SecurityHeadersMiddleware

if TYPE_CHECKING:
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("web_server")

NOT_FOUND_HTML = "<h1>404 - Page Not Found</h1>"
INDEX_FILENAME = "index.html"


#* --- Path Helpers ---
def resolve_request_path(output_root: Path, web_path: str) -> Optional[Path]:
    """
    Maps a request path onto the output root.

    :param output_root: The resolved output root.
    :param web_path: The URL path without its leading slash.
    :return Path | None: The target path, or None if it would escape the root or is not a valid path.
    """
    try:
        target = output_root.joinpath(web_path.lstrip('/')).resolve()
    except (OSError, ValueError):
        # Embedded NUL bytes and over-long names cannot name a file under the root.
        return None
    if target != output_root and output_root not in target.parents:
        return None
    return target


def render_directory_listing(directory: Path, web_path: str) -> str:
    """Builds a minimal HTML listing of a directory, like a plain static file server."""
    entries: List[str] = []
    with os.scandir(directory) as it:
        for entry in sorted(it, key=lambda e: e.name):
            # Temporary files from in-progress writes start with a dot.
            if entry.name.startswith('.'):
                continue
            name = entry.name + ("/" if entry.is_dir() else "")
            entries.append(f'<a href="{quote(name)}">{html.escape(name)}</a>')

    title = html.escape(f"/{web_path}")
    body = "\n".join(entries)
    return (
        "<!DOCTYPE html>\n"
        f"<html><head><meta charset=\"utf-8\"><title>Index of {title}</title></head>\n"
        f"<body><h1>Index of {title}</h1>\n<pre>\n{body}\n</pre></body></html>\n"
    )


#* --- Request Handler ---
async def main_handler(request: Request) -> Response:
    """Serves artifacts from the output root."""
    output_root: Path = request.app.state.output_root
    web_path = request.path_params.get("path", "")
    log.debug(f"Received request: {request.method} {request.url.path}")

    target = resolve_request_path(output_root, web_path)
    if target is None:
        log.warning(f"Rejected request path: {request.url.path}")
        return HTMLResponse(NOT_FOUND_HTML, status_code=404)

    try:
        stat_result = target.stat()
    except OSError:
        return HTMLResponse(NOT_FOUND_HTML, status_code=404)

    if stat.S_ISDIR(stat_result.st_mode):
        if not request.url.path.endswith("/"):
            return RedirectResponse(url=request.url.path + "/", status_code=301)

        index_file = target / INDEX_FILENAME
        try:
            index_stat = index_file.stat()
        except OSError:
            index_stat = None
        if index_stat is not None and stat.S_ISREG(index_stat.st_mode):
            return FileResponse(index_file, stat_result=index_stat)

        try:
            listing = render_directory_listing(target, web_path)
        except OSError as e:
            log.error(f"Could not list directory '{target}': {e}")
            return HTMLResponse(NOT_FOUND_HTML, status_code=404)
        return HTMLResponse(listing)

    if stat.S_ISREG(stat_result.st_mode):
        return FileResponse(target, stat_result=stat_result)

    return HTMLResponse(NOT_FOUND_HTML, status_code=404)


#* --- Application Instance Creation ---
def create_app(output_root: Path, settings: "WikiSettings") -> Starlette:
    """
    Builds the ASGI application serving one output root.

    :param output_root: The directory holding the artifacts.
    :param settings: The run's settings.
    :return Starlette: The application, ready to hand to Hypercorn.
    """
    routes = [
        Route("/{path:path}", endpoint=main_handler, methods=["GET", "HEAD"]),
    ]

    middleware = []
    if settings.SECURITY_HEADERS_ENABLED:
        middleware.append(Middleware(SecurityHeadersMiddleware))

    app = Starlette(debug=False, routes=routes, middleware=middleware)
    app.state.output_root = Path(output_root).resolve()

    log.debug(f"Web application configured for '{app.state.output_root}'.")
    return app
