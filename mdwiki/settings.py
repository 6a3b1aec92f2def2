"""
This module contains the default configuration settings for the MDWiki application.
It defines the source/output formats, the external converter, the web server
binding and the timings of the watcher and recompiler.
Values are read once, at import time, from the environment (and a `.env` file).
Components never import this module directly; they receive a `WikiSettings`
object built from it (see `mdwiki.local.config`).
"""

import os
import shlex
import multiprocessing
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ('true', '1', 't', 'yes', 'y')


#* --- Source & Output ---
SOURCE_DIR = Path(os.getenv("MDWIKI_SOURCE_DIR", "."))
SOURCE_EXTENSION = ".md"
OUTPUT_EXTENSION = ".html"
OUTPUT_DIR_PREFIX = "mdwiki-"
IGNORE_HIDDEN_DIRS = _env_flag("MDWIKI_IGNORE_HIDDEN_DIRS", "False")

#* --- External Converter ---
CONVERTER_COMMAND = os.getenv("MDWIKI_CONVERTER", "md2html")
CONVERTER_ARGS = shlex.split(os.getenv("MDWIKI_CONVERTER_ARGS", "--github"))
CONVERTER_TIMEOUT_SECONDS = float(os.getenv("MDWIKI_CONVERTER_TIMEOUT", "60"))

#* --- Templates ---
TEMPLATE_ENABLED = _env_flag("MDWIKI_TEMPLATE", "False")

#* --- Bulk Build ---
# Auto-calculate workers if set to 0, otherwise use the specified value
BUILD_WORKERS = int(os.getenv("MDWIKI_BUILD_WORKERS", "0")) or (multiprocessing.cpu_count() * 2) + 1

#* --- Change Watcher ---
# 'poll' stats every tracked file on an interval, 'watchdog' uses filesystem notifications
WATCH_BACKEND = os.getenv("MDWIKI_WATCH_BACKEND", "poll").lower()
POLL_INTERVAL_SECONDS = float(os.getenv("MDWIKI_POLL_INTERVAL", "1.0"))
CHANGE_QUEUE_SIZE = 100

#* --- Web Server Settings ---
WEB_SERVER_HOST = os.getenv("MDWIKI_HOST", "0.0.0.0")
WEB_SERVER_PORT = int(os.getenv("MDWIKI_PORT", "1234"))
SERVER_STARTUP_TIMEOUT = 15  # seconds
SECURITY_HEADERS_ENABLED = _env_flag("MDWIKI_SECURITY_HEADERS", "True")
ACCESS_LOG_ENABLED = _env_flag("MDWIKI_ACCESS_LOG", "False")

#* --- Lifecycle ---
SHUTDOWN_TIMEOUT_SECONDS = 5  # per component, before giving up on a join
PROCESS_TITLE = "MDWiki - Server"

#* --- Application variables ---
VERBOSE_LOGGING = _env_flag("MDWIKI_VERBOSE", "False")

#* --- Per-wiki overrides ---
# A JSON file in the source directory may override the settings listed below.
OVERRIDES_FILENAME = ".mdwiki.json"
MODIFIABLE_SETTINGS = {
    # Converter
    "CONVERTER_COMMAND", "CONVERTER_ARGS", "CONVERTER_TIMEOUT_SECONDS",
    # Output
    "TEMPLATE_ENABLED", "IGNORE_HIDDEN_DIRS",
    # Watcher
    "WATCH_BACKEND", "POLL_INTERVAL_SECONDS",
    # Web server
    "WEB_SERVER_HOST", "WEB_SERVER_PORT", "SECURITY_HEADERS_ENABLED", "ACCESS_LOG_ENABLED",
}
