import sys
import logging
from typing import Any, Dict, List, Optional

import setproctitle

from mdwiki.errors import EXIT_OK, EXIT_USAGE
from mdwiki.local.config import WikiSettings
from mdwiki.local.supervisor import WikiManager
from mdwiki.log.setup import setup_logging

log = logging.getLogger("console")

USAGE = """Usage: mdwiki [SOURCE_DIR] [--verbose]

Builds every Markdown document under SOURCE_DIR (default: current directory)
into HTML, serves it over HTTP, and rebuilds documents when they change.
Press Ctrl+C to stop.

Options:
  -v, --verbose   Log at DEBUG level.
  -h, --help      Show this message and exit."""


def parse_args(args: List[str]) -> Optional[Dict[str, Any]]:
    """
    Turns the command line into keyword overrides for WikiSettings.

    :param args: The arguments without the program name.
    :return dict | None: The overrides, or None if the arguments are invalid.
    """
    overrides: Dict[str, Any] = {}
    for arg in args:
        if arg in ("-v", "--verbose"):
            overrides["VERBOSE_LOGGING"] = True
        elif arg.startswith("-"):
            print(f"mdwiki: unknown option '{arg}'", file=sys.stderr)
            return None
        elif "SOURCE_DIR" in overrides:
            print(f"mdwiki: unexpected argument '{arg}'", file=sys.stderr)
            return None
        else:
            overrides["SOURCE_DIR"] = arg
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """
    The main entry point for the command line.

    :param argv: Arguments without the program name; defaults to sys.argv[1:].
    :return int: The process exit status.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    if "-h" in args or "--help" in args:
        print(USAGE)
        return EXIT_OK

    overrides = parse_args(args)
    if overrides is None:
        print(USAGE, file=sys.stderr)
        return EXIT_USAGE

    # Set up logging before the settings load so override warnings are visible.
    setup_logging(logging.DEBUG if overrides.get("VERBOSE_LOGGING") else logging.INFO)
    settings = WikiSettings(**overrides)
    if settings.VERBOSE_LOGGING:
        setup_logging(logging.DEBUG)

    setproctitle.setproctitle(settings.PROCESS_TITLE)
    log.debug(f"Starting with source directory '{settings.SOURCE_DIR}'.")
    for key, value in sorted(settings.as_dict().items()):
        log.debug(f"Setting {key} = {value!r}")

    return WikiManager(settings).run()


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
