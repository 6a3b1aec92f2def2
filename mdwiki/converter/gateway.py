import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, TYPE_CHECKING

from mdwiki.errors import ConversionError, ConverterUnavailableError

if TYPE_CHECKING:
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("content_converter")


def check_converter_available(settings: "WikiSettings") -> str:
    """
    Resolves the converter executable on PATH.

    :param settings: The run's settings.
    :return str: The full path of the converter executable.
    :raises ConverterUnavailableError: If the executable cannot be found.
    """
    executable = shutil.which(settings.CONVERTER_COMMAND)
    if executable is None:
        raise ConverterUnavailableError(
            f"Converter '{settings.CONVERTER_COMMAND}' was not found on PATH. "
            "Install it or point MDWIKI_CONVERTER at it."
        )
    log.debug(f"Using converter at '{executable}'.")
    return executable


def get_converter_args(source_path: Path, settings: "WikiSettings") -> List[str]:
    """Returns the full command line used to convert one document."""
    return [settings.CONVERTER_COMMAND, *settings.CONVERTER_ARGS, str(source_path)]


def _relay_diagnostics(stderr: str, settings: "WikiSettings") -> None:
    """Logs each non-empty stderr line of the converter under its own 'proc.' logger."""
    proc_logger = logging.getLogger(f"proc.{Path(settings.CONVERTER_COMMAND).name}")
    for line in stderr.splitlines():
        if line.strip():
            proc_logger.error(line.rstrip())


def convert_document(source_path: Path, settings: "WikiSettings") -> bytes:
    """
    Runs the external converter on one document and returns what it printed.

    This call blocks until the converter exits. Callers that need concurrency
    run it in their own thread.

    :param source_path: The document to convert.
    :param settings: The run's settings.
    :return bytes: The rendered output (the converter's stdout).
    :raises ConversionError: If the converter fails, times out or cannot be launched.
    """
    command = get_converter_args(source_path, settings)
    try:
        result = subprocess.run(
            command,
            check=True,
            capture_output=True,
            stdin=subprocess.DEVNULL,
            timeout=settings.CONVERTER_TIMEOUT_SECONDS,
        )
    except subprocess.CalledProcessError as e:
        diagnostics = e.stderr.decode("utf-8", errors="replace") if e.stderr else ""
        _relay_diagnostics(diagnostics, settings)
        raise ConversionError(
            source_path,
            f"Converter exited with status {e.returncode} for '{source_path}'",
            diagnostics,
        ) from e
    except subprocess.TimeoutExpired as e:
        raise ConversionError(
            source_path,
            f"Converter timed out after {settings.CONVERTER_TIMEOUT_SECONDS}s for '{source_path}'",
        ) from e
    except OSError as e:
        raise ConversionError(source_path, f"Could not launch converter for '{source_path}': {e}") from e

    if result.stderr:
        log.debug(f"Converter output for {source_path.name}:\n{result.stderr.decode('utf-8', errors='replace')}")
    return result.stdout
