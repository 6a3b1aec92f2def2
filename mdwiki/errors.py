"""
Error hierarchy for MDWiki.

Every error that can end the process inherits from WikiError and carries the
exit status the process should terminate with. Per-document failures
(ConversionError) are caught where they happen and never end the process.
"""
from pathlib import Path
from typing import Optional

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_SOURCE_MISSING = 2
EXIT_CONVERTER_MISSING = 3
EXIT_USAGE = 64


class WikiError(Exception):
    """Base error for all MDWiki operations."""
    exit_code = EXIT_FATAL


class SourceDirectoryError(WikiError):
    """The source directory does not exist or is not a directory."""
    exit_code = EXIT_SOURCE_MISSING


class ConverterUnavailableError(WikiError):
    """The external converter cannot be found on PATH."""
    exit_code = EXIT_CONVERTER_MISSING


class OutputRootError(WikiError):
    """The ephemeral output directory could not be created."""


class SourceTreeError(WikiError):
    """Walking the source tree failed."""


class ServerStartupError(WikiError):
    """The web server could not bind or crashed while serving."""


class ConversionError(WikiError):
    """
    A single document could not be converted.

    :param path: The source document that failed.
    :param diagnostics: Whatever the converter wrote to stderr, if anything.
    """

    def __init__(self, path: Path, message: str, diagnostics: Optional[str] = None) -> None:
        super().__init__(message)
        self.path = path
        self.diagnostics = diagnostics or ""
