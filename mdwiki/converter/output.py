import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("content_converter")


def output_path_for(rel_path: str, output_root: Path, settings: "WikiSettings") -> Path:
    """
    Maps a source-relative document path to its artifact path.

    'a/b.md' becomes '<output_root>/a/b.html'.

    :param rel_path: Slash-separated path relative to the source directory.
    :param output_root: The ephemeral output directory.
    :param settings: The run's settings.
    :return Path: Where the artifact for this document lives.
    """
    posix = PurePosixPath(rel_path)
    if posix.suffix == settings.SOURCE_EXTENSION:
        posix = posix.with_suffix("")
    return output_root.joinpath(*posix.parent.parts, posix.name + settings.OUTPUT_EXTENSION)


def write_artifact(rel_path: str, data: bytes, output_root: Path, settings: "WikiSettings") -> Path:
    """
    Atomically writes one artifact, replacing any previous version.

    The parent directories are created on demand (safe to race with other
    writers). The bytes go to a temporary sibling first and are renamed into
    place, so the web server never reads a half-written file.

    :param rel_path: Slash-separated path relative to the source directory.
    :param data: The rendered bytes.
    :param output_root: The ephemeral output directory.
    :param settings: The run's settings.
    :return Path: The artifact path.
    :raises OSError: If the directory or the file cannot be written.
    """
    destination = output_path_for(rel_path, output_root, settings)
    destination.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(dir=destination.parent, prefix=f".{destination.name}.", suffix=".tmp")
    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(temp_path, 0o644)
        temp_path.replace(destination)
    finally:
        temp_path.unlink(missing_ok=True)

    log.debug(f"Wrote {len(data)} bytes to '{destination}'.")
    return destination
