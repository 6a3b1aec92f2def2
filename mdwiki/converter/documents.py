import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, TYPE_CHECKING

from mdwiki.errors import SourceTreeError

if TYPE_CHECKING:
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("content_converter")


@dataclass
class TrackedDocument:
    """
    A source document discovered by the initial tree walk.

    `size` and `mtime_ns` hold the last observed stat values; both are None
    when the document could not be stat'ed yet. Only the document's own
    watcher updates them.
    """

    rel_path: str
    source_path: Path
    size: Optional[int] = None
    mtime_ns: Optional[int] = None

    @property
    def signature(self) -> Tuple[Optional[int], Optional[int]]:
        return self.size, self.mtime_ns

    def observe(self, stat_result: os.stat_result) -> None:
        """Adopts a new (size, mtime) observation."""
        self.size = stat_result.st_size
        self.mtime_ns = stat_result.st_mtime_ns


def _raise_walk_error(error: OSError) -> None:
    raise SourceTreeError(f"Failed to walk source tree at '{error.filename}': {error}") from error


def discover_documents(settings: "WikiSettings") -> List[TrackedDocument]:
    """
    Walks the source directory once and returns every tracked document.

    A file is tracked when its extension equals `SOURCE_EXTENSION`. Hidden
    directories are skipped when `IGNORE_HIDDEN_DIRS` is set. Each document's
    size and mtime are captured here, before its first conversion, so an edit
    made during the initial build is still picked up by the watcher.

    :param settings: The run's settings.
    :return list: The documents, sorted by relative path.
    :raises SourceTreeError: If the tree cannot be walked.
    """
    source_dir = settings.SOURCE_DIR
    if not source_dir.is_dir():
        raise SourceTreeError(f"Source directory '{source_dir}' is not readable.")

    documents: List[TrackedDocument] = []
    for root, dirs, files in os.walk(source_dir, onerror=_raise_walk_error):
        if settings.IGNORE_HIDDEN_DIRS:
            dirs[:] = [d for d in dirs if not d.startswith('.')]
        dirs.sort()

        for name in sorted(files):
            if os.path.splitext(name)[1] != settings.SOURCE_EXTENSION:
                continue
            source_path = Path(root) / name
            document = TrackedDocument(
                rel_path=source_path.relative_to(source_dir).as_posix(),
                source_path=source_path,
            )
            try:
                document.observe(source_path.stat())
            except OSError as e:
                log.warning(f"Could not get initial file info for '{document.rel_path}': {e}")
            documents.append(document)

    documents.sort(key=lambda d: d.rel_path)
    log.debug(f"Discovered {len(documents)} document(s) under '{source_dir}'.")
    return documents
