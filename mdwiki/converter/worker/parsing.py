import logging
import time
from dataclasses import dataclass
from multiprocessing.pool import ThreadPool
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from mdwiki.converter.gateway import convert_document
from mdwiki.converter.output import write_artifact
from mdwiki.errors import ConversionError
from mdwiki.templates import DefaultTemplate, title_from_path

if TYPE_CHECKING:
    from mdwiki.converter.documents import TrackedDocument
    from mdwiki.local.config import WikiSettings

log = logging.getLogger("content_converter")


@dataclass(frozen=True)
class BuildReport:
    """Outcome of one bulk build."""

    converted: Tuple[str, ...]
    failed: Tuple[str, ...]
    duration: float

    @property
    def total(self) -> int:
        return len(self.converted) + len(self.failed)


def render_page(rel_path: str, rendered: bytes, settings: "WikiSettings") -> bytes:
    """
    Applies the page template to a converted fragment, if templates are enabled.

    :param rel_path: The document's relative path (used for the title).
    :param rendered: The converter's output.
    :param settings: The run's settings.
    :return bytes: What should be written to the artifact.
    """
    if not settings.TEMPLATE_ENABLED:
        return rendered
    html_fragment = rendered.decode("utf-8", errors="replace")
    page = DefaultTemplate().convert(html_fragment, {"title": title_from_path(rel_path)})
    return page.encode("utf-8")


def process_document(rel_path: str, output_root: Path, settings: "WikiSettings") -> Path:
    """
    Converts one document and writes its artifact.

    Used by both the initial build and the recompiler. On failure nothing is
    written, so the previous artifact (if any) stays in place.

    :param rel_path: Slash-separated path relative to the source directory.
    :param output_root: The ephemeral output directory.
    :param settings: The run's settings.
    :return Path: The written artifact.
    :raises ConversionError: If the converter fails.
    :raises OSError: If the artifact cannot be written.
    """
    source_path = settings.SOURCE_DIR.joinpath(*rel_path.split('/'))
    rendered = convert_document(source_path, settings)
    return write_artifact(rel_path, render_page(rel_path, rendered, settings), output_root, settings)


def _build_one(rel_path: str, output_root: Path, settings: "WikiSettings") -> Tuple[str, Optional[str]]:
    """Pool task: compile one document, returning (rel_path, error message or None)."""
    try:
        process_document(rel_path, output_root, settings)
        log.debug(f"Converted '{rel_path}'.")
        return rel_path, None
    except ConversionError as e:
        log.error(f"Could not parse file '{rel_path}': {e}")
        return rel_path, str(e)
    except OSError as e:
        log.error(f"Could not write output for '{rel_path}': {e}")
        return rel_path, str(e)
    except Exception as e:
        log.error(f"Unhandled exception processing '{rel_path}': {e}", exc_info=True)
        return rel_path, str(e)


def scan_and_process_all_content(
    documents: Sequence["TrackedDocument"], output_root: Path, settings: "WikiSettings"
) -> BuildReport:
    """
    Converts every discovered document concurrently and waits for all of them.

    One failed document never cancels the others; it is logged and listed in
    the report.

    :param documents: The documents found by the tree walk.
    :param output_root: The ephemeral output directory.
    :param settings: The run's settings.
    :return BuildReport: Which documents were converted and which failed.
    """
    start_time = time.monotonic()
    if not documents:
        log.info("No documents found to process.")
        return BuildReport(converted=(), failed=(), duration=0.0)

    num_workers = max(1, min(settings.BUILD_WORKERS, len(documents)))
    log.info(f"Starting conversion of {len(documents)} document(s) with {num_workers} worker thread(s)...")

    with ThreadPool(processes=num_workers) as pool:
        results = pool.starmap(_build_one, [(d.rel_path, output_root, settings) for d in documents])

    converted: List[str] = [rel for rel, error in results if error is None]
    failed: List[str] = [rel for rel, error in results if error is not None]
    report = BuildReport(converted=tuple(converted), failed=tuple(failed), duration=time.monotonic() - start_time)

    log.info(
        f"Full content scan complete in {report.duration:.2f}s. "
        f"Converted: {len(report.converted)}, Errors: {len(report.failed)}."
    )
    return report
