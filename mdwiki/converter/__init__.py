"""
Converter package for the wiki.

This package handles document discovery, conversion, artifact output, and
change watching.
"""

from .documents import TrackedDocument, discover_documents
from .gateway import check_converter_available, convert_document
from .handler import ChangeWatcher, ContentChangeHandler, DocumentPoller
from .recompiler import Recompiler
from .worker.parsing import BuildReport, process_document, scan_and_process_all_content

__all__ = [
    'BuildReport',
    'ChangeWatcher',
    'ContentChangeHandler',
    'DocumentPoller',
    'Recompiler',
    'TrackedDocument',
    'check_converter_available',
    'convert_document',
    'discover_documents',
    'process_document',
    'scan_and_process_all_content'
]
