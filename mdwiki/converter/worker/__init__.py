"""
Worker modules for converting documents.
"""

from .parsing import BuildReport, process_document, render_page, scan_and_process_all_content

__all__ = [
    'BuildReport',
    'process_document',
    'render_page',
    'scan_and_process_all_content'
]
