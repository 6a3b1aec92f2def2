"""
Page templates that wrap a converted HTML fragment into a complete document.
"""

from .default import DefaultTemplate, title_from_path

__all__ = ["DefaultTemplate", "title_from_path"]
