"""
Local package for MDWiki.

This package provides the run's settings object and the supervisor that
manages the wiki's lifecycle.
"""

from .config import WikiSettings

__all__ = ["WikiSettings"]
