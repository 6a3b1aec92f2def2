"""
Logging module for the application.
This module provides the console logging setup shared by every component.
"""

from .setup import setup_logging, MainFormatter

__all__ = ["setup_logging", "MainFormatter"]
