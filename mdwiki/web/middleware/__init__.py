"""
Middleware package for web application.

This package contains middleware classes that can be used to
enhance the functionality of the web application.
"""

from .security import SecurityHeadersMiddleware

__all__ = ["SecurityHeadersMiddleware"]
