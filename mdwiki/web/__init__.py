"""
Web application package for MDWiki.

This package contains the static file server for the output root, its
middleware, and the thread that runs it under Hypercorn.
"""
