"""
MDWiki: serves a directory of Markdown documents as a browsable wiki.

Every document is converted to HTML with an external converter into a
temporary output directory, which is served over HTTP and kept current
while the sources are edited.
"""

__version__ = "0.1.0"
