from html import escape
from pathlib import PurePosixPath
from typing import Any, Dict


def title_from_path(rel_path: str) -> str:
    """Derives a page title from a document path, e.g. 'notes/getting-started.md' -> 'Getting Started'."""
    stem = PurePosixPath(rel_path).stem
    return stem.replace('-', ' ').replace('_', ' ').title() or "Home"


class DefaultTemplate:
    """A basic HTML wrapper for converted documents."""

    def convert(self, html_fragment: str, context: Dict[str, Any]) -> str:
        """
        Wraps an HTML fragment into a full page.

        :param html_fragment: The converter's output.
        :param context: Page variables; only 'title' is used.
        :return str: The complete HTML document.
        """
        title = escape(str(context.get('title', 'Page')))
        return f"""<!DOCTYPE html>
<html><head><title>{title}</title><meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<style>body{{max-width:50em;margin:2em auto;padding:0 1em;font-family:sans-serif;line-height:1.5}}</style>
</head>
<body>{html_fragment}</body></html>"""
