"""Tests for mdwiki.templates: page titles and the default wrapper."""

import pytest

from mdwiki.templates import DefaultTemplate, title_from_path


@pytest.mark.parametrize(
    ("rel_path", "title"),
    [
        ("index.md", "Index"),
        ("notes/getting-started.md", "Getting Started"),
        ("a/snake_case_name.md", "Snake Case Name"),
    ],
)
def test_title_from_path(rel_path: str, title: str) -> None:
    assert title_from_path(rel_path) == title


def test_title_is_escaped() -> None:
    page = DefaultTemplate().convert("<p>body</p>", {"title": "<script>"})
    assert "<title>&lt;script&gt;</title>" in page
    assert "<p>body</p>" in page
