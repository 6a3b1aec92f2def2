"""Shared test fixtures for mdwiki."""

import socket
import stat
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

from mdwiki.local.config import WikiSettings

# Turns '# Title' lines into <h1> and other non-empty lines into <p>.
# Documents containing FAIL make it exit non-zero with a message on stderr.
FAKE_CONVERTER = """#!{python}
import sys

path = sys.argv[-1]
with open(path, encoding="utf-8") as f:
    text = f.read()

if "FAIL" in text:
    sys.stderr.write("cannot convert " + path + "\\n")
    sys.exit(1)

out = []
for line in text.splitlines():
    if line.startswith("# "):
        out.append("<h1>" + line[2:] + "</h1>")
    elif line.strip():
        out.append("<p>" + line + "</p>")
sys.stdout.write("\\n".join(out) + "\\n")
"""


def free_port() -> int:
    """Asks the OS for a port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """Create a small wiki source tree.

    Layout::

        wiki/index.md
        wiki/a/b.md
        wiki/notes.txt          (not a document)
        wiki/.hidden/secret.md  (hidden directory)
    """
    root = tmp_path / "wiki"
    root.mkdir()
    (root / "index.md").write_text("# Home\n\nWelcome.\n", encoding="utf-8")
    (root / "a").mkdir()
    (root / "a" / "b.md").write_text("# Hello\n", encoding="utf-8")
    (root / "notes.txt").write_text("not markdown\n", encoding="utf-8")
    (root / ".hidden").mkdir()
    (root / ".hidden" / "secret.md").write_text("# Secret\n", encoding="utf-8")
    return root


@pytest.fixture
def fake_converter(tmp_path: Path) -> Path:
    """Write an executable stand-in for the Markdown converter."""
    script = tmp_path / "bin" / "fake-md2html"
    script.parent.mkdir()
    script.write_text(FAKE_CONVERTER.format(python=sys.executable), encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def output_root(tmp_path: Path) -> Path:
    root = tmp_path / "out"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def make_settings(tmp_path: Path, source_tree: Path, fake_converter: Path) -> Callable[..., WikiSettings]:
    """Factory for WikiSettings pointing at the fake converter, with fast polling."""

    def _make(**overrides: Any) -> WikiSettings:
        values = {
            "SOURCE_DIR": source_tree,
            "CONVERTER_COMMAND": str(fake_converter),
            "CONVERTER_ARGS": [],
            "CONVERTER_TIMEOUT_SECONDS": 30,
            "BUILD_WORKERS": 4,
            "POLL_INTERVAL_SECONDS": 0.05,
            "WATCH_BACKEND": "poll",
            "TEMPLATE_ENABLED": False,
            "IGNORE_HIDDEN_DIRS": True,
            "WEB_SERVER_HOST": "127.0.0.1",
            "WEB_SERVER_PORT": free_port(),
            "SERVER_STARTUP_TIMEOUT": 15,
            "SHUTDOWN_TIMEOUT_SECONDS": 5,
        }
        values.update(overrides)
        return WikiSettings(overrides_path=tmp_path / "no-overrides.json", **values)

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., WikiSettings]) -> WikiSettings:
    return make_settings()
