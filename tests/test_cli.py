"""Tests for mdwiki.main: command line parsing and exit codes."""

import logging
from pathlib import Path

import pytest

from mdwiki.errors import EXIT_OK, EXIT_SOURCE_MISSING, EXIT_USAGE
from mdwiki.main import main, parse_args


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestParseArgs:
    def test_no_arguments(self) -> None:
        assert parse_args([]) == {}

    def test_source_dir_and_verbose(self) -> None:
        assert parse_args(["docs", "--verbose"]) == {"SOURCE_DIR": "docs", "VERBOSE_LOGGING": True}

    def test_short_verbose(self) -> None:
        assert parse_args(["-v"]) == {"VERBOSE_LOGGING": True}

    def test_unknown_option(self, capsys: pytest.CaptureFixture) -> None:
        assert parse_args(["--bogus"]) is None
        assert "unknown option" in capsys.readouterr().err

    def test_two_directories(self) -> None:
        assert parse_args(["one", "two"]) is None


class TestMain:
    def test_help(self, capsys: pytest.CaptureFixture) -> None:
        assert main(["--help"]) == EXIT_OK
        assert "Usage: mdwiki" in capsys.readouterr().out

    def test_usage_error(self, capsys: pytest.CaptureFixture) -> None:
        assert main(["--bogus"]) == EXIT_USAGE
        assert "Usage: mdwiki" in capsys.readouterr().err

    def test_missing_source_directory(self, tmp_path: Path) -> None:
        assert main([str(tmp_path / "missing")]) == EXIT_SOURCE_MISSING

    def test_verbose_logs_effective_settings(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        assert main([str(tmp_path / "missing"), "--verbose"]) == EXIT_SOURCE_MISSING
        out = capsys.readouterr().out
        assert "Setting SOURCE_EXTENSION = '.md'" in out
        assert "Setting WEB_SERVER_PORT = " in out
