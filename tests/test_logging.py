"""Tests for mdwiki.log.setup: console formatting."""

import io
import logging

from mdwiki.log.setup import MainFormatter, setup_logging


def make_record(name: str, message: str) -> logging.LogRecord:
    return logging.LogRecord(name, logging.ERROR, __file__, 1, message, None, None)


class TestMainFormatter:
    def test_regular_records_are_decorated(self) -> None:
        line = MainFormatter().format(make_record("supervisor", "hello"))
        assert "[supervisor]" in line
        assert "ERROR" in line
        assert line.endswith("hello")

    def test_process_output_is_raw(self) -> None:
        assert MainFormatter().format(make_record("proc.md2html", "line 3: bad")) == "line 3: bad"


class TestSetupLogging:
    def test_single_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        stream = io.StringIO()
        try:
            setup_logging(logging.DEBUG, stream=stream)
            setup_logging(logging.DEBUG, stream=stream)
            assert len(root.handlers) == 1
            logging.getLogger("content_converter").debug("converted")
            assert "converted" in stream.getvalue()
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
