"""Tests for habitboard/logging_setup.py."""

import logging

import pytest

from habitboard.logging_setup import _ThirdPartyFilter, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_third_party_filter():
    f = _ThirdPartyFilter()
    assert f.filter(_record("habitboard.planner", logging.DEBUG))
    assert f.filter(_record("ui", logging.INFO))
    assert not f.filter(_record("uvicorn.access", logging.INFO))
    assert f.filter(_record("uvicorn.error", logging.WARNING))
    assert not f.filter(_record("habitboardx", logging.INFO))


def test_setup_logging_with_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "habitboard.log"
    setup_logging("warning", log_file=log_file)

    root = restore_root_logger
    assert root.level == logging.DEBUG
    stream, file_handler = root.handlers
    assert stream.level == logging.WARNING
    assert file_handler.level == logging.DEBUG

    logging.getLogger("habitboard.test").debug("written to file")
    file_handler.flush()
    assert "DEBUG habitboard.test: written to file" in log_file.read_text(encoding="utf-8")


def test_setup_logging_unknown_level_defaults_to_info(restore_root_logger):
    setup_logging("chatty")
    assert restore_root_logger.level == logging.INFO
    assert len(restore_root_logger.handlers) == 1
