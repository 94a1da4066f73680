"""Tests for the shared log setup."""
import logging
import time

import pytest

from leadsearch.logging_setup import DateSizeRotatingFileHandler, start_log


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_start_log_writes_to_file(tmp_path, restore_root_logger):
    root = start_log(app_name="unit", log_dir=tmp_path, level="DEBUG", to_console=False)
    logging.getLogger("leadsearch.test").debug("hello from the test")
    for h in root.handlers:
        h.flush()

    files = list(tmp_path.glob("unit-*.log"))
    assert len(files) == 1
    assert "hello from the test" in files[0].read_text(encoding="utf-8")
    assert root.level == logging.DEBUG


def test_start_log_replaces_handlers(tmp_path, restore_root_logger):
    start_log(log_dir=tmp_path, to_console=True, to_file=True)
    root = start_log(to_console=True, to_file=False, level=logging.WARNING)
    assert len(root.handlers) == 1
    assert not any(isinstance(h, DateSizeRotatingFileHandler) for h in root.handlers)


def test_rollover_opens_a_new_file(tmp_path):
    handler = DateSizeRotatingFileHandler(tmp_path, prefix="roll", max_bytes=10)
    first = handler.baseFilename
    time.sleep(0.01)
    handler.doRollover()
    try:
        assert handler.baseFilename != first
        assert handler.baseFilename.startswith(str(tmp_path))
    finally:
        handler.close()


def test_log_dir_and_level_from_environment(tmp_path, monkeypatch, restore_root_logger):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "env-logs"))
    monkeypatch.setenv("LOG_LEVEL", "warning")
    root = start_log(app_name="envcheck", to_console=False)
    assert root.level == logging.WARNING
    assert len(list((tmp_path / "env-logs").glob("envcheck-*.log"))) == 1
