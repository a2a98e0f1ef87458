import logging

from placebook.core.logging_config import reset_logging, setup_logging


def _flush():
    for handler in logging.getLogger("placebook").handlers:
        handler.flush()


def test_setup_logging_writes_both_files(tmp_path):
    log_dir = setup_logging(logging.CRITICAL, log_dir=tmp_path / "logs")
    try:
        log = logging.getLogger("placebook.storage.place_store")
        log.debug("loaded 3 place(s)")
        log.error("storage failure")
        _flush()

        app_log = (log_dir / "placebook.log").read_text(encoding="utf-8")
        error_log = (log_dir / "errors.log").read_text(encoding="utf-8")
        assert "loaded 3 place(s)" in app_log
        assert "storage failure" in app_log
        assert "storage failure" in error_log
        assert "loaded 3 place(s)" not in error_log
    finally:
        reset_logging()


def test_setup_logging_replaces_previous_handlers(tmp_path):
    package_logger = logging.getLogger("placebook")
    before = len(package_logger.handlers)
    try:
        setup_logging(log_dir=tmp_path / "a")
        setup_logging(log_dir=tmp_path / "b")
        assert len(package_logger.handlers) == before + 3
    finally:
        reset_logging()
    assert len(package_logger.handlers) == before
