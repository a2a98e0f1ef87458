# Placebook
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Logging for the ``placebook`` command: two rotating files plus the console."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from placebook.core.settings import load_settings

__all__ = ["setup_logging", "reset_logging"]

_PACKAGE_LOGGER = "placebook"
_installed: list[logging.Handler] = []


def setup_logging(console_level: int = logging.WARNING, *, log_dir: Path | None = None) -> Path:
    """
    Attach the Placebook handlers to the ``placebook`` logger.

    - placebook.log: DEBUG and up (10 MB per file, 5 rotations)
    - errors.log: ERROR and up (5 MB per file, 3 rotations)
    - stderr: ``console_level`` and up

    ``log_dir`` defaults to ``<data dir>/logs``. Calling it again replaces the
    handlers from the previous call. Returns the log directory.
    """
    log_dir = log_dir or load_settings().data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    reset_logging()

    detailed = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    app_handler = RotatingFileHandler(
        log_dir / "placebook.log", maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
    )
    app_handler.setLevel(logging.DEBUG)
    app_handler.setFormatter(detailed)

    error_handler = RotatingFileHandler(
        log_dir / "errors.log", maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(detailed)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(levelname)-8s | %(name)s | %(message)s"))

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.setLevel(logging.DEBUG)
    for handler in (app_handler, error_handler, console_handler):
        package_logger.addHandler(handler)
        _installed.append(handler)

    logging.getLogger(__name__).info("Logging to %s", log_dir)
    return log_dir


def reset_logging() -> None:
    """Detach and close the handlers added by :func:`setup_logging`."""

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    while _installed:
        handler = _installed.pop()
        package_logger.removeHandler(handler)
        handler.close()
