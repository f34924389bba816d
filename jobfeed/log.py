"""Logging setup for jobfeed and its command line.

Library modules only call ``get_logger(__name__)``. Handlers are attached to
the root logger once, either lazily on the first ``get_logger`` call or
explicitly by the CLI through ``configure_logging``. Environment:

- ``LOG_LEVEL``: console level, default INFO
- ``LOG_TO_FILE``: also write a dated DEBUG log file (1/true/yes), default on
- ``LOG_DIR``: where that file goes, default ``<repo>/logs``
"""
from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_QUIET_LOGGERS = ("urllib3", "charset_normalizer")
_configured = False


def _truthy(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes")


def configure_logging(level: str | None = None, to_file: bool | None = None) -> None:
    """Attach console (and optionally file) handlers to the root logger.

    Calling again only adjusts the level. If something else (pytest, a host
    application) already installed root handlers, they are left alone.
    """
    global _configured
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    lvl = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    root.setLevel(lvl)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(lvl, logging.WARNING))

    if _configured:
        for h in root.handlers:
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
                h.setLevel(lvl)
        return
    _configured = True
    if root.handlers:
        return

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FMT)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(lvl)
    console.setFormatter(formatter)
    root.addHandler(console)

    if to_file is None:
        to_file = _truthy(os.environ.get("LOG_TO_FILE", "true"))
    if to_file:
        _add_file_handler(root, formatter)


def _add_file_handler(root: logging.Logger, formatter: logging.Formatter) -> None:
    log_dir = Path(os.environ.get("LOG_DIR") or _DEFAULT_LOG_DIR)
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / f"jobfeed_{datetime.now():%Y-%m-%d}.log", encoding="utf-8")
    except OSError as exc:
        root.warning("File logging disabled, cannot write to %s: %s", log_dir, exc)
        return
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    root.addHandler(fh)


def get_logger(name: str) -> logging.Logger:
    """Named logger; sets up handlers from the environment on first use."""
    if not _configured:
        configure_logging()
    return logging.getLogger(name)
