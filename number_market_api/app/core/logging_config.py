"""
Logging setup for the Number Market API.

All records, including uvicorn's ``uvicorn.error`` and
``uvicorn.access``, are written by the handlers installed here on the
root logger, so the API and the server share one format.  ``run.py``
starts uvicorn with ``log_config=None`` so that uvicorn does not
install handlers of its own.

``setup_logging`` may be called more than once (every ``create_app``
call does): handlers it installed earlier are replaced, handlers
added by anyone else are left alone.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Prefix of the names given to our handlers.
HANDLER_PREFIX = "number_market"

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def resolve_log_level(level: Optional[str] = None, debug: bool = False) -> int:
    """``DEBUG`` in debug mode, else ``level`` (default ``LOG_LEVEL``).

    Unknown level names fall back to ``INFO``.
    """
    if debug:
        return logging.DEBUG
    numeric_level = logging.getLevelName((level or settings.log_level).upper())
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def resolve_log_path(logfile: str) -> Path:
    """Resolve ``logfile`` the same way the database path is resolved."""
    path = Path(logfile)
    if path.is_absolute():
        return path
    base_dir = Path(__file__).resolve().parent.parent.parent  # number_market_api/
    return (base_dir / path).resolve()


def _remove_own_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if (handler.get_name() or "").startswith(HANDLER_PREFIX):
            logger.removeHandler(handler)
            handler.close()


def setup_logging(
    level: Optional[str] = None,
    logfile: Optional[str] = None,
    debug: bool = False,
) -> None:
    """Configure the root logger and route uvicorn's loggers to it.

    Parameters
    ----------
    level : Optional[str]
        Level name, case insensitive.  Defaults to ``settings.log_level``.
    logfile : Optional[str]
        Log file path; relative paths are taken from the project root.
        Defaults to ``settings.log_file``; empty means console only.
    debug : bool
        Force ``DEBUG`` regardless of ``level``.
    """
    root = logging.getLogger()
    _remove_own_handlers(root)
    root.setLevel(resolve_log_level(level, debug))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.set_name(f"{HANDLER_PREFIX}.console")
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    logfile = settings.log_file if logfile is None else logfile
    if logfile:
        log_path = resolve_log_path(logfile)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.set_name(f"{HANDLER_PREFIX}.file")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    for name in UVICORN_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True
