from __future__ import annotations

# auditsql/logs.py
import logging
import os
from datetime import datetime
from typing import Any, Callable, Optional

LOGGER_NAME = "auditsql"
LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y/%m/%d %H:%M:%S"

_handler: logging.Handler | None = None


def dated_log_path(log_path: str, now: Optional[datetime] = None) -> str:
    """logs/auditsql.log -> logs/202501_auditsql.log"""
    now = now or datetime.now()
    dirn, name = os.path.split(log_path)
    return os.path.join(dirn, f"{now:%Y%m}_{name}")


class MonthlyFileHandler(logging.FileHandler):
    """Appends to YYYYmm_<name> next to log_path, moving to a new file when the month changes."""

    def __init__(self, log_path: str, clock: Optional[Callable[[], datetime]] = None):
        self.log_path = log_path
        self._clock = clock or datetime.now
        super().__init__(dated_log_path(log_path, self._clock()), encoding="utf-8", delay=True)

    def emit(self, record: logging.LogRecord) -> None:
        target = os.path.abspath(dated_log_path(self.log_path, self._clock()))
        if target != self.baseFilename:
            self.acquire()
            try:
                if self.stream is not None:
                    self.stream.close()
                    self.stream = None
                self.baseFilename = target
            finally:
                self.release()
        super().emit(record)


def configure_logging(
    log_path: str | None = None,
    level: str | int = "INFO",
    clock: Optional[Callable[[], datetime]] = None,
) -> logging.Logger:
    """
    Attach a single handler to the package logger: monthly files derived from
    log_path when given, stderr otherwise. Calling again replaces the previous
    handler.
    """
    global _handler
    root = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        root.removeHandler(_handler)
        _handler.close()

    if log_path:
        dirn = os.path.dirname(log_path) or "."
        os.makedirs(dirn, exist_ok=True)
        handler: logging.Handler = MonthlyFileHandler(log_path, clock)
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))

    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    _handler = handler
    return root


def safe_info(log: Any, message: str, *args: Any) -> None:
    """Fire-and-forget info line. A broken logger never aborts the caller."""
    try:
        log.info(message, *args)
    except Exception:
        if logging.lastResort is not None:
            logging.lastResort.handle(
                logging.makeLogRecord({"msg": "auditsql: logger failed while writing a diagnostic line",
                                       "levelno": logging.WARNING, "levelname": "WARNING"})
            )
