"""Logging set-up: coloured console output and a rotating JSON log file."""

from __future__ import annotations

import gzip
import json
import logging
import os
import shutil
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "filestreambot"
LOG_FILE_NAME = "app.log"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 3
CONSOLE_DATE_FORMAT = "%d/%m/%Y %I:%M %p"

_COLOURS = {
    logging.DEBUG: "\x1b[35m",
    logging.INFO: "\x1b[34m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[31m",
}
_RESET = "\x1b[0m"


class _ConsoleFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(datefmt=CONSOLE_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        colour = _COLOURS.get(record.levelno, "")
        level = f"{colour}{record.levelname}{_RESET}" if colour else record.levelname
        line = f"{self.formatTime(record, self.datefmt)}\t{level}\t{record.name}\t{record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "level": record.levelname.lower(),
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="milliseconds"),
            "logger": record.name,
            "caller": f"{record.pathname}:{record.lineno}",
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def _gzip_name(name: str) -> str:
    return f"{name}.gz"


def _gzip_rotate(source: str, dest: str) -> None:
    with open(source, "rb") as src, gzip.open(dest, "wb") as dst:
        shutil.copyfileobj(src, dst)
    os.remove(source)


def init_logger(debug: bool = False, log_dir: str | os.PathLike[str] = "logs") -> logging.Logger:
    """Configure and return the package logger.

    The console shows INFO and above (DEBUG too when ``debug``); the log file
    receives everything, rotating at 10 MB and keeping three compressed backups.
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.DEBUG if debug else logging.INFO)
    console.setFormatter(_ConsoleFormatter())

    file_handler = RotatingFileHandler(
        directory / LOG_FILE_NAME,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.namer = _gzip_name
    file_handler.rotator = _gzip_rotate
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(_JsonFormatter())

    logger.addHandler(console)
    logger.addHandler(file_handler)
    return logger