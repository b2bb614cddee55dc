# utils/logger.py
from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler


ROOT_LOGGER = "flowsplit"


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Numeric level for a name such as "debug" or "WARN"; unknown names give `default`."""
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def _env_level(default: str = "INFO") -> int:
    """Read FLOWSPLIT_LOG_LEVEL (or LOG_LEVEL) from env, fallback to default."""
    lvl = os.getenv("FLOWSPLIT_LOG_LEVEL") or os.getenv("LOG_LEVEL") or default
    return level_from_name(lvl)


def _colorize(level: int, msg: str) -> str:
    """Basic ANSI colorization by level, only when stderr is a terminal."""
    if not sys.stderr.isatty():
        return msg
    if level >= logging.ERROR:
        return f"\033[91m{msg}\033[0m"   # red
    if level >= logging.WARNING:
        return f"\033[93m{msg}\033[0m"   # yellow
    if level >= logging.INFO:
        return f"\033[92m{msg}\033[0m"   # green
    return msg


class _ColorFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        return _colorize(record.levelno, base)


_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _stream_handler(level: int) -> logging.Handler:
    # stdout is reserved for command output
    sh = logging.StreamHandler(sys.stderr)
    sh.setLevel(level)
    sh.setFormatter(_ColorFormatter(fmt=_FORMAT, datefmt=_DATEFMT))
    return sh


def _file_handler(level: int, log_dir: str | Path, file_name: str, max_mb: int, backup: int) -> logging.Handler:
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(
        filename=str(log_dir / file_name),
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backup,
        encoding="utf-8",
    )
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
    return fh


def init_logger(
    name: str = ROOT_LOGGER,
    level: int | None = None,
    log_dir: str | Path | None = None,
    file_name: str = "flowsplit.log",
    file_max_mb: int = 5,
    file_backup: int = 3,
) -> logging.Logger:
    """
    (Re)configure the project logger with a colored stderr handler and, when
    `log_dir` is given, a rotating file handler. Handlers from an earlier call
    are closed first.
    """
    logger = logging.getLogger(name)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = False
    logger.setLevel(level if level is not None else _env_level("INFO"))

    logger.addHandler(_stream_handler(logger.level))
    if log_dir:
        logger.addHandler(_file_handler(logger.level, log_dir, file_name, file_max_mb, file_backup))
    return logger


def get_logger(child: str) -> logging.Logger:
    """Create/get a child logger under the project logger."""
    return logging.getLogger(ROOT_LOGGER).getChild(child)
