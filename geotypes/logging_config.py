from __future__ import annotations

from datetime import datetime
import logging
from logging.handlers import TimedRotatingFileHandler
import os
import typing
from typing import List

if typing.TYPE_CHECKING:
    from geotypes.core.config import RawConfig

# Handlers added by `setup_logging`, replaced on each call.
_handlers: List[logging.Handler] = []


def setup_logging(rc: RawConfig, console_level: str = None) -> logging.Logger:
    reset_logging()

    log_dir = os.path.expanduser(rc.get('logging', 'dir', default='~/.geotypes_logs'))
    os.makedirs(log_dir, exist_ok=True)
    log_file = rc.get('logging', 'file', default='geotypes_{date}.log')
    log_file = log_file.format(date=datetime.now().strftime('%Y-%m-%d'))
    log_path = os.path.join(log_dir, log_file)

    level = rc.get('logging', 'level', default='DEBUG').upper()
    if console_level is None:
        console_level = rc.get('logging', 'console_level', default='WARNING')
    console_level = console_level.upper()
    backup_count = rc.get('logging', 'backup_count', default=7, cast=int)

    logger: logging.Logger = logging.getLogger()
    logger.setLevel(level)

    # Rotates every day and keeps logs for `backup_count` days.
    file_handler = TimedRotatingFileHandler(
        log_path,
        when="midnight",
        interval=1,
        backupCount=backup_count,
    )
    file_handler.setLevel(level)
    file_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_handler.setFormatter(file_formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_formatter = logging.Formatter("%(levelname)s - %(message)s")
    console_handler.setFormatter(console_formatter)

    for handler in (file_handler, console_handler):
        logger.addHandler(handler)
        _handlers.append(handler)

    return logger


def reset_logging():
    logger = logging.getLogger()
    while _handlers:
        handler = _handlers.pop()
        logger.removeHandler(handler)
        handler.close()
