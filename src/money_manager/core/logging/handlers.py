"""
Log handlers: stderr console and rotating file.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, List


def _attach(handler: logging.Handler, level: int, formatter: logging.Formatter,
            filters: Optional[List[logging.Filter]]) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for f in filters or ():
        handler.addFilter(f)


def create_console_handler(
    level: int,
    formatter: logging.Formatter,
    filters: Optional[List[logging.Filter]] = None
) -> logging.StreamHandler:
    """
    Console handler on stderr.

    stdout is reserved for the stdio protocol channel; anything logged
    there would corrupt it.
    """
    handler = logging.StreamHandler(sys.stderr)
    _attach(handler, level, formatter, filters)
    return handler


def create_file_handler(
    file_path: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
    filters: Optional[List[logging.Filter]] = None
) -> RotatingFileHandler:
    """
    Rotating file handler (server.log, server.log.1, ...).

    Creates the parent directory if needed.
    """
    Path(file_path).expanduser().parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=str(Path(file_path).expanduser()),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    _attach(handler, level, formatter, filters)
    return handler
