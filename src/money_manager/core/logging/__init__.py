"""
Logging for the Money Manager server.

Example:
    >>> from money_manager.core.logging import configure_logging, LoggingConfig
    >>>
    >>> logger = configure_logging(LoggingConfig.create(level="DEBUG", format="json"))
    >>> logger.info("Server started", base_url="http://192.168.1.1:8888")
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import MoneyManagerLogger, get_logger, configure_logging
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import (
    RequestIdFilter,
    ExtraFieldsFilter,
    set_request_id,
    get_request_id,
    clear_request_id,
    request_id_context,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "MoneyManagerLogger",
    "get_logger",
    "configure_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "RequestIdFilter",
    "ExtraFieldsFilter",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    "request_id_context",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
