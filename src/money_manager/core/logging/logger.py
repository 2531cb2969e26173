"""
Structured logger for the Money Manager server.
"""

import logging
from typing import Optional, Any

from .config import LoggingConfig, LogLevel
from .formatters import get_formatter
from .filters import RequestIdFilter, ExtraFieldsFilter
from .handlers import create_console_handler, create_file_handler
from ...utils.sanitizer import mask_sensitive_data

ROOT_LOGGER_NAME = "money_manager"


class MoneyManagerLogger:
    """
    Logger wrapper with keyword extras.

    Installs its own handlers on the named stdlib logger and stops
    propagation. Extras go through mask_sensitive_data, so cookies and
    session ids never reach the log.

    Example:
        >>> logger = MoneyManagerLogger(LoggingConfig.create(level="DEBUG"))
        >>> logger.info("Request completed", method="GET", status_code=200)
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = ROOT_LOGGER_NAME):
        """
        Args:
            config: Logging configuration (defaults if None)
            name: stdlib logger name
        """
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        level = self._get_level(self.config.level)
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False

        for handler in self._logger.handlers[:]:
            self._logger.removeHandler(handler)
            handler.close()

        filters = []
        if self.config.enable_request_id:
            filters.append(RequestIdFilter())
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format.value)

        if self.config.enable_console:
            self._logger.addHandler(create_console_handler(level, formatter, filters))

        if self.config.enable_file and self.config.file_path:
            self._logger.addHandler(create_file_handler(
                file_path=self.config.file_path,
                level=level,
                formatter=formatter,
                max_bytes=self.config.max_bytes,
                backup_count=self.config.backup_count,
                filters=filters
            ))

    @staticmethod
    def _get_level(level: LogLevel) -> int:
        return getattr(logging, level.value)

    @property
    def logger(self) -> logging.Logger:
        """Underlying stdlib logger."""
        return self._logger

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._logger.log(level, message, exc_info=exc_info, extra=mask_sensitive_data(kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log info message.

        Example:
            >>> logger.info("Tool completed", tool="asset_list", duration_ms=42)
        """
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log error with the current traceback (call from an except block)."""
        self._log(logging.ERROR, message, exc_info=True, **kwargs)

    def close(self) -> None:
        """
        Flush and close all handlers. Idempotent.
        """
        if self._closed:
            return

        for handler in self._logger.handlers[:]:
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_default_logger: Optional[MoneyManagerLogger] = None


def get_logger(config: Optional[LoggingConfig] = None) -> MoneyManagerLogger:
    """
    Package-wide logger, created on first use.

    Args:
        config: Used only on the first call
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = MoneyManagerLogger(config)

    return _default_logger


def configure_logging(config: LoggingConfig) -> MoneyManagerLogger:
    """
    (Re)configure the package root logger.

    Every module logger under `money_manager.*` propagates to it, so this
    one call routes all library logging to stderr (and the log file).

    Example:
        >>> configure_logging(LoggingConfig.create(level="DEBUG", format="json"))
    """
    global _default_logger
    if _default_logger is not None:
        _default_logger.close()
    _default_logger = MoneyManagerLogger(config)
    return _default_logger
