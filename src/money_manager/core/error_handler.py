# src/money_manager/core/error_handler.py

import socket
from typing import Optional

import requests
from pydantic import ValidationError as PydanticValidationError
from requests.exceptions import (
    ConnectionError as RequestsConnectionError,
)
from requests.exceptions import (
    RequestException,
    Timeout,
)

from .exceptions import (
    APIError,
    FileError,
    InternalError,
    MoneyManagerError,
    NetworkError,
    SessionError,
    ValidationError,
)

TRANSACTION_LIST_ENDPOINT = "/getDataByPeriod"

_REFUSED_MARKERS = ("connection refused", "errno 111", "winerror 10061", "econnrefused")
_UNREACHABLE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "failed to resolve",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "network is unreachable",
    "no route to host",
)


def _iter_causes(error: BaseException):
    """Пройти по цепочке причин (urllib3 reason, __cause__, __context__)."""
    seen = set()
    stack = [error]
    while stack:
        current = stack.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        stack.append(getattr(current, "reason", None))
        stack.append(current.__cause__)
        stack.append(current.__context__)
        for arg in getattr(current, "args", ()):
            if isinstance(arg, BaseException):
                stack.append(arg)


class ErrorHandler:
    """Классификатор ошибок: любое исключение -> ровно одна MoneyManagerError"""

    def __init__(self, base_url: str = "unknown", timeout: float = 0):
        self.base_url = base_url
        self.timeout = timeout

    def classify(
        self,
        error: BaseException,
        url: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> MoneyManagerError:
        """
        Преобразовать исключение в классифицированную ошибку.

        Уже классифицированные ошибки возвращаются без изменений.

        Args:
            error: Исключение
            url: URL запроса (для контекста и подсказки про /getDataByPeriod)
            timeout: Таймаут запроса (сек)

        Returns:
            MoneyManagerError
        """
        if isinstance(error, MoneyManagerError):
            return error

        url = url or self.base_url
        timeout = self.timeout if timeout is None else timeout

        if isinstance(error, requests.exceptions.HTTPError) and error.response is not None:
            return self.classify_status(error.response.status_code, url)

        if isinstance(error, Timeout):
            return self._timeout(url, timeout)

        if isinstance(error, RequestsConnectionError):
            return self._connection_error(error, url, timeout)

        if isinstance(error, RequestException):
            # Транспортная ошибка без HTTP ответа
            return NetworkError(str(error) or "Request failed", {"url": url})

        if isinstance(error, PydanticValidationError):
            return ValidationError.from_field_errors(field_errors(error))

        if isinstance(error, (socket.timeout, TimeoutError)):
            return self._timeout(url, timeout)

        if isinstance(error, ConnectionRefusedError):
            return NetworkError.connection_refused(self.base_url)

        if isinstance(error, socket.gaierror):
            return NetworkError.unreachable(self.base_url, str(error))

        if isinstance(error, ConnectionError):
            return NetworkError(str(error) or "Connection failed", {"url": url})

        if isinstance(error, OSError):
            return self.classify_os_error(error)

        return InternalError.unexpected(error)

    def classify_status(self, status_code: int, url: Optional[str] = None) -> MoneyManagerError:
        """Классифицировать HTTP статус ошибки."""
        if status_code in (401, 403):
            return SessionError.unauthorized(status_code, url)
        return APIError.from_status_code(status_code, url=url)

    @staticmethod
    def classify_os_error(error: OSError, file_path: Optional[str] = None) -> FileError:
        """Ошибки файловой системы -> FILE."""
        path = file_path or error.filename or "unknown"
        path = str(path)
        if isinstance(error, FileNotFoundError):
            return FileError.not_found(path)
        if isinstance(error, PermissionError):
            return FileError.permission_denied(path)
        return FileError(f"File operation failed for '{path}': {error}", path)

    def _timeout(self, url: str, timeout: float) -> NetworkError:
        if TRANSACTION_LIST_ENDPOINT in url:
            return NetworkError.timeout_for_transaction_list(url, timeout)
        return NetworkError.timeout(url, timeout)

    def _connection_error(
        self,
        error: RequestsConnectionError,
        url: str,
        timeout: float
    ) -> NetworkError:
        for cause in _iter_causes(error):
            if isinstance(cause, ConnectionRefusedError):
                return NetworkError.connection_refused(self.base_url)
            if isinstance(cause, socket.gaierror):
                return NetworkError.unreachable(self.base_url, str(error))
            if isinstance(cause, (socket.timeout, TimeoutError)):
                return self._timeout(url, timeout)

        text = str(error).lower()
        if any(marker in text for marker in _REFUSED_MARKERS):
            return NetworkError.connection_refused(self.base_url)
        if any(marker in text for marker in _UNREACHABLE_MARKERS):
            return NetworkError.unreachable(self.base_url, str(error))

        return NetworkError(str(error) or "Connection error", {"url": url})


def field_errors(error: PydanticValidationError) -> list:
    """
    Ошибки pydantic -> [{"field": "a.b", "message": "..."}].

    Args:
        error: pydantic.ValidationError

    Returns:
        Список ошибок по полям
    """
    result = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item.get("loc", ())) or "input"
        result.append({"field": loc, "message": item.get("msg", "invalid value")})
    return result
