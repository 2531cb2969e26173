"""
Иерархия исключений Money Manager.

Классификация (закрытый набор категорий):
- NETWORK (retryable=True) - нет HTTP ответа: отказ соединения, DNS, таймаут
- API (retryable только для 5xx) - сервер ответил ошибкой или мусором
- VALIDATION (retryable=False) - входные данные не прошли проверку
- SESSION (retryable=True) - 401/403
- FILE (retryable=False) - ошибки локальной файловой системы
- INTERNAL (retryable=False) - всё остальное

Ошибка создаётся один раз в месте сбоя и дальше не изменяется.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Категория ошибки."""
    NETWORK = "NETWORK"
    API = "API"
    VALIDATION = "VALIDATION"
    SESSION = "SESSION"
    FILE = "FILE"
    INTERNAL = "INTERNAL"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class MoneyManagerError(Exception):
    """
    Базовое исключение Money Manager.

    Args:
        message: Человекочитаемое сообщение
        details: Структурированный контекст (url, statusCode, ...)
        retryable: Переопределить retryable класса
    """

    code: str = "INTERNAL_ERROR"
    category: ErrorCategory = ErrorCategory.INTERNAL
    retryable: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        retryable: Optional[bool] = None
    ):
        self.message = message
        self.details: Dict[str, Any] = dict(details) if details else {}
        if retryable is not None:
            self.retryable = retryable
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Сериализовать ошибку для вызывающей стороны.

        Returns:
            Словарь с code, category, message, retryable, details
        """
        return {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "retryable": self.retryable,
            "details": {k: v for k, v in self.details.items() if v is not None},
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СЕТЕВЫЕ ОШИБКИ (retryable=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

TRANSACTION_LIST_TIMEOUT_HINT = (
    "Note: The Money Manager server may hang when querying date ranges with no "
    "transactions. This is a known server-side limitation. Try a date range "
    "that has recorded transactions."
)


class NetworkError(MoneyManagerError):
    """
    Сетевая ошибка - HTTP ответ не получен.

    Примеры: connection refused, DNS, таймаут.
    """
    code = "NETWORK_ERROR"
    category = ErrorCategory.NETWORK
    retryable = True

    @classmethod
    def timeout(cls, url: str, timeout: float, hint: Optional[str] = None) -> "NetworkError":
        """
        Таймаут запроса.

        Args:
            url: URL запроса
            timeout: Значение таймаута (сек)
            hint: Подсказка для пользователя
        """
        timeout_ms = int(timeout * 1000)
        return cls(
            f"Request to {url} timed out after {timeout_ms}ms",
            {"url": url, "timeoutMs": timeout_ms, "errorType": "TIMEOUT", "hint": hint},
        )

    @classmethod
    def timeout_for_transaction_list(cls, url: str, timeout: float) -> "NetworkError":
        """Таймаут /getDataByPeriod - сервер зависает на пустых диапазонах дат."""
        return cls.timeout(url, timeout, TRANSACTION_LIST_TIMEOUT_HINT)

    @classmethod
    def connection_refused(cls, url: str) -> "NetworkError":
        """Connection refused."""
        return cls(
            f"Connection refused to {url}",
            {"url": url, "errorType": "CONNECTION_REFUSED"},
        )

    @classmethod
    def unreachable(cls, url: str, original_error: Optional[str] = None) -> "NetworkError":
        """DNS не резолвится или сеть недоступна."""
        return cls(
            f"Cannot connect to Money Manager server at {url}",
            {"url": url, "originalError": original_error, "errorType": "UNREACHABLE"},
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОШИБКИ API
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_STATUS_MESSAGES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


class APIError(MoneyManagerError):
    """
    Сервер вернул ошибку.

    Retryable только для 5xx.

    Args:
        message: Сообщение
        status_code: HTTP статус (если есть)
        details: Дополнительный контекст
    """
    code = "API_ERROR"
    category = ErrorCategory.API

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.status_code = status_code
        merged = dict(details) if details else {}
        merged["statusCode"] = status_code
        super().__init__(
            message,
            merged,
            retryable=status_code is not None and status_code >= 500,
        )

    @classmethod
    def from_status_code(
        cls,
        status_code: int,
        message: Optional[str] = None,
        url: Optional[str] = None
    ) -> "APIError":
        """Создать ошибку по HTTP статусу."""
        text = message or _STATUS_MESSAGES.get(status_code, "Unknown Error")
        return cls(text, status_code, {"url": url})


class DecodeError(APIError):
    """
    Ответ не удалось разобрать.

    Никогда не ретраится - битый ответ на успешный запрос повтором не лечится.

    Args:
        message: Сообщение
        dialect: quasi-json / xml
        snippet: Начало тела ответа (обрезанное)
    """
    code = "DECODE_ERROR"

    SNIPPET_LENGTH = 200

    def __init__(self, message: str, dialect: str, snippet: str = ""):
        super().__init__(
            message,
            details={"dialect": dialect, "snippet": snippet[:self.SNIPPET_LENGTH]},
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ВАЛИДАЦИЯ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ValidationError(MoneyManagerError):
    """
    Входные данные не прошли проверку формы.

    Args:
        message: Сообщение
        field: Поле с ошибкой
        errors: Список ошибок по полям [{"field": ..., "message": ...}]
    """
    code = "VALIDATION_ERROR"
    category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[list] = None
    ):
        self.field = field
        self.errors = list(errors) if errors else []
        super().__init__(message, {"field": field, "errors": self.errors or None})

    @classmethod
    def from_field_errors(cls, errors: list) -> "ValidationError":
        """
        Собрать ошибку из списка ошибок по полям.

        Первое поле попадает в сообщение, весь список - в details.
        """
        if not errors:
            return cls("Validation failed")
        first = errors[0]
        return cls(
            f"Validation failed for '{first['field']}': {first['message']}",
            field=first["field"],
            errors=errors,
        )

    @classmethod
    def unknown_tool(cls, name: str) -> "ValidationError":
        return cls(f"Unknown tool: {name}", field="name")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СЕССИЯ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SessionError(MoneyManagerError):
    """Сессионная кука отклонена (401/403)."""
    code = "SESSION_ERROR"
    category = ErrorCategory.SESSION
    retryable = True

    @classmethod
    def unauthorized(cls, status_code: Optional[int] = None, url: Optional[str] = None) -> "SessionError":
        return cls(
            "Unauthorized access. Please check your credentials.",
            {"statusCode": status_code, "url": url},
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ФАЙЛЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FileError(MoneyManagerError):
    """
    Ошибка файловой системы при download/upload.

    Args:
        message: Сообщение
        file_path: Путь к файлу
        details: Дополнительный контекст
    """
    code = "FILE_ERROR"
    category = ErrorCategory.FILE

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.file_path = file_path
        merged = dict(details) if details else {}
        merged["filePath"] = file_path
        super().__init__(message, merged)

    @classmethod
    def write_failed(cls, file_path: str, original_error: Optional[str] = None) -> "FileError":
        return cls(
            f"Cannot write file to '{file_path}'",
            file_path,
            {"originalError": original_error, "operation": "write"},
        )

    @classmethod
    def not_found(cls, file_path: str) -> "FileError":
        return cls(f"File not found: '{file_path}'", file_path, {"operation": "access"})

    @classmethod
    def permission_denied(cls, file_path: str) -> "FileError":
        return cls(
            f"Permission denied for file: '{file_path}'",
            file_path,
            {"operation": "access"},
        )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ВНУТРЕННИЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class InternalError(MoneyManagerError):
    """Неожиданная ошибка."""
    code = "INTERNAL_ERROR"
    category = ErrorCategory.INTERNAL

    @classmethod
    def unexpected(cls, original: Optional[BaseException] = None) -> "InternalError":
        details = None
        if original is not None:
            details = {
                "originalError": str(original),
                "errorType": type(original).__name__,
            }
        return cls("An unexpected error occurred", details)


class ConfigurationError(InternalError):
    """Ошибка конфигурации."""
    code = "CONFIG_ERROR"
