"""Core Money Manager модули."""

from .config import (
    ServerConfig,
    RetryConfig,
    SessionConfig,
    ClientConfig,
)
from .retry_engine import RetryEngine
from .executor import RequestExecutor
from .decoder import decode_quasi_json, decode_xml, extract_dataset, DatasetResult
from .exceptions import (
    ErrorCategory,
    MoneyManagerError,
    NetworkError,
    APIError,
    DecodeError,
    ValidationError,
    SessionError,
    FileError,
    InternalError,
    ConfigurationError,
)
from .error_handler import ErrorHandler
from .session_store import SessionStore
from .http_client import MoneyManagerClient

__all__ = [
    # Config
    "ServerConfig",
    "RetryConfig",
    "SessionConfig",
    "ClientConfig",
    # Retry
    "RetryEngine",
    "RequestExecutor",
    # Decoding
    "decode_quasi_json",
    "decode_xml",
    "extract_dataset",
    "DatasetResult",
    # Core
    "MoneyManagerClient",
    "SessionStore",
    "ErrorHandler",
    # Exceptions
    "ErrorCategory",
    "MoneyManagerError",
    "NetworkError",
    "APIError",
    "DecodeError",
    "ValidationError",
    "SessionError",
    "FileError",
    "InternalError",
    "ConfigurationError",
]
