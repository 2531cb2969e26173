"""Money Manager MCP - tools for a self-hosted Money Manager web app."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.http_client import MoneyManagerClient
from .core.session_store import SessionStore
from .core.config import (
    ClientConfig,
    ServerConfig,
    RetryConfig,
    SessionConfig,
)
from .core.env_config import load_config
from .core.exceptions import (
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

# Library modules log under 'money_manager'; the server attaches real handlers
logging.getLogger('money_manager').addHandler(logging.NullHandler())

try:
    __version__ = version("money-manager-mcp")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__license__ = "MIT"

__all__ = [
    # Core
    "MoneyManagerClient",
    "SessionStore",
    "load_config",

    # Config
    "ClientConfig",
    "ServerConfig",
    "RetryConfig",
    "SessionConfig",

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

    # Version
    "__version__",
]
