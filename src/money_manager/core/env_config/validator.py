"""
Pydantic settings for the Money Manager server.

Values arrive in the units the user writes (milliseconds); conversion to
the seconds used by ClientConfig happens in to_client_config().
"""

from typing import Optional, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config import (
    DEFAULT_BASE_URL,
    DEFAULT_COOKIE_FILE,
    ClientConfig,
    RetryConfig,
    ServerConfig,
    SessionConfig,
)
from ..logging.config import LoggingConfig


class MoneyManagerSettings(BaseSettings):
    """
    Server settings from environment variables and .env.

    Example .env file:
        MONEY_MANAGER_BASE_URL=http://192.168.0.10:8888
        MONEY_MANAGER_TIMEOUT=60000
        MONEY_MANAGER_RETRY_COUNT=2
        MONEY_MANAGER_LOG_LEVEL=DEBUG
        MONEY_MANAGER_SESSION_PERSIST=false

    Usage:
        >>> settings = MoneyManagerSettings()
        >>> settings.to_client_config().server.timeout
        30.0
    """

    model_config = SettingsConfigDict(
        env_prefix='MONEY_MANAGER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Money Manager server URL")

    # Server (milliseconds)
    timeout: int = Field(default=30000, ge=1000, le=120000, description="Per-attempt timeout, ms")
    retry_count: int = Field(default=3, ge=0, le=10, description="Retries after the first attempt")
    retry_delay: int = Field(default=1000, ge=100, le=10000, description="Base backoff delay, ms")
    retry_post: bool = Field(default=True, description="Retry POST requests")

    # Session
    session_persist: bool = Field(default=True)
    cookie_file: str = Field(default=DEFAULT_COOKIE_FILE, min_length=1)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_file: Optional[str] = None

    # Tools
    default_mbid: Optional[str] = None
    enable_backup_tools: bool = Field(default=False)

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """http(s) URL without the trailing slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip('/')

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator('log_format', mode='before')
    @classmethod
    def normalize_log_format(cls, v):
        return v.lower() if isinstance(v, str) else v

    @field_validator('log_file', 'default_mbid', mode='before')
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def to_logging_config(self) -> LoggingConfig:
        """Convert to LoggingConfig."""
        return LoggingConfig.create(
            level=self.log_level,
            format=self.log_format,
            file_path=self.log_file,
        )

    def to_client_config(self) -> ClientConfig:
        """
        Convert to ClientConfig (ms -> seconds).
        """
        return ClientConfig(
            server=ServerConfig(base_url=self.base_url, timeout=self.timeout / 1000),
            retry=RetryConfig(
                max_retries=self.retry_count,
                base_delay=self.retry_delay / 1000,
                retry_post=self.retry_post,
            ),
            session=SessionConfig(persist=self.session_persist, cookie_file=self.cookie_file),
            logging=self.to_logging_config(),
            default_mbid=self.default_mbid,
            enable_backup_tools=self.enable_backup_tools,
        )
