"""
Система конфигурации Money Manager клиента.

Все конфиги immutable (frozen dataclasses) для потокобезопасности.
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_BASE_URL = "http://192.168.1.1:8888"
DEFAULT_COOKIE_FILE = ".session-cookies.json"
API_BASE_PATH = "/moneyBook"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SERVER CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ServerConfig:
    """
    Конфигурация upstream сервера.

    Args:
        base_url: Адрес Money Manager (без /moneyBook)
        timeout: Таймаут одной попытки (сек)

    Examples:
        >>> ServerConfig(base_url="http://192.168.0.10:8888", timeout=30)
    """
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0

    def __post_init__(self):
        """Валидация и нормализация base_url."""
        if not self.base_url or not self.base_url.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {self.base_url!r}")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

        normalized = self.base_url.rstrip('/')
        if normalized != self.base_url:
            object.__setattr__(self, 'base_url', normalized)

    @property
    def api_url(self) -> str:
        """Базовый путь API: {base_url}/moneyBook."""
        return f"{self.base_url}{API_BASE_PATH}"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryConfig:
    """
    Конфигурация retry стратегии.

    Задержка перед повтором: base_delay * backoff_factor ** attempt,
    attempt считается с нуля. Без jitter.

    Args:
        max_retries: Количество повторов (не включая первую попытку)
        base_delay: Базовая задержка (сек)
        backoff_factor: Множитель exponential backoff
        backoff_max: Максимальная задержка (сек), None - без ограничения
        retry_post: Ретраить ли POST (у upstream нет idempotency key)

    Examples:
        >>> RetryConfig(max_retries=3, base_delay=1.0)
        >>> RetryConfig(max_retries=5, retry_post=False)
    """
    max_retries: int = 3
    base_delay: float = 1.0
    backoff_factor: float = 2.0
    backoff_max: Optional[float] = None
    retry_post: bool = True

    def __post_init__(self):
        """Валидация."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")
        if self.backoff_max is not None and self.backoff_max < 0:
            raise ValueError("backoff_max must be non-negative")

    @property
    def max_attempts(self) -> int:
        """Всего попыток, включая первую."""
        return self.max_retries + 1

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SESSION CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class SessionConfig:
    """
    Конфигурация сессии (cookies).

    Args:
        persist: Сохранять cookies между запусками
        cookie_file: Путь к файлу cookies (относительный - от cwd)
        reset_on_auth_failure: Сбрасывать сессию после неустранимой 401/403

    Examples:
        >>> SessionConfig(persist=False)
        >>> SessionConfig(cookie_file="~/.money-manager/cookies.json")
    """
    persist: bool = True
    cookie_file: str = DEFAULT_COOKIE_FILE
    reset_on_auth_failure: bool = True

    def __post_init__(self):
        """Валидация."""
        if self.persist and not self.cookie_file:
            raise ValueError("cookie_file is required when persist=True")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ClientConfig:
    """
    Главная конфигурация MoneyManagerClient.

    Immutable конфигурация для потокобезопасности.

    Args:
        server: Конфигурация сервера
        retry: Конфигурация retry
        session: Конфигурация сессии
        logging: Конфигурация логирования (None = без логгера клиента)
        default_mbid: Money book ID по умолчанию
        enable_backup_tools: Показывать backup_download / backup_restore

    Examples:
        >>> config = ClientConfig(server=ServerConfig(base_url="http://10.0.0.2:8888"))
        >>> config = ClientConfig.create(base_url="http://10.0.0.2:8888", max_retries=5)
    """
    server: ServerConfig = field(default_factory=ServerConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    logging: Optional['LoggingConfig'] = None
    default_mbid: Optional[str] = None
    enable_backup_tools: bool = False

    @classmethod
    def create(
        cls,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        base_delay: float = 1.0,
        retry_post: bool = True,
        persist_session: bool = True,
        cookie_file: str = DEFAULT_COOKIE_FILE,
        logging: Optional['LoggingConfig'] = None,
        **kwargs
    ) -> 'ClientConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            base_url: Адрес сервера
            timeout: Таймаут (сек)
            max_retries: Количество повторов
            base_delay: Базовая задержка backoff (сек)
            retry_post: Ретраить POST
            persist_session: Сохранять cookies на диск
            cookie_file: Файл cookies
            logging: Конфигурация логирования

        Returns:
            ClientConfig instance

        Examples:
            >>> config = ClientConfig.create(timeout=60)
            >>> config = ClientConfig.create(persist_session=False, max_retries=0)
        """
        return cls(
            server=ServerConfig(base_url=base_url, timeout=timeout),
            retry=RetryConfig(max_retries=max_retries, base_delay=base_delay, retry_post=retry_post),
            session=SessionConfig(persist=persist_session, cookie_file=cookie_file),
            logging=logging,
            **kwargs
        )

    def with_base_url(self, base_url: str) -> 'ClientConfig':
        """
        Создать новый конфиг с другим base_url.

        Example:
            >>> new_config = config.with_base_url("http://10.0.0.3:8888")
        """
        return ClientConfig(
            server=ServerConfig(base_url=base_url, timeout=self.server.timeout),
            retry=self.retry,
            session=self.session,
            logging=self.logging,
            default_mbid=self.default_mbid,
            enable_backup_tools=self.enable_backup_tools,
        )
