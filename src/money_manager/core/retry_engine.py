"""
Retry engine для повторных попыток.

Включает:
- Exponential backoff без jitter (base_delay * factor ** attempt)
- Решение о повторе по классифицированной ошибке
- Отдельный флаг для POST (у upstream нет idempotency key)
"""

from .config import RetryConfig
from .exceptions import MoneyManagerError


class RetryEngine:
    """
    Состояние retry одного логического запроса.

    Создаётся заново на каждый запрос, поэтому счётчик не утекает
    между вызовами.

    Examples:
        >>> engine = RetryEngine(RetryConfig(max_retries=3))
        >>> if engine.should_retry('GET', error):
        >>>     time.sleep(engine.get_wait_time())
        >>>     engine.increment()
    """

    def __init__(self, config: RetryConfig):
        """
        Args:
            config: Конфигурация retry
        """
        self.config = config
        self._attempt = 0

    def should_retry(self, method: str, error: Exception) -> bool:
        """
        Решить нужен ли retry.

        Args:
            method: HTTP метод (GET, POST)
            error: Классифицированное исключение

        Returns:
            True если нужен retry
        """
        # Лимит: attempt (с нуля) достиг max_retries
        if self._attempt >= self.config.max_retries:
            return False

        if method.upper() == 'POST' and not self.config.retry_post:
            return False

        return isinstance(error, MoneyManagerError) and error.retryable

    def get_wait_time(self) -> float:
        """
        Вычислить время ожидания перед следующей попыткой.

        Returns:
            Секунды для ожидания
        """
        wait = self.config.base_delay * (self.config.backoff_factor ** self._attempt)

        if self.config.backoff_max is not None:
            wait = min(wait, self.config.backoff_max)

        return wait

    def increment(self):
        """Увеличить счётчик попыток."""
        self._attempt += 1

    @property
    def attempt(self) -> int:
        """Текущая попытка (с нуля)."""
        return self._attempt

    @property
    def exhausted(self) -> bool:
        """Бюджет повторов исчерпан."""
        return self._attempt >= self.config.max_retries
