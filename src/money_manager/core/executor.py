"""
Resilient request executor.

Wraps one logical request: attempt, classify on failure, back off and
retry while the failure is retryable and the budget allows.
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from .config import RetryConfig
from .error_handler import ErrorHandler
from .exceptions import MoneyManagerError
from .retry_engine import RetryEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestExecutor:
    """
    Executes request functions with bounded exponential-backoff retry.

    Every call gets its own RetryEngine, so attempt counters never leak
    between logical requests and concurrent calls do not interfere.

    Example:
        >>> executor = RequestExecutor(RetryConfig(max_retries=3), ErrorHandler())
        >>> response = executor.execute(lambda: session.get(url, timeout=30), "GET", url)
    """

    def __init__(
        self,
        config: RetryConfig,
        error_handler: ErrorHandler,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Args:
            config: Retry configuration
            error_handler: Classifier for raised failures
            timeout: Per-attempt timeout, used for error context only
            sleep: Sleep function (injectable for tests)
        """
        self.config = config
        self.error_handler = error_handler
        self.timeout = timeout
        self._sleep = sleep

    def execute(
        self,
        request_fn: Callable[[], T],
        method: str = "GET",
        url: Optional[str] = None,
    ) -> T:
        """
        Run request_fn until it succeeds or fails for good.

        Args:
            request_fn: Zero-argument callable issuing one attempt
            method: HTTP method (decides POST retry policy)
            url: Request URL for error context

        Returns:
            Whatever request_fn returned on the successful attempt

        Raises:
            MoneyManagerError: The classified failure of the last attempt
        """
        engine = RetryEngine(self.config)

        while True:
            try:
                return request_fn()
            except Exception as exc:
                error = self.error_handler.classify(exc, url=url, timeout=self.timeout)

                if not engine.should_retry(method, error):
                    logger.debug(
                        "Request failed (%s): %s %s -> %s after %d attempt(s)",
                        "retries exhausted" if engine.exhausted else "no retry",
                        method, url, error.code, engine.attempt + 1,
                    )
                    raise self._propagate(error, exc)

                wait_time = engine.get_wait_time()
                logger.warning(
                    "Request failed, retrying in %dms (attempt %d/%d): %s",
                    int(wait_time * 1000),
                    engine.attempt + 1,
                    self.config.max_retries,
                    error.message,
                )
                self._sleep(wait_time)
                engine.increment()

    @staticmethod
    def _propagate(error: MoneyManagerError, original: BaseException) -> MoneyManagerError:
        if error is not original and error.__cause__ is None:
            error.__cause__ = original
        return error
