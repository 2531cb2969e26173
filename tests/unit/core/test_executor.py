"""Тесты RequestExecutor."""

import logging

import pytest
import requests

from money_manager.core.config import RetryConfig
from money_manager.core.error_handler import ErrorHandler
from money_manager.core.exceptions import APIError, InternalError, NetworkError, SessionError
from money_manager.core.executor import RequestExecutor

URL = "http://mm.test:8888/moneyBook/getAssetData"


class FlakyCall:
    """Падает заданными ошибками, затем возвращает результат."""

    def __init__(self, errors, result="ok"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


def http_error(status):
    response = requests.Response()
    response.status_code = status
    return requests.exceptions.HTTPError(f"{status} error", response=response)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def executor(sleeps):
    return RequestExecutor(
        RetryConfig(max_retries=3, base_delay=1.0),
        ErrorHandler(base_url="http://mm.test:8888", timeout=30),
        timeout=30,
        sleep=sleeps.append,
    )


def test_success_first_attempt(executor, sleeps):
    """Успех с первой попытки, без ожидания."""
    call = FlakyCall([])
    assert executor.execute(call, "GET", URL) == "ok"
    assert call.calls == 1
    assert sleeps == []


def test_retries_until_success(executor, sleeps):
    """Два сетевых сбоя, затем успех."""
    call = FlakyCall([
        requests.exceptions.ConnectionError("Connection refused"),
        requests.exceptions.ConnectionError("Connection refused"),
    ])

    assert executor.execute(call, "GET", URL) == "ok"
    assert call.calls == 3
    assert sleeps == [1.0, 2.0]


def test_backoff_sequence_then_failure(executor, sleeps):
    """Постоянный сбой: 4 попытки, задержки 1s, 2s, 4s."""
    call = FlakyCall([requests.exceptions.Timeout("timed out")] * 10)

    with pytest.raises(NetworkError) as exc_info:
        executor.execute(call, "GET", URL)

    assert call.calls == 4
    assert sleeps == [1.0, 2.0, 4.0]
    assert exc_info.value.details["errorType"] == "TIMEOUT"
    assert isinstance(exc_info.value.__cause__, requests.exceptions.Timeout)


def test_not_found_is_not_retried(executor, sleeps):
    """404: одна попытка, APIError(retryable=False)."""
    call = FlakyCall([http_error(404)])

    with pytest.raises(APIError) as exc_info:
        executor.execute(call, "GET", URL)

    assert call.calls == 1
    assert sleeps == []
    assert exc_info.value.status_code == 404
    assert exc_info.value.retryable is False


def test_server_error_retried(executor, sleeps):
    """500 ретраится."""
    call = FlakyCall([http_error(500)])

    assert executor.execute(call, "GET", URL) == "ok"
    assert call.calls == 2


def test_session_error_retried_then_raised(executor):
    """401 ретраится, после исчерпания бюджета - SessionError."""
    call = FlakyCall([http_error(401)] * 10)

    with pytest.raises(SessionError):
        executor.execute(call, "GET", URL)

    assert call.calls == 4


def test_post_not_retried_when_disabled(sleeps):
    executor = RequestExecutor(
        RetryConfig(max_retries=3, retry_post=False),
        ErrorHandler(),
        sleep=sleeps.append,
    )
    call = FlakyCall([http_error(503)])

    with pytest.raises(APIError):
        executor.execute(call, "POST", URL)

    assert call.calls == 1


def test_unexpected_error_classified_internal(executor):
    """Неизвестное исключение -> INTERNAL, без retry."""
    call = FlakyCall([KeyError("boom")])

    with pytest.raises(InternalError) as exc_info:
        executor.execute(call, "GET", URL)

    assert exc_info.value.code == "INTERNAL_ERROR"
    assert call.calls == 1


def test_independent_budgets(executor):
    """Счётчик попыток не утекает между вызовами."""
    first = FlakyCall([http_error(502)] * 3)
    second = FlakyCall([http_error(502)] * 3)

    assert executor.execute(first, "GET", URL) == "ok"
    assert executor.execute(second, "GET", URL) == "ok"
    assert second.calls == 4


def test_retry_is_logged(executor, caplog):
    call = FlakyCall([http_error(503)])

    with caplog.at_level(logging.WARNING, logger="money_manager.core.executor"):
        executor.execute(call, "GET", URL)

    assert "retrying in 1000ms (attempt 1/3)" in caplog.text


def test_give_up_reason_logged(executor, caplog):
    """В debug логе видно: бюджет исчерпан или ошибка не ретраится."""
    with caplog.at_level(logging.DEBUG, logger="money_manager.core.executor"):
        with pytest.raises(NetworkError):
            executor.execute(FlakyCall([NetworkError("down")] * 4), "GET", URL)
        with pytest.raises(APIError):
            executor.execute(FlakyCall([http_error(404)]), "GET", URL)

    assert "Request failed (retries exhausted)" in caplog.text
    assert "Request failed (no retry)" in caplog.text
