"""
Pytest configuration and fixtures for money-manager-mcp tests.
"""

import pytest
import responses as responses_lib

from money_manager.core.config import ClientConfig, RetryConfig, ServerConfig, SessionConfig
from money_manager.core.http_client import MoneyManagerClient
from money_manager.core.logging.config import LoggingConfig


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "http://mm.test:8888"


@pytest.fixture
def api_url(base_url):
    """API root (base_url + /moneyBook)."""
    return f"{base_url}/moneyBook"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def cookie_file(tmp_path):
    """Cookie file inside the test's temp dir."""
    return str(tmp_path / "cookies.json")


@pytest.fixture
def client_config(base_url, cookie_file):
    """Client config: 3 retries, 1s base delay, session persisted to tmp."""
    return ClientConfig(
        server=ServerConfig(base_url=base_url, timeout=5.0),
        retry=RetryConfig(max_retries=3, base_delay=1.0),
        session=SessionConfig(persist=True, cookie_file=cookie_file),
    )


@pytest.fixture
def sleeps():
    """Recorded backoff delays."""
    return []


@pytest.fixture
def client(client_config, sleeps):
    """
    Money Manager client for testing.

    Backoff sleeps are recorded in `sleeps` instead of blocking.
    """
    client = MoneyManagerClient(client_config, sleep=sleeps.append)
    yield client
    client.close()


@pytest.fixture
def logging_config():
    """
    LoggingConfig fixture for testing.

    Example:
        def test_with_logging(logging_config):
            config = ClientConfig.create(logging=logging_config)
            client = MoneyManagerClient(config)
    """
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=True,
    )
