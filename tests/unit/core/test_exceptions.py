"""Тесты иерархии исключений."""

import pytest

from money_manager.core.exceptions import (
    APIError,
    ConfigurationError,
    DecodeError,
    ErrorCategory,
    FileError,
    InternalError,
    MoneyManagerError,
    NetworkError,
    SessionError,
    ValidationError,
)


@pytest.mark.parametrize("error,category,retryable", [
    (NetworkError("x"), ErrorCategory.NETWORK, True),
    (APIError("x", 500), ErrorCategory.API, True),
    (APIError("x", 404), ErrorCategory.API, False),
    (APIError("x"), ErrorCategory.API, False),
    (DecodeError("x", dialect="xml"), ErrorCategory.API, False),
    (ValidationError("x"), ErrorCategory.VALIDATION, False),
    (SessionError("x"), ErrorCategory.SESSION, True),
    (FileError("x"), ErrorCategory.FILE, False),
    (InternalError("x"), ErrorCategory.INTERNAL, False),
])
def test_category_and_retryable(error, category, retryable):
    """Каждая ошибка - ровно одна категория и фиксированный retryable."""
    assert error.category == category
    assert error.retryable is retryable
    assert isinstance(error, MoneyManagerError)


def test_to_dict():
    """Сериализация для ответа инструмента."""
    error = APIError.from_status_code(404, url="http://mm.test:8888/moneyBook/x")

    assert error.to_dict() == {
        "code": "API_ERROR",
        "category": "API",
        "message": "Not Found",
        "retryable": False,
        "details": {"url": "http://mm.test:8888/moneyBook/x", "statusCode": 404},
    }


def test_to_dict_drops_empty_details():
    assert NetworkError.connection_refused("http://mm.test:8888").to_dict()["details"] == {
        "url": "http://mm.test:8888",
        "errorType": "CONNECTION_REFUSED",
    }


def test_retryable_override():
    error = NetworkError("x", retryable=False)
    assert error.retryable is False
    # Атрибут класса не меняется
    assert NetworkError.retryable is True


def test_timeout_message():
    error = NetworkError.timeout("http://mm.test:8888/moneyBook/getAssetData", 2.5)
    assert error.message == "Request to http://mm.test:8888/moneyBook/getAssetData timed out after 2500ms"


def test_decode_error_snippet():
    error = DecodeError("bad", dialect="quasi-json", snippet="y" * 300)
    assert len(error.details["snippet"]) == DecodeError.SNIPPET_LENGTH
    assert error.code == "DECODE_ERROR"
    assert isinstance(error, APIError)


def test_validation_error_from_field_errors():
    errors = [
        {"field": "startDate", "message": "String should match pattern"},
        {"field": "mbid", "message": "Field required"},
    ]
    error = ValidationError.from_field_errors(errors)

    assert error.message == "Validation failed for 'startDate': String should match pattern"
    assert error.field == "startDate"
    assert error.details["errors"] == errors


def test_validation_error_from_empty_list():
    assert ValidationError.from_field_errors([]).message == "Validation failed"


def test_unknown_tool():
    error = ValidationError.unknown_tool("nope")
    assert error.message == "Unknown tool: nope"
    assert error.code == "VALIDATION_ERROR"


def test_session_unauthorized():
    error = SessionError.unauthorized(403, "http://mm.test:8888/moneyBook/x")
    assert error.details["statusCode"] == 403
    assert error.retryable is True


def test_file_error_write_failed():
    error = FileError.write_failed("/tmp/out.xls", "disk full")
    assert error.file_path == "/tmp/out.xls"
    assert error.details["operation"] == "write"
    assert error.details["originalError"] == "disk full"


def test_configuration_error_is_internal():
    error = ConfigurationError("bad config")
    assert error.code == "CONFIG_ERROR"
    assert error.category == ErrorCategory.INTERNAL


def test_unexpected_without_original():
    error = InternalError.unexpected()
    assert error.message == "An unexpected error occurred"
    assert error.details == {}


def test_repr():
    assert repr(ValidationError("bad")) == "ValidationError(code='VALIDATION_ERROR', message='bad')"
