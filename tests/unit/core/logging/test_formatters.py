"""
Tests for log formatters.
"""

import json
import logging
import sys

import pytest

from money_manager.core.logging.formatters import (
    ColoredFormatter,
    JSONFormatter,
    TextFormatter,
    extra_fields,
    get_formatter,
)


def make_record(msg="Tool completed", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="money_manager.tools",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestExtraFields:

    def test_only_user_fields(self):
        record = make_record(tool="asset_list", duration_ms=12)
        assert extra_fields(record) == {"tool": "asset_list", "duration_ms": 12}

    def test_private_attributes_skipped(self):
        record = make_record(_internal=True)
        assert extra_fields(record) == {}


class TestJSONFormatter:

    def test_basic_fields(self):
        output = json.loads(JSONFormatter().format(make_record(tool="asset_list")))

        assert output["level"] == "INFO"
        assert output["logger"] == "money_manager.tools"
        assert output["message"] == "Tool completed"
        assert output["tool"] == "asset_list"
        assert output["timestamp"].endswith("+00:00")

    def test_non_serializable_extra(self):
        output = json.loads(JSONFormatter().format(make_record(path=object())))
        assert output["path"].startswith("<object")

    def test_unicode_kept(self):
        assert "현금" in JSONFormatter().format(make_record(asset="현금"))

    def test_exception(self):
        try:
            raise RuntimeError("upstream down")
        except RuntimeError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        output = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: upstream down" in output["exception"]


class TestTextFormatter:

    def test_format(self):
        output = TextFormatter().format(make_record(tool="card_list", request_id="abc"))

        assert "[INFO] [money_manager.tools] Tool completed" in output
        assert output.endswith("tool=card_list request_id=abc")

    def test_without_extras(self):
        assert TextFormatter().format(make_record()).endswith("Tool completed")


class TestColoredFormatter:

    def test_level_colored(self):
        output = ColoredFormatter().format(make_record(level=logging.ERROR))
        assert "\033[31mERROR\033[0m" in output

    def test_record_not_modified(self):
        record = make_record(level=logging.WARNING)
        ColoredFormatter().format(record)
        assert record.levelname == "WARNING"


class TestGetFormatter:

    @pytest.mark.parametrize("name,formatter_class", [
        ("json", JSONFormatter),
        ("TEXT", TextFormatter),
        ("colored", ColoredFormatter),
    ])
    def test_known(self, name, formatter_class):
        assert isinstance(get_formatter(name), formatter_class)

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown format type"):
            get_formatter("xml")
