"""Тесты маскирования чувствительных данных."""

import pytest

from money_manager.utils.sanitizer import (
    DEFAULT_MASK,
    is_sensitive_key,
    mask_sensitive_data,
)


class TestIsSensitiveKey:

    @pytest.mark.parametrize("key", [
        "cookie", "Cookie", "Set-Cookie", "JSESSIONID", "sessionId", "session_id",
        "password", "accessToken", "Authorization",
    ])
    def test_sensitive(self, key):
        assert is_sensitive_key(key) is True

    @pytest.mark.parametrize("key", ["author", "assetName", "mbCash", "url", "tokenizer_name"])
    def test_not_sensitive(self, key):
        """Подстроки не считаются."""
        assert is_sensitive_key(key) is False


class TestMaskSensitiveData:

    def test_dict(self):
        data = {"cookie": "JSESSIONID=abc", "assetName": "Wallet", "mbCash": 1500}
        assert mask_sensitive_data(data) == {
            "cookie": DEFAULT_MASK,
            "assetName": "Wallet",
            "mbCash": 1500,
        }

    def test_nested(self):
        data = {"request": {"headers": {"Cookie": "x"}, "items": [{"password": "p"}]}}
        masked = mask_sensitive_data(data)

        assert masked["request"]["headers"]["Cookie"] == DEFAULT_MASK
        assert masked["request"]["items"][0]["password"] == DEFAULT_MASK

    def test_original_not_modified(self):
        data = {"session": "abc"}
        mask_sensitive_data(data)
        assert data == {"session": "abc"}

    def test_string_patterns(self):
        assert mask_sensitive_data("JSESSIONID=abc123; Path=/") == f"JSESSIONID={DEFAULT_MASK}; Path=/"
        assert mask_sensitive_data("Bearer eyJhbGciOi") == f"Bearer {DEFAULT_MASK}"
        assert mask_sensitive_data("url?token=xyz&a=1") == f"url?token={DEFAULT_MASK}&a=1"

    def test_plain_string_unchanged(self):
        assert mask_sensitive_data("Tool asset_list completed") == "Tool asset_list completed"

    def test_tuple_preserved(self):
        assert mask_sensitive_data(("a", "session=x")) == ("a", f"session={DEFAULT_MASK}")

    @pytest.mark.parametrize("value", [None, True, 3, 2.5])
    def test_scalars_unchanged(self, value):
        assert mask_sensitive_data(value) == value

    def test_custom_mask(self):
        assert mask_sensitive_data({"cookie": "x"}, mask="***") == {"cookie": "***"}
        assert mask_sensitive_data("JSESSIONID=abc", mask="***") == "JSESSIONID=***"
