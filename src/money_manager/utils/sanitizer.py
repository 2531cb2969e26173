# src/money_manager/utils/sanitizer.py
"""
Маскирование чувствительных данных в логах.

Money Manager аутентифицирует только по сессионной куке (JSESSIONID и
подобные), поэтому в первую очередь прячем куки и идентификаторы сессий,
а также всё, что похоже на токены и пароли.
"""

import re
from typing import Any, Dict

DEFAULT_MASK = "***REDACTED***"

# Чувствительные ключи (case-insensitive, сравнение по частям имени)
SENSITIVE_KEYS = {
    'password', 'passwd', 'pwd',
    'token', 'access_token', 'refresh_token', 'auth_token',
    'secret', 'api_key', 'apikey',
    'authorization', 'auth',
    'cookie', 'cookies', 'set_cookie', 'session', 'sessionid', 'session_id', 'jsessionid',
    'csrf_token', 'xsrf_token',
}

# Маски для свободного текста
SENSITIVE_PATTERNS = [
    # JSESSIONID=... / SESSION=... в заголовках Cookie и Set-Cookie
    (re.compile(r'((?:j?sessionid|session)\s*=\s*)([^\s;,&]+)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
    # Bearer tokens
    (re.compile(r'(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
    # token=... / password=...
    (re.compile(r'((?:token|password)[\s:=]+)([^\s&,;]+)', re.IGNORECASE), r'\1' + DEFAULT_MASK),
]

_KEY_PARTS = re.compile(r'[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])')


def mask_sensitive_data(data: Any, mask: str = DEFAULT_MASK) -> Any:
    """
    Рекурсивно замаскировать чувствительные данные.

    Args:
        data: dict, list, tuple, str или любое другое значение
        mask: Строка-заменитель

    Returns:
        Копия данных с замаскированными значениями

    Examples:
        >>> mask_sensitive_data({"cookie": "JSESSIONID=abc", "assetName": "Wallet"})
        {'cookie': '***REDACTED***', 'assetName': 'Wallet'}

        >>> mask_sensitive_data("JSESSIONID=abc123; Path=/")
        'JSESSIONID=***REDACTED***; Path=/'
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        return _mask_string(data, mask)

    if isinstance(data, dict):
        return _mask_dict(data, mask)

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item, mask) for item in data)

    return data


def _mask_dict(data: Dict[Any, Any], mask: str) -> Dict[Any, Any]:
    result = {}
    for key, value in data.items():
        if is_sensitive_key(str(key)):
            result[key] = mask
        else:
            result[key] = mask_sensitive_data(value, mask)
    return result


def _mask_string(text: str, mask: str) -> str:
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        if mask != DEFAULT_MASK:
            replacement = replacement.replace(DEFAULT_MASK, mask)
        result = pattern.sub(replacement, result)
    return result


def is_sensitive_key(key: str) -> bool:
    """
    Чувствительный ли ключ.

    Ключ целиком или одна из его частей (snake_case, camelCase, kebab-case)
    должна совпасть с SENSITIVE_KEYS. Подстроки не считаются: 'author'
    не маскируется, 'sessionId' и 'Set-Cookie' маскируются.
    """
    normalized = key.lower().replace('-', '_')
    if normalized in SENSITIVE_KEYS:
        return True

    parts = [part.lower() for part in _KEY_PARTS.findall(key)]
    return any(part in SENSITIVE_KEYS for part in parts)
