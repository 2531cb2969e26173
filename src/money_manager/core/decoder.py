"""
Decoders for Money Manager response bodies.

The upstream speaks three dialects:
- quasi-JSON: JSON, or a JavaScript object literal (single quotes, bare keys)
- XML: only the transaction listing (/getDataByPeriod)
- binary: downloads, never decoded here (streamed to disk by the client)
"""

import json
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .exceptions import DecodeError

logger = logging.getLogger(__name__)

QUASI_JSON = "quasi-json"
XML = "xml"

_BARE_KEY_AFTER_DELIMITER = re.compile(r'([{,\[])\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*:')
_BARE_KEY_AT_LINE_START = re.compile(r'^\s*([a-zA-Z_]\w*)\s*:', re.MULTILINE)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# QUASI-JSON
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def decode_quasi_json(text: str) -> Any:
    """
    Decode a quasi-JSON response body.

    Steps (each one only if the previous failed):
    1. strict JSON
    2. literal-to-JSON normalization, then JSON
    3. object literal parser (see LiteralParser)
    4. DecodeError with the first 200 chars of the body

    Args:
        text: Response body

    Returns:
        Decoded value ({} for an empty body)

    Raises:
        DecodeError: Body is none of the above
    """
    if not text or not text.strip():
        return {}

    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        pass

    try:
        return json.loads(normalize_literal(text))
    except (ValueError, RecursionError):
        pass

    try:
        value = LiteralParser(text).parse()
        logger.debug("Decoded response with literal parser (%d chars)", len(text))
        return value
    except LiteralSyntaxError as exc:
        raise DecodeError(
            f"Failed to parse response: {exc}",
            dialect=QUASI_JSON,
            snippet=text,
        ) from exc


def normalize_literal(text: str) -> str:
    """
    Rewrite a JavaScript object literal into (hopefully) JSON.

    Lossy: a value containing an apostrophe or an empty string does not
    survive. Such bodies fall through to LiteralParser.
    """
    fixed = text.replace("'", '"')
    fixed = _BARE_KEY_AFTER_DELIMITER.sub(r'\1"\2":', fixed)
    fixed = _BARE_KEY_AT_LINE_START.sub(r'"\1":', fixed)
    return fixed.replace('""', '"')


class LiteralSyntaxError(ValueError):
    """Body is not a supported object literal."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at position {position}")
        self.position = position


_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
    '0': '\0',
    '\\': '\\',
    "'": "'",
    '"': '"',
    '/': '/',
}

_KEYWORDS = {
    'true': True,
    'false': False,
    'null': None,
    'undefined': None,
    'NaN': float('nan'),
    'Infinity': float('inf'),
}

_NUMBER = re.compile(r'[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')
_IDENTIFIER = re.compile(r'[A-Za-z_$][\w$]*')

# Object/array nesting limit, well below the interpreter recursion limit
MAX_NESTING_DEPTH = 100


class LiteralParser:
    """
    Recursive-descent parser for a single JavaScript literal expression.

    Supported: objects (quoted, bare or numeric keys), arrays, single and
    double quoted strings, numbers, true/false/null/undefined, trailing
    commas, // and /* */ comments, an optional wrapping pair of parentheses
    and a trailing semicolon. Nothing is ever evaluated.

    Example:
        >>> LiteralParser("{result: 'ok', list: [1, 2,]}").parse()
        {'result': 'ok', 'list': [1, 2]}
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        self.depth = 0

    def parse(self) -> Any:
        self._skip()
        wrapped = self._peek() == '('
        if wrapped:
            self.pos += 1
        value = self._value()
        self._skip()
        if wrapped:
            self._expect(')')
            self._skip()
        if self._peek() == ';':
            self.pos += 1
            self._skip()
        if self.pos != len(self.text):
            raise LiteralSyntaxError("Unexpected trailing content", self.pos)
        return value

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ''

    def _expect(self, char: str):
        if self._peek() != char:
            raise LiteralSyntaxError(f"Expected {char!r}", self.pos)
        self.pos += 1

    def _skip(self):
        text = self.text
        while self.pos < len(text):
            char = text[self.pos]
            if char.isspace():
                self.pos += 1
            elif text.startswith('//', self.pos):
                end = text.find('\n', self.pos)
                self.pos = len(text) if end == -1 else end + 1
            elif text.startswith('/*', self.pos):
                end = text.find('*/', self.pos + 2)
                if end == -1:
                    raise LiteralSyntaxError("Unterminated comment", self.pos)
                self.pos = end + 2
            else:
                break

    def _value(self) -> Any:
        self._skip()
        char = self._peek()
        if char == '{':
            return self._object()
        if char == '[':
            return self._array()
        if char in ('"', "'"):
            return self._string()
        if char and (char.isdigit() or char in '+-.'):
            return self._number()
        match = _IDENTIFIER.match(self.text, self.pos)
        if match and match.group() in _KEYWORDS:
            self.pos = match.end()
            return _KEYWORDS[match.group()]
        if not char:
            raise LiteralSyntaxError("Unexpected end of input", self.pos)
        raise LiteralSyntaxError(f"Unexpected character {char!r}", self.pos)

    def _enter(self):
        self.depth += 1
        if self.depth > MAX_NESTING_DEPTH:
            raise LiteralSyntaxError(f"Nesting deeper than {MAX_NESTING_DEPTH} levels", self.pos)

    def _object(self) -> Dict[str, Any]:
        self._expect('{')
        self._enter()
        result: Dict[str, Any] = {}
        while True:
            self._skip()
            if self._peek() == '}':
                self.pos += 1
                self.depth -= 1
                return result
            key = self._key()
            self._skip()
            self._expect(':')
            result[key] = self._value()
            self._skip()
            if self._peek() == ',':
                self.pos += 1
            elif self._peek() != '}':
                raise LiteralSyntaxError("Expected ',' or '}'", self.pos)

    def _key(self) -> str:
        char = self._peek()
        if char in ('"', "'"):
            return self._string()
        match = _IDENTIFIER.match(self.text, self.pos)
        if match:
            self.pos = match.end()
            return match.group()
        match = _NUMBER.match(self.text, self.pos)
        if match:
            self.pos = match.end()
            return match.group()
        raise LiteralSyntaxError("Expected property name", self.pos)

    def _array(self) -> List[Any]:
        self._expect('[')
        self._enter()
        result: List[Any] = []
        while True:
            self._skip()
            if self._peek() == ']':
                self.pos += 1
                self.depth -= 1
                return result
            result.append(self._value())
            self._skip()
            if self._peek() == ',':
                self.pos += 1
            elif self._peek() != ']':
                raise LiteralSyntaxError("Expected ',' or ']'", self.pos)

    def _string(self) -> str:
        quote = self.text[self.pos]
        start = self.pos
        self.pos += 1
        chunks = []
        text = self.text
        while True:
            if self.pos >= len(text):
                raise LiteralSyntaxError("Unterminated string", start)
            char = text[self.pos]
            if char == quote:
                self.pos += 1
                return ''.join(chunks)
            if char == '\n':
                raise LiteralSyntaxError("Unterminated string", start)
            if char == '\\':
                chunks.append(self._escape())
                continue
            chunks.append(char)
            self.pos += 1

    def _escape(self) -> str:
        self.pos += 1
        if self.pos >= len(self.text):
            raise LiteralSyntaxError("Unterminated escape", self.pos)
        char = self.text[self.pos]
        self.pos += 1
        if char in ('u', 'x'):
            width = 4 if char == 'u' else 2
            digits = self.text[self.pos:self.pos + width]
            if len(digits) != width or not all(c in '0123456789abcdefABCDEF' for c in digits):
                raise LiteralSyntaxError("Invalid escape sequence", self.pos)
            self.pos += width
            return chr(int(digits, 16))
        if char == '\n':
            # line continuation
            return ''
        return _ESCAPES.get(char, char)

    def _number(self) -> Any:
        match = _NUMBER.match(self.text, self.pos)
        if not match:
            rest = _IDENTIFIER.match(self.text, self.pos + 1)
            if self._peek() in '+-' and rest and rest.group() in ('Infinity', 'NaN'):
                sign = -1 if self._peek() == '-' else 1
                self.pos = rest.end()
                return sign * _KEYWORDS[rest.group()]
            raise LiteralSyntaxError("Invalid number", self.pos)
        self.pos = match.end()
        raw = match.group()
        if any(c in raw for c in '.eE'):
            return float(raw)
        return int(raw)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# XML
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

TEXT_KEY = "_"


def decode_xml(text: str) -> Dict[str, Any]:
    """
    Decode an XML response body.

    Shape:
    - {root_tag: value}
    - attributes ignored, text trimmed
    - text-only element -> str, empty element -> ""
    - repeated sibling tags collapse into a list, a single one stays scalar
    - mixed content keeps the text under "_"

    Raises:
        DecodeError: Malformed XML
    """
    if not text or not text.strip():
        return {}

    try:
        root = ET.fromstring(text.strip())
    except (ET.ParseError, ValueError) as exc:
        raise DecodeError(
            f"Failed to parse XML response: {exc}",
            dialect=XML,
            snippet=text,
        ) from exc

    return {root.tag: _element_value(root)}


def _element_value(element: ET.Element) -> Any:
    children = list(element)
    text = (element.text or "") + "".join(child.tail or "" for child in children)
    text = text.strip()

    if not children:
        return text

    result: Dict[str, Any] = {}
    if text:
        result[TEXT_KEY] = text
    for child in children:
        value = _element_value(child)
        if child.tag in result:
            existing = result[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[child.tag] = [existing, value]
        else:
            result[child.tag] = value
    return result


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# DATASET (transaction listing)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


@dataclass(frozen=True)
class DatasetResult:
    """
    Normalized transaction listing.

    Args:
        count: Value of <results> (len(rows) if missing or not a number)
        rows: Row mappings, always a list
    """
    count: int = 0
    rows: List[Dict[str, Any]] = field(default_factory=list)


def extract_dataset(decoded: Any) -> DatasetResult:
    """
    Normalize decoded /getDataByPeriod XML.

    The root may be absent, an empty string (no rows), a mapping with a
    single <row>, or a mapping with a list of rows.

    Example:
        >>> extract_dataset({"dataset": {"results": "1", "row": {"id": "7"}}})
        DatasetResult(count=1, rows=[{'id': '7'}])
    """
    if not isinstance(decoded, dict) or not decoded:
        return DatasetResult()

    root = next(iter(decoded.values()))
    if not isinstance(root, dict):
        return DatasetResult()

    raw_rows = root.get("row")
    if raw_rows is None:
        rows = []
    elif isinstance(raw_rows, list):
        rows = [row for row in raw_rows if isinstance(row, dict)]
    elif isinstance(raw_rows, dict):
        rows = [raw_rows]
    else:
        rows = []

    return DatasetResult(count=_parse_count(root.get("results"), len(rows)), rows=rows)


def _parse_count(raw: Any, fallback: int) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        match = _LEADING_INT.match(raw)
        if match:
            return int(match.group(1))
    return fallback
