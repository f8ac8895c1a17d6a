"""
Request body parser for the contact endpoint.

Turns a raw request body into a flat ``{field: str}`` mapping.  Two encodings
are recognised:

  form          content-type contains application/x-www-form-urlencoded
  json          any other content-type; the body must be a JSON object

Anything that cannot be decoded is reported as ``unrecognized`` with an empty
mapping.  The parser never raises: a malformed body simply looks like a
submission with every field missing, which validation then rejects.

Values are converted to strings but NOT trimmed; trimming belongs to the
validator.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union
from urllib.parse import parse_qsl

_FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

RawBody = Union[bytes, str, Mapping[str, Any], None]


class BodyEncoding(str, Enum):
    FORM = "form"
    JSON = "json"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ParsedBody:
    """Result of parsing a request body."""

    encoding: BodyEncoding
    fields: dict[str, str] = field(default_factory=dict)

    def get(self, name: str) -> str:
        return self.fields.get(name, "")


def _unrecognized() -> ParsedBody:
    return ParsedBody(encoding=BodyEncoding.UNRECOGNIZED)


def _as_text(raw: RawBody) -> Optional[str]:
    """Decode a bytes/str body to text, or None if it is not valid UTF-8."""
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    return str(raw)


def _stringify(value: Any) -> str:
    # Falsy JSON values (null, false, 0, empty containers) read as absent
    if not isinstance(value, str) and not value:
        return ""
    if isinstance(value, bool):
        return "true"
    return str(value)


def _from_mapping(data: Mapping[str, Any], encoding: BodyEncoding) -> ParsedBody:
    return ParsedBody(
        encoding=encoding,
        fields={str(k): _stringify(v) for k, v in data.items()},
    )


def parse_form(raw: RawBody) -> ParsedBody:
    """Decode an application/x-www-form-urlencoded body."""
    if isinstance(raw, Mapping):
        return _from_mapping(raw, BodyEncoding.FORM)

    text = _as_text(raw)
    if text is None:
        return _unrecognized()

    # Repeated keys: the last occurrence wins.
    pairs = parse_qsl(text, keep_blank_values=True)
    return ParsedBody(encoding=BodyEncoding.FORM, fields=dict(pairs))


def parse_json(raw: RawBody) -> ParsedBody:
    """Decode a JSON body. Only a top-level object is accepted."""
    if isinstance(raw, Mapping):
        return _from_mapping(raw, BodyEncoding.JSON)

    text = _as_text(raw)
    if text is None:
        return _unrecognized()
    if not text.strip():
        return ParsedBody(encoding=BodyEncoding.JSON)

    try:
        data = json.loads(text)
    except ValueError:
        return _unrecognized()

    if not isinstance(data, dict):
        return _unrecognized()
    return _from_mapping(data, BodyEncoding.JSON)


def parse_body(content_type: Optional[str], raw: RawBody) -> ParsedBody:
    """
    Parse a request body according to its content-type header.

    Args:
        content_type: Raw Content-Type header value (may be None).
        raw:          Body bytes/text, or a mapping already decoded by the host.

    Returns:
        ParsedBody with the detected encoding and string-valued fields.
    """
    ctype = (content_type or "").lower()
    if _FORM_CONTENT_TYPE in ctype:
        return parse_form(raw)
    return parse_json(raw)
