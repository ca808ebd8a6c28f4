"""Payload Decoder: classifies an inbound user body into a UserPayload or one typed rejection.

Invariants:
    - Checks run in a fixed order and the first failure wins:
      size -> content-type -> empty/syntax/EOF -> type mismatch -> unknown field -> trailing data
    - Offsets are byte offsets into the raw body; a syntax offset counts the
      bytes read up to and including the offending one
    - Decoded strings never carry lone surrogates (replaced with U+FFFD)
    - Any decode failure outside the known categories becomes InternalError
      (detail kept for the logs, generic message for the client)
    - Pure: no IO, no async, no framework imports

Design Decisions:
    - Stdlib json parser for syntax; object members are re-scanned with
      json.decoder.scanstring so each member's end offset is known
    - Integer literals longer than 19 digits never reach int(); they decode
      to a marker that fails every field check
    - Field names match exactly first, then case-insensitively
    - id/createdAt/updatedAt are known, type-checked, and ignored on input
"""

import json
import re
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta, timezone
from json.decoder import scanstring
from typing import Any

from userapi.core.domain_types import MAX_USER_ID, UserId, UserPayload
from userapi.core.errors import (
    BadRequestError,
    BadRequestKind,
    InternalError,
    NotFoundError,
    PayloadTooLargeError,
    UnsupportedMediaTypeError,
)

DEFAULT_MAX_BODY_BYTES = 1_048_576
JSON_MEDIA_TYPE = "application/json"

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_RFC3339 = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))"
)
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1
_INT64_DIGITS = 19


class _NonStandardConstant(ValueError):
    """NaN / Infinity literals, which are not JSON."""


class _OversizedInt:
    """An integer literal too long to fit any field."""

    def __init__(self, literal: str):
        self.literal = literal


def _reject_constant(name: str) -> Any:
    raise _NonStandardConstant(name)


def _parse_int(literal: str) -> int | _OversizedInt:
    if len(literal.lstrip("-")) > _INT64_DIGITS:
        return _OversizedInt(literal)
    return int(literal)


_DECODER = json.JSONDecoder(parse_constant=_reject_constant, parse_int=_parse_int)


# ─── Field Shape ─────────────────────────────────────────────────

def parse_rfc3339(value: str) -> datetime | None:
    """Parse an RFC 3339 timestamp, or return None if it is not one."""
    match = _RFC3339.fullmatch(value)
    if not match:
        return None
    year, month, day, hour, minute, second, fraction, zulu, sign, off_h, off_m = match.groups()
    try:
        if zulu:
            tz = timezone.utc
        else:
            if int(off_m) >= 60:
                return None
            offset = timedelta(hours=int(off_h), minutes=int(off_m))
            tz = timezone(offset if sign == "+" else -offset)
        micros = int((fraction or "0")[:6].ljust(6, "0"))
        return datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second), micros, tzinfo=tz,
        )
    except ValueError:
        return None


def _is_string(value: Any) -> bool:
    return isinstance(value, str)


def _is_int64(value: Any) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and _INT64_MIN <= value <= _INT64_MAX
    )


def _is_timestamp(value: Any) -> bool:
    return isinstance(value, str) and parse_rfc3339(value) is not None


_FIELD_CHECKS: dict[str, Callable[[Any], bool]] = {
    "id": _is_int64,
    "name": _is_string,
    "email": _is_string,
    "createdAt": _is_timestamp,
    "updatedAt": _is_timestamp,
}
_WRITABLE_FIELDS = ("name", "email")


def _match_field(key: str) -> str | None:
    if key in _FIELD_CHECKS:
        return key
    folded = key.lower()
    for name in _FIELD_CHECKS:
        if name.lower() == folded:
            return name
    return None


# ─── Validators ──────────────────────────────────────────────────

def check_content_type(content_type: str | None) -> None:
    """Reject a present, non-empty Content-Type whose media type is not JSON."""
    if not content_type:
        return
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type != JSON_MEDIA_TYPE:
        raise UnsupportedMediaTypeError()


def parse_user_id(raw: str) -> UserId:
    """Parse a path segment into a UserId.

    Malformed and non-positive ids raise NotFoundError, the same answer as
    an id that does not exist.
    """
    if not _ID_PATTERN.fullmatch(raw):
        raise NotFoundError()
    if len(raw.lstrip("+-").lstrip("0")) > 19:
        raise NotFoundError()
    value = int(raw)
    if value < 1 or value > MAX_USER_ID:
        raise NotFoundError()
    return UserId(value)


# ─── Decoder ─────────────────────────────────────────────────────

def decode_request_body(
    body: bytes,
    content_type: str | None,
    max_bytes: int = DEFAULT_MAX_BODY_BYTES,
) -> UserPayload:
    """Run the full classification pipeline over a raw request body."""
    if len(body) > max_bytes:
        raise PayloadTooLargeError(max_bytes)
    check_content_type(content_type)
    return decode_user_payload(body)


def decode_user_payload(body: bytes) -> UserPayload:
    """Decode exactly one JSON object of the user shape from body."""
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise _badly_formed(e.start + 1) from None

    start = _skip_whitespace(text, 0)
    if start == len(text):
        raise BadRequestError(
            BadRequestKind.EMPTY_BODY, "Request body must not be empty",
        )

    try:
        value, end = _DECODER.raw_decode(text, start)
    except json.JSONDecodeError as e:
        if e.pos >= len(text) or e.msg.startswith("Unterminated string"):
            raise _badly_formed(None) from None
        raise _badly_formed(_byte_offset(text, e.pos) + 1) from None
    except (_NonStandardConstant, RecursionError):
        raise _badly_formed(None) from None
    except ValueError as e:
        raise InternalError(f"JSON decode failed: {e!r}") from e

    if not isinstance(value, dict):
        raise _type_mismatch("", _byte_offset(text, end))

    try:
        members = list(_iter_members(text, start))
    except RecursionError:
        raise _badly_formed(None) from None
    for key, member, member_end in members:
        target = _match_field(key)
        if target is None or member is None:
            continue
        if not _FIELD_CHECKS[target](member):
            raise _type_mismatch(target, _byte_offset(text, member_end))

    for key, _, _ in members:
        if _match_field(key) is None:
            raise BadRequestError(
                BadRequestKind.UNKNOWN_FIELD,
                f'Request body contains unknown field "{key}"',
                field=key,
            )

    if _skip_whitespace(text, end) != len(text):
        raise BadRequestError(
            BadRequestKind.MULTIPLE_OBJECTS,
            "Request body must only contain a single JSON object",
        )

    fields: dict[str, str] = {}
    for key, member, _ in members:
        target = _match_field(key)
        if target in _WRITABLE_FIELDS and member is not None:
            fields[target] = member
    return UserPayload(**fields)


def _iter_members(text: str, start: int) -> Iterator[tuple[str, Any, int]]:
    """Yield (key, value, end offset) for each member of the object at start.

    The object must already be known to be well-formed.
    """
    pos = _skip_whitespace(text, start + 1)
    if text[pos] == "}":
        return
    while True:
        key, pos = scanstring(text, pos + 1)
        pos = _skip_whitespace(text, pos)
        pos = _skip_whitespace(text, pos + 1)
        value, pos = _DECODER.raw_decode(text, pos)
        if isinstance(value, str):
            value = _replace_lone_surrogates(value)
        yield _replace_lone_surrogates(key), value, pos
        pos = _skip_whitespace(text, pos)
        if text[pos] == "}":
            return
        pos = _skip_whitespace(text, pos + 1)


def _replace_lone_surrogates(value: str) -> str:
    # json decodes escaped pairs into one code point, so any surrogate left is unpaired
    return _LONE_SURROGATE.sub("\ufffd", value)


def _skip_whitespace(text: str, pos: int) -> int:
    return _WHITESPACE.match(text, pos).end()


def _byte_offset(text: str, pos: int) -> int:
    return len(text[:pos].encode("utf-8"))


def _badly_formed(offset: int | None) -> BadRequestError:
    if offset is None:
        return BadRequestError(
            BadRequestKind.BADLY_FORMED_JSON,
            "Request body contains badly-formed JSON",
        )
    return BadRequestError(
        BadRequestKind.BADLY_FORMED_JSON,
        f"Request body contains badly-formed JSON (at position {offset})",
        offset=offset,
    )


def _type_mismatch(field: str, offset: int) -> BadRequestError:
    return BadRequestError(
        BadRequestKind.TYPE_MISMATCH,
        f'Request body contains an invalid value for the "{field}" field (at position {offset})',
        field=field,
        offset=offset,
    )
