"""
ArangoDB Response Envelope Decoding

Every server response is a JSON object. Failures carry ``"error": true``
together with ``code``, ``errorNum`` and ``errorMessage``; anything else is a
success payload. The discriminant is checked before the payload is decoded so
that a rejected request is never reported as a schema problem.

@version 0.3.1
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Callable, Dict, Optional, TypeVar

from .types import (
    AuthenticationError,
    Cursor,
    MalformedResponseError,
    RawResponse,
    SchemaMismatchError,
    ServerError,
)

T = TypeVar("T")

Decoder = Callable[[Any], T]

_PLAIN_TYPES = (int, float, str, bool, dict, list)


def _identity(value: Any) -> Any:
    return value


def as_type(tp: type) -> Decoder:
    """
    Build an item decoder for a plain JSON type or a dataclass.

    ``bool`` is not accepted where ``int`` or ``float`` is expected, and
    integers are accepted for ``float``.
    """
    if dataclasses.is_dataclass(tp):
        def decode_dataclass(value: Any) -> Any:
            if not isinstance(value, dict):
                raise TypeError(f"expected object for {tp.__name__}, got {type(value).__name__}")
            return tp(**value)
        return decode_dataclass

    if tp not in _PLAIN_TYPES:
        raise TypeError(f"Unsupported item type: {tp!r}")

    def decode_plain(value: Any) -> Any:
        if isinstance(value, bool) and tp is not bool:
            raise TypeError(f"expected {tp.__name__}, got bool")
        if tp is float and isinstance(value, int):
            return float(value)
        if not isinstance(value, tp):
            raise TypeError(f"expected {tp.__name__}, got {type(value).__name__}")
        return value
    return decode_plain


def _apply(decoder: Optional[Decoder], value: Any, where: str) -> Any:
    try:
        return (decoder or _identity)(value)
    except (TypeError, ValueError, KeyError) as e:
        raise SchemaMismatchError(f"Cannot decode {where}: {e}") from e


def parse_envelope(raw: RawResponse) -> Dict[str, Any]:
    """
    Parse a response body and raise if the server reported an error.

    Returns the success payload as a dict.
    """
    try:
        data = json.loads(raw.body)
    except (TypeError, ValueError) as e:
        raise MalformedResponseError(f"Response is not valid JSON (status {raw.status}): {e}") from e

    if not isinstance(data, dict):
        raise MalformedResponseError(f"Expected a JSON object, got {type(data).__name__}")

    error = data.get("error", False)
    if not isinstance(error, bool):
        raise MalformedResponseError(f"Invalid 'error' field: {error!r}")

    if error:
        status = data.get("code")
        if isinstance(status, bool) or not isinstance(status, int):
            status = raw.status
        error_num = data.get("errorNum", 0)
        message = data.get("errorMessage", "")
        if status in (401, 403):
            raise AuthenticationError(status, error_num, message)
        raise ServerError(status, error_num, message)

    return data


def decode_response(raw: RawResponse, decoder: Optional[Decoder] = None) -> Any:
    """Decode the whole success payload."""
    return _apply(decoder, parse_envelope(raw), "response")


def decode_result(raw: RawResponse, decoder: Optional[Decoder] = None) -> Any:
    """Decode the ``result`` field of a success payload."""
    data = parse_envelope(raw)
    if "result" not in data:
        raise SchemaMismatchError("Response has no 'result' field")
    return _apply(decoder, data["result"], "result")


def decode_cursor(raw: RawResponse, decoder: Optional[Decoder] = None) -> Cursor:
    """Decode a cursor page, applying ``decoder`` to every item in order."""
    data = parse_envelope(raw)

    items = data.get("result")
    if not isinstance(items, list):
        raise SchemaMismatchError(f"Cursor 'result' must be a list, got {type(items).__name__}")

    has_more = data.get("hasMore")
    if not isinstance(has_more, bool):
        raise SchemaMismatchError(f"Cursor 'hasMore' must be a bool, got {has_more!r}")

    cursor_id = data.get("id")
    if cursor_id is not None and not isinstance(cursor_id, str):
        raise SchemaMismatchError(f"Cursor 'id' must be a string, got {cursor_id!r}")
    if has_more and not cursor_id:
        raise MalformedResponseError("Cursor reports more results but carries no id")

    count = data.get("count")
    if count is not None and (isinstance(count, bool) or not isinstance(count, int)):
        raise SchemaMismatchError(f"Cursor 'count' must be an integer, got {count!r}")

    extra = data.get("extra", {})
    if not isinstance(extra, dict):
        raise SchemaMismatchError("Cursor 'extra' must be an object")

    result = [_apply(decoder, item, f"item {i}") for i, item in enumerate(items)]

    return Cursor(
        result=result,
        has_more=has_more,
        id=cursor_id,
        count=count,
        extra=extra,
        cached=bool(data.get("cached", False)),
    )
