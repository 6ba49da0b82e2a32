"""JSON codec for stored records and keys.

Records are stored as JSON documents. Values JSON cannot express natively
are tagged: ``bytes`` become ``{"__bytes__": "<base64>"}`` and are restored
on decode; ``datetime``/``date`` become ISO-8601 strings.

A record's own dict whose only key is a tag name is wrapped as
``{"__escaped__": {...}}`` so that user data never reads back as a tag.

Keys are stored in their JSON form so that the integer key ``1`` and the
string key ``"1"`` stay distinct.
"""

import base64
import binascii
import json
from datetime import date, datetime
from typing import Any

BYTES_TAG = "__bytes__"
ESCAPE_TAG = "__escaped__"
_TAGS = (BYTES_TAG, ESCAPE_TAG)


def _default(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    raise TypeError(f"Object of type {type(value).__name__} is not storable")


def _escape(value: Any, seen: set[int]) -> Any:
    if isinstance(value, dict):
        if id(value) in seen:
            raise ValueError("Circular reference detected")
        seen.add(id(value))
        escaped = {k: _escape(v, seen) for k, v in value.items()}
        seen.discard(id(value))
        if len(value) == 1 and next(iter(value)) in _TAGS:
            return {ESCAPE_TAG: escaped}
        return escaped
    if isinstance(value, (list, tuple)):
        if id(value) in seen:
            raise ValueError("Circular reference detected")
        seen.add(id(value))
        escaped_items = [_escape(item, seen) for item in value]
        seen.discard(id(value))
        return escaped_items
    return value


def _restore(value: Any) -> Any:
    if isinstance(value, list):
        return [_restore(item) for item in value]
    if not isinstance(value, dict):
        return value
    if len(value) == 1:
        tag, inner = next(iter(value.items()))
        if tag == BYTES_TAG and isinstance(inner, str):
            try:
                return base64.b64decode(inner, validate=True)
            except binascii.Error as e:
                raise ValueError(f"Invalid bytes payload: {e}") from e
        if tag == ESCAPE_TAG and isinstance(inner, dict):
            return {k: _restore(v) for k, v in inner.items()}
    return {k: _restore(v) for k, v in value.items()}


def encode_record(record: dict[str, Any]) -> str:
    """Serialize a record to its stored JSON document.

    Raises:
        TypeError: If the record holds a value that cannot be stored.
        ValueError: If the record is circular.
    """
    return json.dumps(
        _escape(record, set()),
        default=_default,
        ensure_ascii=False,
        separators=(",", ":"),
    )


def decode_record(document: str) -> dict[str, Any]:
    """Deserialize a stored JSON document back into a record.

    Raises:
        ValueError: If the document is not valid JSON, not a record, or
            holds a malformed bytes payload.
    """
    record = _restore(json.loads(document))
    if not isinstance(record, dict):
        raise ValueError("Stored document is not a record")
    return record


def encode_key(key: str | int | float) -> str:
    """Encode a record key for the key column.

    Integral floats share the key of the equal integer.
    """
    if isinstance(key, float) and key.is_integer():
        key = int(key)
    return json.dumps(key, ensure_ascii=False)


def decode_key(stored: str) -> str | int | float:
    """Decode a key column value."""
    return json.loads(stored)
