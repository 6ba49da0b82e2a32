"""Unit tests for the record codec."""

from datetime import date, datetime

import pytest

from studyvault.infrastructure.persistence.record_codec import (
    BYTES_TAG,
    ESCAPE_TAG,
    decode_key,
    decode_record,
    encode_key,
    encode_record,
)


def test_bytes_are_tagged_and_restored():
    document = encode_record({"id": "a", "data": b"\x00\x01\xfe"})

    assert BYTES_TAG in document
    assert decode_record(document) == {"id": "a", "data": b"\x00\x01\xfe"}


def test_nested_bytes_are_restored():
    record = {"id": "a", "parts": [{"chunk": b"abc"}, {"chunk": b""}]}

    assert decode_record(encode_record(record)) == record


def test_dates_become_iso_strings():
    record = {"id": "d", "at": datetime(2024, 1, 2, 3, 4, 5), "on": date(2024, 1, 2)}

    assert decode_record(encode_record(record)) == {
        "id": "d",
        "at": "2024-01-02T03:04:05",
        "on": "2024-01-02",
    }


def test_unicode_kept_verbatim():
    document = encode_record({"id": "ü", "content": "naïve café"})

    assert "naïve café" in document


def test_unstorable_value_raises_type_error():
    with pytest.raises(TypeError):
        encode_record({"id": "x", "value": object()})


def test_circular_record_raises_value_error():
    record: dict = {"id": "loop"}
    record["self"] = record

    with pytest.raises(ValueError):
        encode_record(record)


def test_decode_rejects_non_record():
    with pytest.raises(ValueError):
        decode_record("[1, 2]")


def test_keys_keep_their_type():
    assert encode_key(1) != encode_key("1")
    assert decode_key(encode_key(1)) == 1
    assert decode_key(encode_key("1")) == "1"
    assert decode_key(encode_key("a.txt")) == "a.txt"


@pytest.mark.parametrize("value", [
    {BYTES_TAG: "aGk="},
    {BYTES_TAG: "not base64!"},
    {BYTES_TAG: 5},
    {ESCAPE_TAG: {BYTES_TAG: "aGk="}},
    {ESCAPE_TAG: "plain"},
    [{BYTES_TAG: "aGk="}, {"nested": {BYTES_TAG: b"real"}}],
])
def test_tag_shaped_user_data_is_not_reinterpreted(value):
    record = {"id": "m", "metadata": value}

    assert decode_record(encode_record(record)) == record


def test_malformed_bytes_payload_raises_value_error():
    with pytest.raises(ValueError):
        decode_record('{"id":"m","data":{"__bytes__":"not base64!"}}')


def test_circular_list_raises_value_error():
    items: list = []
    items.append(items)

    with pytest.raises(ValueError):
        encode_record({"id": "loop", "items": items})


def test_shared_subrecords_are_not_circular():
    shared = {"tag": "x"}

    record = {"id": "s", "a": shared, "b": [shared, shared]}

    assert decode_record(encode_record(record)) == record


def test_integral_float_keys_match_integers():
    assert encode_key(2.0) == encode_key(2)
    assert encode_key(1.5) != encode_key(1)
    assert decode_key(encode_key(1.5)) == 1.5
