import math

import pytest

from ingestion.metadata import (
    ABSENT,
    extract_page,
    get_number,
    get_string,
    is_metadata_value,
    safe_to_string,
    sanitize_metadata,
)


class Opaque:
    pass


class LoudError(Exception):
    def __str__(self):
        raise RuntimeError("cannot render")


def _cyclic():
    d = {"name": "loop"}
    d["self"] = d
    return d


def _raised_error():
    try:
        raise ValueError("boom")
    except ValueError as e:
        return e


MESSY_INPUTS = [
    {},
    {"a": "x", "b": 1, "c": 2.5, "d": True, "e": None},
    {"loc": {"pageNumber": 3, "lines": {"from": 1, "to": 9}}},
    {"tags": ["a", "b"], "when": ("t", 1)},
    {"cycle": _cyclic()},
    {"set": {1, 2}, "obj": Opaque()},
    {"err": ValueError("plain"), "raised": _raised_error()},
    {"gone": ABSENT, "kept": None},
    {1: "int key", ("t",): "tuple key"},
    {"nan": float("nan"), "bytes": b"raw"},
    {"err": LoudError()},
    {LoudError(): 1},
    {"pages": {1: "intro", 2.5: "half", False: "flag"}},
]


@pytest.mark.parametrize("meta", MESSY_INPUTS)
def test_sanitize_is_total_and_primitive_only(meta):
    out = sanitize_metadata(meta)
    assert all(isinstance(k, str) for k in out)
    assert all(is_metadata_value(v) for v in out.values())
    assert ABSENT not in out.values()


@pytest.mark.parametrize("meta", MESSY_INPUTS)
def test_sanitize_is_idempotent(meta):
    once = sanitize_metadata(meta)
    twice = sanitize_metadata(once)
    # NaN != NaN, so compare keys and reprs
    assert list(once) == list(twice)
    assert [repr(v) for v in once.values()] == [repr(v) for v in twice.values()]


def test_absent_is_dropped_but_none_is_kept():
    out = sanitize_metadata({"gone": ABSENT, "kept": None})
    assert out == {"kept": None}


def test_primitives_pass_through_unchanged():
    meta = {"s": "x", "i": 3, "f": 1.5, "b": False, "n": None}
    assert sanitize_metadata(meta) == meta


def test_nested_values_become_json():
    out = sanitize_metadata({"loc": {"pageNumber": 3}, "tags": ["a", "b"]})
    assert out == {"loc": '{"pageNumber":3}', "tags": '["a","b"]'}


def test_mappings_with_non_string_keys_become_json():
    out = sanitize_metadata({"pages": {1: "intro", 2: "methods"}})
    assert out == {"pages": '{"1":"intro","2":"methods"}'}


def test_unencodable_values_fall_back_to_type_tag():
    out = sanitize_metadata({"cycle": _cyclic(), "set": {1}, "obj": Opaque()})
    assert out == {"cycle": "<dict>", "set": "<set>", "obj": "<Opaque>"}


def test_exceptions_use_trace_when_raised_else_message():
    out = sanitize_metadata({"plain": ValueError("plain"), "raised": _raised_error()})
    assert out["plain"] == "plain"
    assert out["raised"].startswith("Traceback")
    assert "ValueError: boom" in out["raised"]


def test_empty_exception_message_falls_back_to_class_name():
    assert safe_to_string(RuntimeError()) == "RuntimeError"


@pytest.mark.parametrize("bad", [None, "text", 42, ["a"], Opaque()])
def test_non_mapping_input_yields_empty(bad):
    assert sanitize_metadata(bad) == {}


def test_typed_accessors():
    meta = {"name": "a.pdf", "page": 3, "flag": True, "inf": math.inf, "num": "3"}
    assert get_string(meta, "name") == "a.pdf"
    assert get_string(meta, "page") is None
    assert get_string(meta, "missing") is None
    assert get_number(meta, "page") == 3
    assert get_number(meta, "flag") is None
    assert get_number(meta, "inf") is None
    assert get_number(meta, "num") is None


@pytest.mark.parametrize(
    "meta, expected",
    [
        ({"page": 4}, 4),
        ({"page": 4.0}, 4),
        ({"loc": {"pageNumber": 7}}, 7),
        ({"loc": "not a mapping"}, None),
        ({"loc": {"pageNumber": "7"}}, None),
        ({"page": True}, None),
        ({}, None),
    ],
)
def test_extract_page(meta, expected):
    assert extract_page(meta) == expected


def test_exception_whose_str_fails_becomes_type_tag():
    assert sanitize_metadata({"err": LoudError()}) == {"err": "<LoudError>"}
    assert sanitize_metadata({LoudError(): 1}) == {"<LoudError>": 1}
