"""Query-string and view-parameter encoding."""

from __future__ import annotations

import json

import httpx

from adapters.dispatcher import build_query_pairs
from adapters.query_encoder import encode_view_params


def test_scalars_keep_insertion_order():
    pairs = build_query_pairs({"limit": 10, "skip": 2, "rev": "1-abc"})

    assert pairs == [("limit", "10"), ("skip", "2"), ("rev", "1-abc")]


def test_booleans_are_lowercase():
    pairs = build_query_pairs({"include_docs": True, "descending": False})

    assert pairs == [("include_docs", "true"), ("descending", "false")]


def test_none_values_are_dropped():
    assert build_query_pairs({"limit": None, "skip": 1}) == [("skip", "1")]
    assert build_query_pairs(None) == []


def test_array_repeats_key_per_element_then_whole_array():
    pairs = build_query_pairs({"k": ["a", "b", "c"], "after": 1})

    assert pairs == [
        ("k", "a"),
        ("k", "b"),
        ("k", "c"),
        ("k", "a,b,c"),
        ("after", "1"),
    ]
    assert httpx.QueryParams(pairs).get_list("k") == ["a", "b", "c", "a,b,c"]


def test_structured_value_is_single_json_pair():
    value = {"a": [1, 2], "b": {"c": "d"}}

    pairs = build_query_pairs({"filter": value})

    assert len(pairs) == 1
    assert pairs[0][0] == "filter"
    assert json.loads(pairs[0][1]) == value


def test_view_params_default_reduce_to_false():
    assert encode_view_params({}) == {"reduce": False}
    assert encode_view_params(None) == {"reduce": False}
    assert encode_view_params({"include_docs": True}) == {"include_docs": True, "reduce": False}


def test_view_params_keep_explicit_reduce():
    assert encode_view_params({"reduce": True, "group": True}) == {"reduce": True, "group": True}


def test_view_string_key_is_quoted_json():
    encoded = encode_view_params({"key": "abc"})

    assert encoded["key"] == '"abc"'


def test_view_boundaries_are_json_typed():
    encoded = encode_view_params(
        {
            "start_key": ["user", 0],
            "end_key": ["user", "￰"],
            "keys": ["a", 2],
            "limit": 5,
        }
    )

    assert json.loads(encoded["start_key"]) == ["user", 0]
    assert json.loads(encoded["end_key"]) == ["user", "￰"]
    assert encoded["keys"] == '["a",2]'
    assert encoded["limit"] == 5


def test_view_falsy_keys_are_still_encoded():
    assert encode_view_params({"key": 0})["key"] == "0"
    assert encode_view_params({"key": ""})["key"] == '""'


def test_view_params_drop_none():
    encoded = encode_view_params({"key": None, "limit": None, "skip": 3})

    assert encoded == {"skip": 3, "reduce": False}
