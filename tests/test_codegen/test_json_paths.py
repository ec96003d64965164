"""Tests for the JSON-path evaluator used by body matchers."""
from __future__ import annotations

import pytest

from src.contract_codegen.body import json_paths
from src.contract_codegen.body.json_paths import JsonPathNotFoundError, JsonPathSyntaxError

BODY = {
    "id": 1,
    "name": "a",
    "items": [{"type": "x", "price": 10}, {"type": "y", "price": 20}],
    "tags": ["p", "q", "r"],
    "nothing": None,
}


class TestParse:
    """Parsing of the supported JSON path subset."""

    def test_dot_and_bracket_notation_select_the_same(self):
        assert json_paths.read(BODY, "$.name") == json_paths.read(BODY, "$['name']") == "a"

    def test_path_without_root(self):
        assert json_paths.read(BODY, "id") == 1

    @pytest.mark.parametrize("path", ["", "$.", "$[", "$.items[abc]", "$[?(@ foo)]"])
    def test_invalid_paths(self, path):
        with pytest.raises(JsonPathSyntaxError):
            json_paths.parse(path)


class TestRead:
    """Reading values addressed by a path."""

    def test_definite_missing_path(self):
        with pytest.raises(JsonPathNotFoundError):
            json_paths.read(BODY, "$.missing")

    def test_null_value_is_found(self):
        assert json_paths.exists(BODY, "$.nothing")
        assert json_paths.read(BODY, "$.nothing") is None

    def test_index_and_negative_index(self):
        assert json_paths.read(BODY, "$.tags[0]") == "p"
        assert json_paths.read(BODY, "$.tags[-1]") == "r"

    def test_wildcard_returns_list(self):
        assert json_paths.read(BODY, "$.items[*].type") == ["x", "y"]

    def test_slice(self):
        assert json_paths.read(BODY, "$.tags[0:2]") == ["p", "q"]

    def test_recursive_descent(self):
        assert json_paths.read(BODY, "$..price") == [10, 20]

    def test_filter(self):
        assert json_paths.read(BODY, "$.items[?(@.price > 15)].type") == ["y"]
        assert json_paths.read(BODY, "$.items[?(@.type == 'x')].price") == [10]

    def test_indefinite_missing_path_is_empty(self):
        assert json_paths.read(BODY, "$..missing") == []


class TestHelpers:
    """Path building and parent path helpers."""

    def test_is_definite(self):
        assert json_paths.is_definite("$.items[0].type")
        assert not json_paths.is_definite("$.items[*].type")
        assert not json_paths.is_definite("$..type")

    def test_parent_path(self):
        assert json_paths.parent_path("$.items[*]") == "$['items']"
        assert json_paths.parent_path("$") is None

    def test_is_array_related(self):
        assert json_paths.is_array_related("$.a[*]")
        assert json_paths.is_array_related("$..a")
        assert not json_paths.is_array_related("$.a[0]")

    def test_format_steps(self):
        assert json_paths.format_steps(("a", 0, "it's")) == "$['a'][0]['it\\'s']"


class TestDelete:
    """Removing addressed entries in place."""

    def test_delete_member(self):
        body = {"a": 1, "b": 2}
        assert json_paths.delete(body, "$.a") == 1
        assert body == {"b": 2}

    def test_delete_all_elements(self):
        body = {"a": [1, 2, 3]}
        assert json_paths.delete(body, "$.a[*]") == 3
        assert body == {"a": []}

    def test_delete_null_value(self):
        body = {"a": None, "b": 1}
        json_paths.delete(body, "$.a")
        assert body == {"b": 1}

    def test_root_is_never_removed(self):
        body = {"a": 1}
        assert json_paths.delete(body, "$") == 0
        assert body == {"a": 1}
