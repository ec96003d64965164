"""Tests for the assertThatJson chain traversal."""
from __future__ import annotations

from src.contract_codegen.body.json_traversal import JsonChain, JsonPathTraverser
from src.contract_codegen.syntax import GroovySyntax, JavaSyntax
from src.shared.models.values import ExecutionProperty, RegexProperty


def chains(body, ordered=False, syntax=None):
    collected = []
    JsonPathTraverser(syntax or JavaSyntax(), ordered=ordered).traverse(body, collected.append)
    return [(assertion.kind, assertion.chain.methods) for assertion in collected]


class TestMaps:
    """Chains generated for nested objects."""

    def test_nested_fields(self):
        assert chains({"a": {"b": "c"}}) == [
            ("equality", '.field("[\'a\']").field("[\'b\']").isEqualTo("c")'),
        ]

    def test_declaration_order_is_kept(self):
        assert [methods for _, methods in chains({"id": 1, "name": "a"})] == [
            '.field("[\'id\']").isEqualTo(1)',
            '.field("[\'name\']").isEqualTo("a")',
        ]

    def test_null_and_empty(self):
        assert chains({"a": None, "b": {}}) == [
            ("null", '.field("[\'a\']").isNull()'),
            ("empty", '.field("[\'b\']").isEmpty()'),
        ]

    def test_regex_leaf(self):
        assert chains({"a": RegexProperty("[0-9]+")}) == [
            ("regex", '.field("[\'a\']").matches("[0-9]+")'),
        ]

    def test_execution_property_is_skipped(self):
        assert chains({"a": ExecutionProperty("check($it)")}) == []


class TestArrays:
    """Chains generated for arrays, by index or by content."""

    def test_primitive_array_unordered(self):
        assert chains({"tags": ["p", "q"]}) == [
            ("equality", '.array("[\'tags\']").arrayField().isEqualTo("p").value()'),
            ("equality", '.array("[\'tags\']").arrayField().isEqualTo("q").value()'),
        ]

    def test_primitive_array_ordered_checks_size(self):
        assert chains({"tags": ["p", "q"]}, ordered=True) == [
            ("size", '.array("[\'tags\']").hasSize(2)'),
            ("equality", '.array("[\'tags\']").elementWithIndex(0).isEqualTo("p")'),
            ("equality", '.array("[\'tags\']").elementWithIndex(1).isEqualTo("q")'),
        ]

    def test_array_of_maps(self):
        assert chains({"items": [{"a": 1}]}) == [
            ("equality", '.array("[\'items\']").field("[\'a\']").isEqualTo(1)'),
        ]

    def test_root_array(self):
        assert chains([1, 2]) == [
            ("equality", ".array().arrayField().isEqualTo(1).value()"),
            ("equality", ".array().arrayField().isEqualTo(2).value()"),
        ]

    def test_empty_array(self):
        assert chains({"a": []}) == [("empty", '.array("[\'a\']").isEmpty()')]


class TestChain:
    """Rendering of a single assertion chain."""

    def test_chain_is_immutable(self):
        root = JsonChain()
        child = root.field(JavaSyntax(), "a")
        assert root.methods == ""
        assert child.path == "$['a']"

    def test_groovy_escapes_dollars_in_patterns(self):
        assert chains({"a": RegexProperty("^$")}, syntax=GroovySyntax()) == [
            ("regex", '.field("[\'a\']").matches("^\\$")'),
        ]
