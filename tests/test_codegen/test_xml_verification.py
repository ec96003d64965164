"""Tests for XPath based XML body verification."""
from __future__ import annotations

import pytest

from src.contract_codegen.body.assertions import AssertionKind
from src.contract_codegen.body.xml_verification import (
    XmlBodySynthesizer,
    collect_leaves,
    parse_xml,
    retrieve_value,
    select,
)
from src.contract_codegen.syntax import JavaSyntax
from src.shared.errors import MalformedContractError, UnsupportedFeatureError
from src.shared.models.contracts import BodyMatcher, BodyMatchers

BODY = '<a><b id="1">text</b></a>'


def synthesize(body, *matchers):
    return XmlBodySynthesizer(JavaSyntax()).synthesize(
        body, BodyMatchers(matchers=list(matchers)), "response.getBody().asString()"
    )


class TestLeaves:
    """Leaf collection from XML documents."""

    def test_attributes_and_text(self):
        leaves = collect_leaves(parse_xml(BODY))
        assert [(leaf.xpath, leaf.value) for leaf in leaves] == [
            ("/a/b/@id", "1"),
            ("/a/b/text()", "text"),
        ]

    def test_repeated_children_are_indexed(self):
        leaves = collect_leaves(parse_xml("<a><b>1</b><b>2</b><c>3</c></a>"))
        assert [leaf.xpath for leaf in leaves] == ["/a/b[1]/text()", "/a/b[2]/text()", "/a/c/text()"]

    def test_namespaces_use_local_names(self):
        leaves = collect_leaves(parse_xml('<n:a xmlns:n="urn:x"><n:b>v</n:b></n:a>'))
        assert leaves[0].xpath == "/a/b/text()"

    def test_malformed_body(self):
        with pytest.raises(MalformedContractError):
            parse_xml("<a><b></a>")


class TestSelect:
    """XPath selection of elements and attributes."""

    def test_positional_step(self):
        root = parse_xml("<a><b>1</b><b>2</b></a>")
        assert retrieve_value(root, "/a/b[2]/text()") == "2"

    def test_attribute(self):
        assert retrieve_value(parse_xml(BODY), "/a/b/@id") == "1"

    def test_descendant_search(self):
        root = parse_xml(BODY)
        assert [element.tag for element, _ in select(root, "//b/text()")] == ["b"]

    def test_wrong_root_selects_nothing(self):
        assert select(parse_xml(BODY), "/z/b/text()") == []

    def test_missing_value(self):
        with pytest.raises(MalformedContractError):
            retrieve_value(parse_xml(BODY), "/a/c/text()")


class TestSynthesizer:
    """XML body assertions and matchers."""

    def test_every_leaf_is_asserted(self):
        result = synthesize(BODY)
        assert result.matcher_block_start == 4
        assert result.lines[4:] == [
            'assertThat(valueFromXPath(parsedXml, "/a/b/@id")).isEqualTo("1")',
            'assertThat(valueFromXPath(parsedXml, "/a/b/text()")).isEqualTo("text")',
        ]
        assert result.lines[3] == (
            "Document parsedXml = documentBuilder.parse("
            "new InputSource(new StringReader(response.getBody().asString())))"
        )

    def test_matcher_replaces_covered_leaf(self):
        result = synthesize(BODY, BodyMatcher.by_regex("/a/b/text()", "[a-z]+"))
        assert result.lines[4:] == [
            'assertThat(valueFromXPath(parsedXml, "/a/b/@id")).isEqualTo("1")',
            'assertThat(valueFromXPath(parsedXml, "/a/b/text()")).matches("[a-z]+")',
        ]

    def test_null_matcher(self):
        result = synthesize(BODY, BodyMatcher.by_null("/a/b/@id"))
        assert result.lines[-1] == 'assertThat(nodeFromXPath(parsedXml, "/a/b/@id")).isNull()'
        assert len(result.of_kind(AssertionKind.EQUALITY)) == 1

    def test_command_matcher(self):
        result = synthesize(BODY, BodyMatcher.by_command("/a/b/@id", "check($it)"))
        assert result.lines[-1] == 'check("1")'

    def test_type_matcher_is_unsupported(self):
        with pytest.raises(UnsupportedFeatureError):
            synthesize(BODY, BodyMatcher.by_type("/a/b/text()"))

    def test_no_blank_line_before_matchers(self):
        assert synthesize(BODY).blank_line_before_matchers is False
