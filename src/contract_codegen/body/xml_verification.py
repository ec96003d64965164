"""XML body verification synthesis.

The expected body is parsed with :mod:`xml.etree.ElementTree`; every text
node and attribute becomes an XPath equality matcher (``/a/b/text()``,
``/a/b/@id``).  Leaves covered by an explicit matcher are dropped and the
explicit matchers are appended, so the generated ``and:`` block reads every
value back with ``valueFromXPath`` / ``nodeFromXPath``.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any

from src.contract_codegen.body.assertions import (
    AssertionKind,
    BodyVerification,
    PathAssertion,
)
from src.contract_codegen.syntax import AssertionSyntaxProfile
from src.shared.constants import PARSED_XML_VAR
from src.shared.errors import MalformedContractError, UnsupportedFeatureError
from src.shared.models.contracts import BodyMatcher, BodyMatchers, MatchingType
from src.shared.models.render import TargetLanguage
from src.shared.models.values import ExecutionProperty, FromFileProperty, RegexProperty

logger = logging.getLogger(__name__)

_TEXT_STEP = "text()"
_ATTRIBUTE_STEP = re.compile(r"^@(?P<name>[\w.:-]+)$")


@dataclass(frozen=True)
class XmlLeaf:
    """A text node or attribute of the expected body."""
    xpath: str
    element: ET.Element
    attribute: str | None
    value: str


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else str(tag)


def parse_xml(body: Any) -> ET.Element:
    """Parse an expected XML body.

    Raises
    ------
    MalformedContractError
        When the body is not well-formed XML.
    """
    if isinstance(body, FromFileProperty):
        body = body.as_bytes()
    try:
        return ET.fromstring(body)
    except ET.ParseError as exc:
        snapshot = body.decode("utf-8", "replace") if isinstance(body, bytes) else str(body)
        raise MalformedContractError(
            detail=f"Expected XML body is not well formed: {exc}",
            body_snapshot=snapshot,
        ) from exc


def collect_leaves(root: ET.Element) -> list[XmlLeaf]:
    """Return every non-blank text node and attribute in document order."""
    leaves: list[XmlLeaf] = []

    def visit(element: ET.Element, xpath: str) -> None:
        for name, value in element.attrib.items():
            local = _local_name(name)
            leaves.append(XmlLeaf(f"{xpath}/@{local}", element, name, value))
        text = (element.text or "").strip()
        if text:
            leaves.append(XmlLeaf(f"{xpath}/{_TEXT_STEP}", element, None, text))
        counts: dict[str, int] = {}
        for child in element:
            local = _local_name(child.tag)
            counts[local] = counts.get(local, 0) + 1
        seen: dict[str, int] = {}
        for child in element:
            local = _local_name(child.tag)
            seen[local] = seen.get(local, 0) + 1
            step = local if counts[local] == 1 else f"{local}[{seen[local]}]"
            visit(child, f"{xpath}/{step}")

    visit(root, f"/{_local_name(root.tag)}")
    return leaves


def _split_target(xpath: str) -> tuple[str, str | None, bool]:
    """Split ``/a/b/@id`` or ``/a/b/text()`` into the element path and target."""
    path = xpath.rstrip("/")
    head, _, last = path.rpartition("/")
    if last == _TEXT_STEP:
        return head, None, True
    attribute = _ATTRIBUTE_STEP.match(last)
    if attribute:
        return head, attribute.group("name"), False
    return path, None, True


def _to_element_path(root: ET.Element, element_path: str) -> str | None:
    """Translate an absolute XPath into an ElementTree path relative to *root*.

    Returns ``None`` when the first step does not name the root element.
    """
    if element_path.startswith("//"):
        return "." + element_path[1:]
    steps = [step for step in element_path.split("/") if step]
    if not steps:
        return "."
    first = re.sub(r"\[.*\]$", "", steps[0])
    if first not in ("*", _local_name(root.tag)):
        return None
    return "/".join(["."] + steps[1:])


def select(root: ET.Element, xpath: str) -> list[tuple[ET.Element, str | None]]:
    """Return ``(element, attribute)`` targets of *xpath* in document order.

    Raises
    ------
    UnsupportedFeatureError
        When the expression is outside the subset ElementTree evaluates.
    """
    element_path, attribute, _ = _split_target(xpath)
    relative = _to_element_path(root, element_path)
    if relative is None:
        return []
    try:
        if relative == ".":
            elements = [root]
        elif relative.startswith(".//"):
            elements = list(root.iterfind(relative))
            if _local_name(root.tag) == relative[3:]:
                elements.insert(0, root)
        else:
            elements = list(root.iterfind(relative))
    except SyntaxError as exc:
        raise UnsupportedFeatureError(detail=f"Unsupported XPath <{xpath}>: {exc}") from exc
    targets: list[tuple[ET.Element, str | None]] = []
    for element in elements:
        if attribute is None:
            targets.append((element, None))
            continue
        for name in element.attrib:
            if _local_name(name) == attribute:
                targets.append((element, name))
    return targets


def retrieve_value(root: ET.Element, xpath: str) -> str:
    """Return the first value *xpath* selects.

    Raises
    ------
    MalformedContractError
        When nothing is selected.
    """
    for element, attribute in select(root, xpath):
        if attribute is not None:
            return element.attrib[attribute]
        return (element.text or "").strip()
    raise MalformedContractError(
        detail=f"Entry for the provided XPath <{xpath}> doesn't exist in the body",
        path=xpath,
        body_snapshot=ET.tostring(root, encoding="unicode"),
    )


class XmlBodySynthesizer:
    """Synthesizes XPath assertions for an expected XML body."""

    def __init__(self, syntax: AssertionSyntaxProfile) -> None:
        self._syntax = syntax

    def synthesize(
        self,
        body: Any,
        matchers: BodyMatchers | None,
        response_accessor: str,
    ) -> BodyVerification:
        """Build the processing lines and the XPath ``and:`` block.

        Raises
        ------
        UnsupportedFeatureError
            For type matchers, which DOM node values cannot honour.
        MalformedContractError
            When the body cannot be parsed or a matcher selects nothing.
        """
        root = parse_xml(body)
        result = BodyVerification(blank_line_before_matchers=False)
        declare = self._syntax.declare
        new = "" if self._syntax.language is TargetLanguage.KOTLIN else "new "
        for line in (
            f"{declare('DocumentBuilderFactory', 'builderFactory')} = DocumentBuilderFactory.newInstance()",
            "builderFactory.setNamespaceAware(true)",
            f"{declare('DocumentBuilder', 'documentBuilder')} = builderFactory.newDocumentBuilder()",
            f"{declare('Document', PARSED_XML_VAR)} = documentBuilder.parse("
            f"{new}InputSource({new}StringReader({response_accessor})))",
        ):
            result.add(PathAssertion(AssertionKind.PARSE, line))

        explicit = list(matchers.matchers) if matchers else []
        covered: set[tuple[int, str | None]] = set()
        for matcher in explicit:
            for element, attribute in select(root, matcher.path):
                covered.add((id(element), attribute))

        result.start_matcher_block()
        for leaf in collect_leaves(root):
            if (id(leaf.element), leaf.attribute) in covered:
                continue
            result.add(self._equality(leaf.xpath, leaf.value, regex=False))
        for matcher in explicit:
            result.add(self._matcher_assertion(root, matcher))
        logger.debug("Synthesized %d XML assertions", len(result.assertions))
        return result

    # ------------------------------------------------------------------
    # Matchers
    # ------------------------------------------------------------------

    def _equality(self, xpath: str, value: str, regex: bool, from_matcher: bool = False) -> PathAssertion:
        syntax = self._syntax
        comparison = "matches" if regex else "isEqualTo"
        text = (
            f"assertThat(valueFromXPath({PARSED_XML_VAR}, {syntax.quoted_short_text(xpath)}))"
            f".{comparison}({syntax.quoted_short_text(value)})"
        )
        kind = AssertionKind.REGEX if regex else AssertionKind.EQUALITY
        return PathAssertion(kind, text, xpath, from_matcher=from_matcher)

    def _matcher_assertion(self, root: ET.Element, matcher: BodyMatcher) -> PathAssertion:
        syntax = self._syntax
        if matcher.matching_type is MatchingType.NULL:
            text = (
                f"assertThat(nodeFromXPath({PARSED_XML_VAR}, "
                f"{syntax.quoted_short_text(matcher.path)})).isNull()"
            )
            return PathAssertion(AssertionKind.NULL, text, matcher.path, from_matcher=True)
        if matcher.matching_type is MatchingType.EQUALITY or matcher.matching_type.regex_related():
            regex = matcher.matching_type.regex_related()
            if matcher.matching_type is MatchingType.EQUALITY or matcher.value is None:
                value = retrieve_value(root, matcher.path)
            elif isinstance(matcher.value, RegexProperty):
                value = matcher.value.pattern
            else:
                value = str(matcher.value)
            return self._equality(matcher.path, value, regex, from_matcher=True)
        if matcher.matching_type is MatchingType.COMMAND:
            value = retrieve_value(root, matcher.path)
            command = matcher.value
            if not isinstance(command, ExecutionProperty):
                command = ExecutionProperty(str(command))
            text = command.insert_value(syntax.quoted_short_text(value))
            return PathAssertion(AssertionKind.COMMAND, text, matcher.path, from_matcher=True)
        raise UnsupportedFeatureError(
            detail="The `getNodeValue()` method in `org.w3c.dom.Node` always returns String."
        )
