"""JSON body verification synthesis.

Turns an expected response (or output message) body plus its body matchers
into an ordered list of assertions:

1. a single ``DocumentContext parsedJson = JsonPath.parse(...)`` statement;
2. one ``assertThatJson`` chain per body leaf that no matcher covers;
3. a command line per execution property left in the body;
4. after an ``and:`` label, one assertion per matcher (two for a type
   matcher with occurrence bounds).

Paths covered by a matcher are removed from the body before the residual
leaves are collected, so a path is never asserted both ways.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any

from src.contract_codegen.body import json_paths
from src.contract_codegen.body.assertions import (
    AssertionKind,
    BodyVerification,
    PathAssertion,
)
from src.contract_codegen.body.json_traversal import ChainAssertion, JsonPathTraverser
from src.contract_codegen.services.template_processor import TemplateProcessor
from src.contract_codegen.syntax import (
    AssertionSyntaxProfile,
    java_class_literal,
    java_type_name,
)
from src.shared.constants import PARSED_JSON_VAR
from src.shared.errors import MalformedContractError, UnsupportedFeatureError
from src.shared.models.contracts import BodyMatcher, BodyMatchers, MatchingType, Request
from src.shared.models.values import (
    ExecutionProperty,
    FromFileProperty,
    RegexProperty,
    deep_copy,
)

logger = logging.getLogger(__name__)

_REQUEST_BODY_REFERENCES = ("request.body", "request.escaped_body")


def body_snapshot(body: Any) -> str:
    """Serialize *body* for error messages."""
    def default(value: Any) -> Any:
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, RegexProperty):
            return value.pattern
        if isinstance(value, FromFileProperty):
            return value.file_name
        return str(value)

    return json.dumps(body, default=default)


def retrieve_by_path(body: Any, path: str) -> Any:
    """Read *path* from *body*, failing loudly when it is missing.

    Raises
    ------
    MalformedContractError
        When the path is invalid or does not exist in the body.
    """
    try:
        return json_paths.read(body, path)
    except json_paths.JsonPathNotFoundError as exc:
        snapshot = body_snapshot(body)
        raise MalformedContractError(
            detail=(
                f"Entry for the provided JSON path <{path}> doesn't exist "
                f"in the body <{snapshot}>"
            ),
            path=path,
            body_snapshot=snapshot,
        ) from exc
    except json_paths.JsonPathSyntaxError as exc:
        raise MalformedContractError(
            detail=f"Invalid JSON path <{path}>: {exc}",
            path=path,
            body_snapshot=body_snapshot(body),
        ) from exc


def _contains_only_empty_elements(value: Any) -> bool:
    if isinstance(value, dict):
        items = list(value.values())
    elif isinstance(value, list):
        items = value
    else:
        return False
    return all(isinstance(item, (dict, list)) and not item for item in items)


def _remove_trailing_containers(body: Any, path: str) -> None:
    parent = json_paths.parent_path(path)
    if parent is None or parent == "$":
        return
    removed = False
    for location in json_paths.find(body, parent):
        if location.is_root or not _contains_only_empty_elements(location.value):
            continue
        container = location.parent
        if isinstance(container, dict):
            container.pop(location.key, None)
            removed = True
        elif isinstance(container, list) and location.value in container:
            container.remove(location.value)
            removed = True
    if removed:
        _remove_trailing_containers(body, parent)


def remove_matching_json_paths(body: Any, matchers: BodyMatchers | None) -> Any:
    """Remove every matcher-covered path from *body* in place and return it.

    Paths are removed whenever they exist, whatever their value (``null``
    included).  Containers left holding nothing but empty containers are
    removed as well, bottom-up, so no empty shell is asserted afterwards.

    Raises
    ------
    UnsupportedFeatureError
        When a matcher path uses syntax outside the supported subset.
    """
    if not matchers or not matchers.has_matchers():
        return body
    if not isinstance(body, (dict, list)):
        return body
    removed_paths: list[str] = []
    for matcher in matchers.matchers:
        try:
            if json_paths.delete(body, matcher.path):
                removed_paths.append(matcher.path)
        except json_paths.JsonPathSyntaxError as exc:
            raise UnsupportedFeatureError(
                detail=f"Cannot remove JSON path <{matcher.path}>: {exc}"
            ) from exc
    for path in sorted(removed_paths, reverse=True):
        _remove_trailing_containers(body, path)
    if isinstance(body, list) and all(isinstance(item, (dict, list)) and not item for item in body):
        body.clear()
    return body


class JsonBodySynthesizer:
    """Synthesizes JSON body assertions for one profile.

    Parameters
    ----------
    syntax:
        Formatting rules of the target language.
    assert_json_size:
        Address array elements by index and check primitive array sizes.
    template_processor:
        Resolves request references found in the expected body.
    """

    def __init__(
        self,
        syntax: AssertionSyntaxProfile,
        assert_json_size: bool = False,
        template_processor: TemplateProcessor | None = None,
    ) -> None:
        self._syntax = syntax
        self._assert_json_size = assert_json_size
        self._templates = template_processor or TemplateProcessor()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def synthesize(
        self,
        body: Any,
        matchers: BodyMatchers | None,
        response_accessor: str,
        request: Request | None = None,
    ) -> BodyVerification:
        """Build the assertions for *body*.

        Parameters
        ----------
        body:
            Test-side body value (maps, lists, scalars and value types).
        matchers:
            Body matchers declared for the body, in declaration order.
        response_accessor:
            Expression yielding the actual body as a string.
        request:
            Request of the contract, used to resolve response templates.

        Returns
        -------
        BodyVerification
            The ordered assertions; ``residual_body`` is the body left after
            matcher removal (a scalar means the caller must fall back to a
            plain text comparison).

        Raises
        ------
        MalformedContractError
            When a matcher path does not exist in the body.
        """
        syntax = self._syntax
        result = BodyVerification()
        result.add(PathAssertion(
            kind=AssertionKind.PARSE,
            text=f"{syntax.declare('DocumentContext', PARSED_JSON_VAR)} = JsonPath.parse({response_accessor})",
        ))

        has_request_body = request is not None and request.body is not None
        if has_request_body and isinstance(body, str):
            if not self._templates.contains_json_path_template_entry(body) and not any(
                reference in body for reference in _REQUEST_BODY_REFERENCES
            ):
                body = self._templates.transform(request, body)
        body = self._parse_if_json(body)

        copied_body = deep_copy(body)
        working = remove_matching_json_paths(deep_copy(body), matchers)
        if has_request_body:
            working = self._resolve_references(working, request)
        result.residual_body = working

        if isinstance(working, (dict, list)) and working:
            traverser = JsonPathTraverser(syntax, ordered=self._assert_json_size)
            traverser.traverse(working, lambda chain: result.add(
                self._chain_assertion(chain, request if has_request_body else None)
            ))
            self._add_execution_lines(result, working, ())
        elif isinstance(working, ExecutionProperty):
            result.add(PathAssertion(
                kind=AssertionKind.COMMAND,
                text=working.insert_value(self._read_expression("$")),
                path="$",
            ))

        if matchers and matchers.has_matchers():
            result.start_matcher_block()
            for matcher in matchers.matchers:
                self._add_matcher_assertions(result, matcher, copied_body)
        logger.debug(
            "Synthesized %d JSON assertions (%d matchers)",
            len(result.assertions),
            len(matchers.matchers) if matchers else 0,
        )
        return result

    # ------------------------------------------------------------------
    # Residual body
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_if_json(body: Any) -> Any:
        if isinstance(body, FromFileProperty) and not body.is_byte:
            body = body.as_string()
        if isinstance(body, str):
            try:
                parsed = json.loads(body)
            except ValueError:
                return body
            if isinstance(parsed, (dict, list)):
                return parsed
        return body

    def _resolve_references(self, body: Any, request: Request) -> Any:
        if isinstance(body, dict):
            return {key: self._resolve_references(value, request) for key, value in body.items()}
        if isinstance(body, list):
            return [self._resolve_references(value, request) for value in body]
        if not isinstance(body, str) or not self._templates.contains_template_entry(body):
            return body
        if self._templates.contains_json_path_template_entry(body):
            return body
        if any(reference in body for reference in _REQUEST_BODY_REFERENCES):
            # Whole request body references are substituted over the method text
            return body
        return self._templates.transform(request, body)

    def _chain_assertion(self, chain: ChainAssertion, request: Request | None) -> PathAssertion:
        method = chain.chain.methods
        if request is not None and self._templates.contains_json_path_template_entry(method):
            method = self._unquote_non_string_reference(method, request)
        kind = {
            "equality": AssertionKind.EQUALITY,
            "regex": AssertionKind.REGEX,
            "null": AssertionKind.NULL,
            "empty": AssertionKind.EMPTY,
            "size": AssertionKind.SIZE,
        }[chain.kind]
        return PathAssertion(
            kind=kind,
            text=f"assertThatJson({PARSED_JSON_VAR}){method}",
            path=chain.chain.path,
        )

    def _unquote_non_string_reference(self, method: str, request: Request) -> str:
        path = self._templates.json_path_from_template_entry(method)
        if path is None:
            return method
        try:
            value = self._templates.referenced_value(request, path)
        except (json_paths.JsonPathNotFoundError, ValueError):
            return method
        if isinstance(value, str):
            return method
        return method.replace('"{{', "{{").replace('}}"', "}}")

    def _add_execution_lines(self, result: BodyVerification, value: Any, steps: tuple) -> None:
        if isinstance(value, ExecutionProperty):
            path = json_paths.format_steps(steps)
            result.add(PathAssertion(
                kind=AssertionKind.COMMAND,
                text=value.insert_value(self._read_expression(path)),
                path=path,
            ))
        elif isinstance(value, dict):
            for key, item in value.items():
                self._add_execution_lines(result, item, steps + (key,))
        elif isinstance(value, list):
            for index, item in enumerate(value):
                self._add_execution_lines(result, item, steps + (index,))

    # ------------------------------------------------------------------
    # Matchers
    # ------------------------------------------------------------------

    def _read_expression(self, path: str, cls: str | None = None) -> str:
        quoted = self._syntax.quoted_short_text(path)
        if cls is None:
            return f"{PARSED_JSON_VAR}.read({quoted})"
        return f"{PARSED_JSON_VAR}.read({quoted}, {self._syntax.class_literal(cls)})"

    def _add_matcher_assertions(
        self,
        result: BodyVerification,
        matcher: BodyMatcher,
        copied_body: Any,
    ) -> None:
        if matcher.matching_type is MatchingType.NULL:
            result.add(self._null_check(matcher))
        elif matcher.matching_type is MatchingType.EQUALITY or matcher.matching_type.regex_related():
            result.add(self._equality_check(matcher, copied_body))
        elif matcher.matching_type is MatchingType.COMMAND:
            result.add(self._command_execution(matcher, copied_body))
        else:
            for assertion in self._type_check(matcher, copied_body):
                result.add(assertion)

    def _null_check(self, matcher: BodyMatcher) -> PathAssertion:
        syntax = self._syntax
        text = syntax.assert_that(syntax.cast_to_object(self._read_expression(matcher.path))) + syntax.is_null()
        return PathAssertion(AssertionKind.NULL, text, matcher.path, from_matcher=True)

    def _matcher_value(self, matcher: BodyMatcher, copied_body: Any) -> Any:
        if matcher.matching_type is MatchingType.EQUALITY or matcher.value is None:
            return retrieve_by_path(copied_body, matcher.path)
        return matcher.value

    def _value_as_param(self, value: Any) -> str:
        if isinstance(value, str):
            return self._syntax.quoted_short_text(value)
        if isinstance(value, (bool, int, float, Decimal)):
            return self._syntax.number_literal(value)
        if value is None:
            return "null"
        return self._syntax.quoted_short_text(str(value))

    def _equality_check(self, matcher: BodyMatcher, copied_body: Any) -> PathAssertion:
        syntax = self._syntax
        value = self._matcher_value(matcher, copied_body)
        cls = java_type_name(value)
        if cls == "Object":
            cls = java_class_literal(value)
        if isinstance(value, RegexProperty):
            value = value.pattern
        param = self._value_as_param(value)
        regex = matcher.matching_type.regex_related()
        kind = AssertionKind.REGEX if regex else AssertionKind.EQUALITY
        if regex and json_paths.is_array_related(matcher.path):
            quoted_path = syntax.quoted_short_text(matcher.path)
            collection = self._read_expression(matcher.path, "java.util.Collection")
            text = (
                syntax.assert_that(syntax.cast_to_iterable(collection))
                + f".as({quoted_path}).allElementsMatch({param})"
            )
            return PathAssertion(kind, text, matcher.path, from_matcher=True)
        comparison = "matches" if regex else "isEqualTo"
        text = syntax.assert_that(self._read_expression(matcher.path, cls)) + f".{comparison}({param})"
        return PathAssertion(kind, text, matcher.path, from_matcher=True)

    def _command_execution(self, matcher: BodyMatcher, copied_body: Any) -> PathAssertion:
        retrieve_by_path(copied_body, matcher.path)
        command = matcher.value
        if not isinstance(command, ExecutionProperty):
            command = ExecutionProperty(str(command))
        text = command.insert_value(self._read_expression(matcher.path))
        return PathAssertion(AssertionKind.COMMAND, text, matcher.path, from_matcher=True)

    def _type_check(self, matcher: BodyMatcher, copied_body: Any) -> list[PathAssertion]:
        syntax = self._syntax
        element = self._matcher_value(matcher, copied_body)
        class_literal = syntax.class_literal(java_class_literal(element))
        type_line = (
            syntax.assert_that(syntax.cast_to_object(self._read_expression(matcher.path)))
            + f".isInstanceOf({class_literal})"
        )
        assertions = [PathAssertion(AssertionKind.TYPE, type_line, matcher.path, from_matcher=True)]
        minimum = matcher.min_type_occurrence
        maximum = matcher.max_type_occurrence
        if minimum is None and maximum is None:
            return assertions
        quoted_path = syntax.quoted_short_text(matcher.path)
        prefix = f".as({quoted_path}).has"
        if json_paths.is_array_related(matcher.path):
            prefix += "Flattened"
        prefix += "Size"
        if minimum is not None and maximum is not None:
            check = f"{prefix}Between({minimum}, {maximum})"
        elif minimum is not None:
            check = f"{prefix}GreaterThanOrEqualTo({minimum})"
        else:
            check = f"{prefix}LessThanOrEqualTo({maximum})"
        collection = self._read_expression(matcher.path, "java.util.Collection")
        size_line = syntax.assert_that(syntax.cast_to_iterable(collection)) + check
        assertions.append(PathAssertion(AssertionKind.SIZE, size_line, matcher.path, from_matcher=True))
        return assertions
