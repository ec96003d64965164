"""Conversion of a JSON body tree into fluent ``assertThatJson`` chains.

Every leaf left in a body after matcher removal becomes one chain such as::

    assertThatJson(parsedJson).array("['items']").field("['name']").isEqualTo("a")

Each chain also records the JSON path of the leaf it asserts, which is what
the synthesizer reports alongside the rendered text.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any

from src.contract_codegen.syntax import AssertionSyntaxProfile
from src.shared.models.values import (
    ExecutionProperty,
    FromFileProperty,
    OptionalProperty,
    RegexProperty,
)


@dataclass(frozen=True)
class JsonChain:
    """An immutable, partially built ``assertThatJson`` method chain."""

    methods: str = ""
    path: str = "$"
    iterating: bool = False
    nameless: bool = True
    asserting_value_in_array: bool = False
    finished: bool = False

    def _quoted_key(self, syntax: AssertionSyntaxProfile, key: Any) -> str:
        return syntax.quoted_short_text(f"['{key}']")

    def field(self, syntax: AssertionSyntaxProfile, key: Any) -> JsonChain:
        return replace(
            self,
            methods=f"{self.methods}.field({self._quoted_key(syntax, key)})",
            path=f"{self.path}['{key}']",
            nameless=False,
        )

    def array_named(self, syntax: AssertionSyntaxProfile, key: Any) -> JsonChain:
        return replace(
            self,
            methods=f"{self.methods}.array({self._quoted_key(syntax, key)})",
            path=f"{self.path}['{key}']",
            iterating=True,
            nameless=False,
        )

    def array(self) -> JsonChain:
        return replace(self, methods=f"{self.methods}.array()", iterating=True)

    def array_field(self) -> JsonChain:
        return replace(
            self,
            methods=f"{self.methods}.arrayField()",
            asserting_value_in_array=True,
        )

    def iterate(self) -> JsonChain:
        """Step into the elements of the array the chain points at."""
        return replace(self, path=f"{self.path}[*]", iterating=True)

    def element_with_index(self, index: int) -> JsonChain:
        return replace(
            self,
            methods=f"{self.methods}.elementWithIndex({index})",
            path=f"{self.path}[{index}]",
            iterating=False,
        )

    def is_empty(self) -> JsonChain:
        return replace(self, methods=f"{self.methods}.isEmpty()", finished=True)

    def has_size(self, size: int) -> JsonChain:
        return replace(self, methods=f"{self.methods}.hasSize({size})", finished=True)

    def is_null(self) -> JsonChain:
        return replace(self, methods=f"{self.methods}.isNull()", finished=True)

    def _close(self, methods: str) -> JsonChain:
        if self.asserting_value_in_array:
            methods += ".value()"
        return replace(self, methods=methods, finished=True)

    def is_equal_to(self, literal: str) -> JsonChain:
        return self._close(f"{self.methods}.isEqualTo({literal})")

    def matches(self, syntax: AssertionSyntaxProfile, pattern: str) -> JsonChain:
        return self._close(f"{self.methods}.matches({syntax.quoted_short_text(pattern)})")


@dataclass(frozen=True)
class ChainAssertion:
    """A finished chain and the kind of check it performs."""
    chain: JsonChain
    kind: str


def _is_primitive(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool, Decimal, RegexProperty, OptionalProperty))


def _only_primitives(items: list) -> bool:
    return bool(items) and all(
        item is not None and _is_primitive(item) for item in items
    )


class JsonPathTraverser:
    """Walks a body tree depth-first (maps, then lists) and emits chains.

    Parameters
    ----------
    syntax:
        Formatting rules of the target language.
    ordered:
        When ``True`` array elements are addressed by index and primitive
        arrays additionally get a ``hasSize`` check.
    """

    def __init__(self, syntax: AssertionSyntaxProfile, ordered: bool = False) -> None:
        self._syntax = syntax
        self._ordered = ordered

    def traverse(self, body: Any, collect: Callable[[ChainAssertion], None]) -> None:
        self._process(JsonChain(), body, collect)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _process(self, key: JsonChain, value: Any, collect: Callable[[ChainAssertion], None]) -> None:
        if isinstance(value, dict):
            self._process_map(key, value, collect)
        elif isinstance(value, list):
            self._process_list(key, value, collect)
        elif isinstance(value, ExecutionProperty):
            # Rendered as a command line by the synthesizer
            return
        else:
            collect(self._leaf(key, value))

    def _process_map(self, key: JsonChain, value: dict, collect: Callable[[ChainAssertion], None]) -> None:
        if not value:
            collect(ChainAssertion(key.is_empty(), "empty"))
            return
        for entry_key, entry_value in value.items():
            if isinstance(entry_value, list):
                child = key.array_named(self._syntax, entry_key)
                if not entry_value:
                    child = child.is_empty()
            else:
                child = key.field(self._syntax, entry_key)
            self._process(child, entry_value, collect)

    def _process_list(self, key: JsonChain, items: list, collect: Callable[[ChainAssertion], None]) -> None:
        if not items:
            collect(ChainAssertion(key if key.finished else key.is_empty(), "empty"))
            return
        if key.nameless and not key.iterating:
            key = key.array()
        if _only_primitives(items):
            if self._ordered:
                collect(ChainAssertion(key.has_size(len(items)), "size"))
                for index, item in enumerate(items):
                    self._process(key.element_with_index(index), item, collect)
            else:
                element_key = key.iterate().array_field()
                for item in items:
                    collect(self._leaf(element_key, item))
            return
        for index, item in enumerate(items):
            if self._ordered:
                element_key = key.element_with_index(index)
            else:
                element_key = key.iterate()
            if isinstance(item, list):
                self._process(element_key.array() if not self._ordered else element_key, item, collect)
            elif isinstance(item, dict) or item is None:
                self._process(element_key, item, collect)
            elif self._ordered:
                self._process(element_key, item, collect)
            else:
                collect(self._leaf(element_key.array_field(), item))

    def _leaf(self, key: JsonChain, value: Any) -> ChainAssertion:
        syntax = self._syntax
        if value is None:
            return ChainAssertion(key.is_null(), "null")
        if isinstance(value, RegexProperty):
            return ChainAssertion(key.matches(syntax, value.pattern), "regex")
        if isinstance(value, OptionalProperty):
            return ChainAssertion(key.matches(syntax, value.optional_pattern()), "regex")
        if isinstance(value, FromFileProperty):
            return ChainAssertion(key.is_equal_to(syntax.quoted_short_text(value.as_string())), "equality")
        if isinstance(value, str):
            return ChainAssertion(key.is_equal_to(syntax.quoted_short_text(value)), "equality")
        if isinstance(value, (bool, int, float, Decimal)):
            return ChainAssertion(key.is_equal_to(syntax.number_literal(value)), "equality")
        return ChainAssertion(key.is_equal_to(syntax.quoted_short_text(str(value))), "equality")
