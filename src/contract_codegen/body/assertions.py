"""Synthesized body assertions and their emission."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.contract_codegen.text_assembler import Emitter


class AssertionKind(str, Enum):
    """What a synthesized statement checks."""
    PARSE = "parse"
    EQUALITY = "equality"
    REGEX = "regex"
    NULL = "null"
    EMPTY = "empty"
    SIZE = "size"
    TYPE = "type"
    COMMAND = "command"
    TEXT = "text"
    BYTES = "bytes"


@dataclass(frozen=True)
class PathAssertion:
    """One rendered statement plus the body path it is about."""
    kind: AssertionKind
    text: str
    path: str | None = None
    from_matcher: bool = False


@dataclass
class BodyVerification:
    """Ordered result of body synthesis.

    ``matcher_block_start`` is the index of the first matcher-derived
    assertion; an ``and:`` label is emitted in front of it, preceded by a
    blank line when ``blank_line_before_matchers`` is set.
    """
    assertions: list[PathAssertion] = field(default_factory=list)
    matcher_block_start: int | None = None
    residual_body: Any = None
    blank_line_before_matchers: bool = True

    def add(self, assertion: PathAssertion) -> None:
        self.assertions.append(assertion)

    def start_matcher_block(self) -> None:
        self.matcher_block_start = len(self.assertions)

    def for_path(self, path: str) -> list[PathAssertion]:
        return [assertion for assertion in self.assertions if assertion.path == path]

    def of_kind(self, kind: AssertionKind) -> list[PathAssertion]:
        return [assertion for assertion in self.assertions if assertion.kind is kind]

    @property
    def lines(self) -> list[str]:
        return [assertion.text for assertion in self.assertions]

    def emit(self, out: Emitter) -> None:
        """Write every assertion as a terminated line."""
        for index, assertion in enumerate(self.assertions):
            if index == self.matcher_block_start:
                self._emit_matcher_label(out)
            out.add_line_with_ending(assertion.text)
        if self.matcher_block_start == len(self.assertions):
            self._emit_matcher_label(out)

    def _emit_matcher_label(self, out: Emitter) -> None:
        if self.blank_line_before_matchers:
            out.add_empty_line()
        out.end_block()
        out.add_indentation().append_with_label_prefix("and:").add_empty_line()
        out.start_block()
