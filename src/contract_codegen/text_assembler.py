"""Emit-instruction list and the assembler that flattens it into source text.

Fragments never share a live text buffer.  Each one records what it wants
written into an :class:`Emitter` (append, indent, terminate, ...) and the
renderer flattens the merged instruction list once with a
:class:`TextAssembler` configured for the output language.

Because instructions are plain data, block balance can be verified with
:meth:`Emitter.check_balance` before any text exists.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.shared.constants import BLOCK_CLOSE, BLOCK_OPEN, DEFAULT_SPACER
from src.shared.errors import AssemblyError

logger = logging.getLogger(__name__)


class Op(str, Enum):
    """Kinds of emit instructions."""
    APPEND = "append"
    INDENTATION = "indentation"
    NEWLINE = "newline"
    START_BLOCK = "start_block"
    END_BLOCK = "end_block"
    TERMINATE = "terminate"
    AT_END = "at_end"
    LABEL = "label"
    MARK = "mark"
    TRANSFORM = "transform"


# Scope kinds pushed by START_BLOCK; indent() pushes two INDENT scopes
BLOCK = "block"
INDENT = "indent"


@dataclass(frozen=True)
class Instruction:
    """A single emit instruction."""
    op: Op
    payload: Any = None


@dataclass(frozen=True, eq=False)
class SpanHandle:
    """Identifies the text rendered after a :meth:`Emitter.mark` call.

    Handles compare by identity, so spans of merged emitters stay distinct.
    """
    span_id: int


@dataclass
class Emitter:
    """Records emit instructions with a fluent, block-builder style API."""

    instructions: list[Instruction] = field(default_factory=list)
    _span_ids: Iterator[int] = field(
        default_factory=lambda: itertools.count(1), init=False, repr=False, compare=False
    )

    # ------------------------------------------------------------------
    # Raw instructions
    # ------------------------------------------------------------------

    def _emit(self, op: Op, payload: Any = None) -> Emitter:
        self.instructions.append(Instruction(op, payload))
        return self

    def append(self, text: str) -> Emitter:
        if text:
            self._emit(Op.APPEND, text)
        return self

    def add_indentation(self) -> Emitter:
        return self._emit(Op.INDENTATION)

    def add_empty_line(self) -> Emitter:
        return self._emit(Op.NEWLINE)

    def start_block(self) -> Emitter:
        return self._emit(Op.START_BLOCK, BLOCK)

    def end_block(self) -> Emitter:
        return self._emit(Op.END_BLOCK, BLOCK)

    def indent(self) -> Emitter:
        """Open a half-indent: two indentation levels closed by :meth:`unindent`."""
        self._emit(Op.START_BLOCK, INDENT)
        return self._emit(Op.START_BLOCK, INDENT)

    def unindent(self) -> Emitter:
        self._emit(Op.END_BLOCK, INDENT)
        return self._emit(Op.END_BLOCK, INDENT)

    def terminate_if_absent(self) -> Emitter:
        """Append the line ending unless the text already ends with one."""
        return self._emit(Op.TERMINATE)

    add_ending_if_not_present = terminate_if_absent

    def add_at_the_end(self, text: str) -> Emitter:
        return self._emit(Op.AT_END, text)

    def append_with_label_prefix(self, label: str) -> Emitter:
        return self._emit(Op.LABEL, label)

    # ------------------------------------------------------------------
    # Composite instructions
    # ------------------------------------------------------------------

    def add_indented(self, text: str) -> Emitter:
        return self.add_indentation().append(text)

    def add_line(self, text: str) -> Emitter:
        return self.add_indented(text).add_empty_line()

    def add_line_with_ending(self, text: str) -> Emitter:
        return self.add_indented(text).terminate_if_absent().add_empty_line()

    def append_with_space(self, text: str) -> Emitter:
        return self.add_at_the_end(" ").append(text)

    def wrap_in_braces(self, render_inner: Callable[[Emitter], Any]) -> Emitter:
        """Render *render_inner* inside a ``{ ... }`` block.

        Braces and indentation are balanced by construction.
        """
        self.append(BLOCK_OPEN + "\n").start_block()
        render_inner(self)
        self.end_block().add_at_the_end("\n")
        return self.add_line(BLOCK_CLOSE)

    def extend(self, other: Emitter) -> Emitter:
        self.instructions.extend(other.instructions)
        return self

    # ------------------------------------------------------------------
    # Spans
    # ------------------------------------------------------------------

    def mark(self) -> SpanHandle:
        handle = SpanHandle(next(self._span_ids))
        self._emit(Op.MARK, handle)
        return handle

    def transform(self, span: SpanHandle, fn: Callable[[str], str]) -> Emitter:
        """Rewrite the text rendered since *span* was marked."""
        return self._emit(Op.TRANSFORM, (span, fn))

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def check_balance(self) -> None:
        """Verify that every opened scope is closed by a matching call.

        Raises
        ------
        AssemblyError
            On an unmatched ``end_block`` / ``unindent``, on a scope closed
            by the wrong kind of call, on scopes left open, or on a
            transform that references an unknown span.
        """
        stack: list[str] = []
        marks: set[SpanHandle] = set()
        for position, instruction in enumerate(self.instructions):
            if instruction.op is Op.START_BLOCK:
                stack.append(instruction.payload)
            elif instruction.op is Op.END_BLOCK:
                if not stack:
                    raise AssemblyError(
                        detail=f"Unmatched {instruction.payload} close at instruction {position}"
                    )
                opened = stack.pop()
                if opened != instruction.payload:
                    raise AssemblyError(
                        detail=(
                            f"A {opened} scope was closed as {instruction.payload} "
                            f"at instruction {position}"
                        )
                    )
            elif instruction.op is Op.MARK:
                marks.add(instruction.payload)
            elif instruction.op is Op.TRANSFORM and instruction.payload[0] not in marks:
                raise AssemblyError(
                    detail=f"Transform at instruction {position} references an unknown span"
                )
        if stack:
            raise AssemblyError(detail=f"{len(stack)} scope(s) left open")

    def depth(self) -> int:
        """Return the indentation depth reached after all instructions."""
        level = 0
        for instruction in self.instructions:
            if instruction.op is Op.START_BLOCK:
                level += 1
            elif instruction.op is Op.END_BLOCK:
                level -= 1
        return level


class TextAssembler:
    """Flattens emit instructions into text.

    Parameters
    ----------
    spacer:
        Text written once per indentation level.
    line_ending:
        Statement terminator (``";"`` for Java, empty for Groovy).
    label_prefix:
        Prefix written in front of BDD labels (``"// "`` comments them out).
    """

    def __init__(
        self,
        spacer: str = DEFAULT_SPACER,
        line_ending: str = "",
        label_prefix: str = "",
    ) -> None:
        self.spacer = spacer
        self.line_ending = line_ending
        self.label_prefix = label_prefix

    def assemble(self, emitter: Emitter) -> str:
        """Return the text produced by *emitter*'s instructions.

        Raises
        ------
        AssemblyError
            When the instructions are unbalanced.
        """
        emitter.check_balance()
        state = _Buffer(self)
        for instruction in emitter.instructions:
            state.apply(instruction)
        return state.text


class _Buffer:
    """Mutable flattening state; lives for a single :meth:`TextAssembler.assemble`."""

    def __init__(self, assembler: TextAssembler) -> None:
        self.assembler = assembler
        self.text = ""
        self.indents = 0
        self.marks: dict[SpanHandle, int] = {}

    def apply(self, instruction: Instruction) -> None:
        op = instruction.op
        if op is Op.APPEND:
            self.text += instruction.payload
        elif op is Op.INDENTATION:
            self.text += self.assembler.spacer * self.indents
        elif op is Op.NEWLINE:
            self.text += "\n"
        elif op is Op.START_BLOCK:
            self.indents += 1
        elif op is Op.END_BLOCK:
            self.indents -= 1
        elif op is Op.TERMINATE:
            self.add_at_the_end(self.assembler.line_ending)
        elif op is Op.AT_END:
            self.add_at_the_end(instruction.payload)
        elif op is Op.LABEL:
            self.text += self.assembler.label_prefix + instruction.payload
        elif op is Op.MARK:
            self.marks[instruction.payload] = len(self.text)
        elif op is Op.TRANSFORM:
            span, fn = instruction.payload
            start = self.marks[span]
            self.text = self.text[:start] + fn(self.text[start:])

    def add_at_the_end(self, to_add: str) -> None:
        if not to_add:
            return
        if not self.text:
            self.text = to_add
            return
        last = self.text[-1]
        second_last = self.text[-2] if len(self.text) >= 2 else ""
        ends_with_newline = last == "\n"
        is_line_ending = to_add == self.assembler.line_ending
        if last == to_add or self.text.endswith(to_add):
            return
        if not ends_with_newline and self._special(last, to_add) and is_line_ending:
            return
        if ends_with_newline and self._special(second_last, to_add):
            return
        if ends_with_newline:
            self.text = self.text[:-1] + to_add + "\n"
        else:
            self.text += to_add

    def _special(self, char: str, to_add: str) -> bool:
        if not char:
            return False
        spacer = self.assembler.spacer
        return (
            char == BLOCK_OPEN
            or (char == spacer and to_add in (spacer, " "))
            or char == to_add
            or (char == "\n" and to_add in ("\n", " ", self.assembler.line_ending))
        )
