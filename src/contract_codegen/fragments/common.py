"""Layout helpers shared by the given/when/then fragments.

A labelled section looks like::

    // given:
        MockMvcRequestSpecification request = given()
                .header("Content-Type", "application/json")
                .body("{}");

The label sits at method level, the opening statement one level deeper and
the continuation lines a half-indent (two levels) further.  The helpers
below record that layout; fragments only supply the statements.
"""

from __future__ import annotations

from typing import Any

from src.contract_codegen.fragments.registry import RenderContext
from src.contract_codegen.metadata import request_body_as_string
from src.contract_codegen.text_assembler import Emitter
from src.shared.constants import REQUEST_DIRECTION
from src.shared.models.render import ContentType
from src.shared.models.values import (
    ExecutionProperty,
    FromFileProperty,
    MatchingStrategy,
    NotToEscapePattern,
    OptionalProperty,
    RegexProperty,
    is_absent,
    resolve_test_side,
)

_MIME_TYPES = {
    ContentType.JSON: "application/json",
    ContentType.XML: "application/xml",
    ContentType.TEXT: "text/plain",
    ContentType.FORM: "application/x-www-form-urlencoded",
}


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def start_body_block(out: Emitter, label: str) -> Emitter:
    """Write the label line and open the section block."""
    return out.add_indentation().append_with_label_prefix(label).add_empty_line().start_block()


def accepted(ctx: RenderContext, visitors: list[Any]) -> list[Any]:
    return [visitor for visitor in visitors if visitor.accepts(ctx)]


def indented_body_block(ctx: RenderContext, out: Emitter, visitors: list[Any]) -> None:
    """Render continuation lines of the statement opened just before.

    Visitors write their lines with ``add_indented``; the statement is
    terminated after the last one.  The caller closes the section block.
    """
    matching = accepted(ctx, visitors)
    if not matching:
        out.terminate_if_absent().add_empty_line()
        return
    out.add_empty_line().indent()
    for index, visitor in enumerate(matching):
        visitor.render(ctx, out)
        if index < len(matching) - 1:
            out.add_empty_line()
    out.terminate_if_absent().add_empty_line().unindent()


def body_block(ctx: RenderContext, out: Emitter, visitors: list[Any]) -> None:
    """Render standalone statements, each terminated, then close the section."""
    matching = accepted(ctx, visitors)
    if not matching:
        out.terminate_if_absent().add_empty_line().end_block()
        return
    for index, visitor in enumerate(matching):
        visitor.render(ctx, out)
        out.terminate_if_absent()
        if index < len(matching) - 1:
            out.add_empty_line()
    out.terminate_if_absent().end_block()


def continuation_lines(out: Emitter, lines: list[str]) -> None:
    """Write *lines* so that the last one stays open for termination."""
    for index, line in enumerate(lines):
        if index < len(lines) - 1:
            out.add_line(line)
        else:
            out.add_indented(line)


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------


def present(entries: list[Any] | None) -> list[Any]:
    """Drop header, cookie or parameter entries whose value is ABSENT."""
    return [entry for entry in entries or [] if not is_absent(entry.value)]


def non_body_value(value: Any) -> Any:
    """Test-side value of a header, cookie or query parameter."""
    if isinstance(value, NotToEscapePattern):
        return value
    if isinstance(value, OptionalProperty):
        return value.optional_pattern()
    if isinstance(value, MatchingStrategy):
        return resolve_test_side(value.value)
    return resolve_test_side(value)


def non_body_literal(ctx: RenderContext, value: Any) -> str:
    """Source literal for a value sent in the request (header, cookie, ...)."""
    value = non_body_value(value)
    if isinstance(value, ExecutionProperty):
        return value.execution_command
    if isinstance(value, (RegexProperty, NotToEscapePattern)):
        return ctx.syntax.quoted_short_text(value.pattern)
    return ctx.syntax.quoted_short_text(value)


def request_body_expression(ctx: RenderContext, body: Any, long_text: bool = True) -> str:
    """Source expression for a request or input message body.

    Execution properties are inlined, from-file bodies are loaded from a
    fixture and everything else becomes a quoted literal.
    """
    metadata = ctx.contract
    value = resolve_test_side(body)
    if isinstance(value, ExecutionProperty):
        return value.execution_command
    if isinstance(value, FromFileProperty):
        if value.is_byte:
            return ctx.body_reader.read_bytes_expression(metadata, value, REQUEST_DIRECTION)
        return ctx.body_reader.read_string_expression(metadata, value, REQUEST_DIRECTION, ctx.syntax)
    text = request_body_as_string(value, metadata.input_test_content_type)
    if long_text:
        return ctx.syntax.quoted_long_text(text)
    return ctx.syntax.quoted_short_text(text)


def mime_type(ctx: RenderContext) -> str:
    """Content type sent with a request body."""
    headers = ctx.contract.input_headers
    declared = headers.content_type() if headers else None
    if declared:
        return declared
    return _MIME_TYPES.get(ctx.contract.input_test_content_type, "application/octet-stream")


def declaration(ctx: RenderContext, java_type: str, name: str) -> str:
    """``Type name`` in Java, ``def name`` in Groovy, ``val name`` in Kotlin."""
    if ctx.is_groovy:
        return f"def {name}"
    return ctx.syntax.declare(java_type, name)
