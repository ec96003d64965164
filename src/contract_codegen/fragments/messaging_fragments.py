"""Given/when/then fragments for messaging contracts."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from src.contract_codegen.fragments.body_fragments import GenericBodyThen
from src.contract_codegen.fragments.common import (
    declaration,
    non_body_literal,
    non_body_value,
    present,
    request_body_expression,
    start_body_block,
)
from src.contract_codegen.fragments.registry import RenderContext
from src.contract_codegen.text_assembler import Emitter
from src.shared.models.values import resolve_test_side

logger = logging.getLogger(__name__)


def _input(ctx: RenderContext):
    return ctx.contract.contract.input


def _output(ctx: RenderContext):
    return ctx.contract.contract.output_message


def _destination(ctx: RenderContext, value: Any) -> str:
    return ctx.syntax.quoted_short_text(resolve_test_side(value))


class MessagingGiven:
    """Builds the input message sent to the service under test."""

    def accepts(self, ctx: RenderContext) -> bool:
        message = _input(ctx)
        return (
            ctx.contract.is_messaging
            and message is not None
            and (message.message_body is not None or message.message_from is not None)
        )

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        message = _input(ctx)
        start_body_block(out, "given:")
        variable = declaration(ctx, "ContractVerifierMessage", "inputMessage")
        out.add_line(f"{variable} = contractVerifierMessaging.create(")
        out.indent()
        body = message.message_body if message.message_body is not None else ""
        out.add_indented(request_body_expression(ctx, body))
        headers = present(message.message_headers.entries if message.message_headers else [])
        if headers:
            out.add_empty_line().add_indented(", headers()").start_block()
            for header in headers:
                out.add_empty_line().add_indented(
                    f".header({ctx.syntax.quoted_short_text(header.name)}, "
                    f"{non_body_literal(ctx, header.value)})"
                )
            out.end_block()
        out.add_empty_line().unindent()
        out.add_indented(")").terminate_if_absent().add_empty_line()
        out.end_block()


class MessagingWhen:
    """Runs the trigger method or sends the input message."""

    def accepts(self, ctx: RenderContext) -> bool:
        message = _input(ctx)
        return (
            ctx.contract.is_messaging
            and message is not None
            and (message.triggered_by is not None or message.message_from is not None)
        )

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        message = _input(ctx)
        start_body_block(out, "when:")
        if message.triggered_by is not None:
            out.add_line_with_ending(message.triggered_by.execution_command)
        else:
            contract_file = ctx.body_reader.store_contract_as_yaml(ctx.contract)
            out.add_line(
                f"contractVerifierMessaging.send(inputMessage, "
                f"{_destination(ctx, message.message_from)},"
            )
            out.indent()
            out.add_line_with_ending(f'contract(this, "{contract_file}"))')
            out.unindent()
        out.end_block()


class MessagingHeadersThen:
    def accepts(self, ctx: RenderContext) -> bool:
        message = _output(ctx)
        return bool(message.headers and present(message.headers.entries))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        syntax = ctx.syntax
        out.add_empty_line().end_block()
        start_body_block(out, "and:")
        for header in present(_output(ctx).headers.entries):
            accessor = ctx.accessors.header(syntax, header.name)
            out.add_line_with_ending(syntax.assert_not_null(accessor))
            value = non_body_value(header.value)
            if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
                out.add_line_with_ending(syntax.assert_comparison(accessor, value))
            else:
                out.add_line_with_ending(syntax.assert_comparison(f"{accessor}.toString()", value))


class MessagingThen:
    """Receives the output message and checks its headers and payload."""

    def __init__(self) -> None:
        self._headers = MessagingHeadersThen()
        self._body = GenericBodyThen()

    def accepts(self, ctx: RenderContext) -> bool:
        message = _output(ctx)
        return ctx.contract.is_messaging and message is not None and message.sent_to is not None

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        message = _output(ctx)
        syntax = ctx.syntax
        contract_file = ctx.body_reader.store_contract_as_yaml(ctx.contract)
        start_body_block(out, "then:")
        variable = declaration(ctx, "ContractVerifierMessage", "response")
        out.add_line(f"{variable} = contractVerifierMessaging.receive({_destination(ctx, message.sent_to)},")
        out.indent()
        out.add_line_with_ending(f'contract(this, "{contract_file}"))')
        out.unindent()
        out.add_line_with_ending(syntax.assert_not_null("response"))
        if self._headers.accepts(ctx):
            self._headers.render(ctx, out)
        if self._body.accepts(ctx):
            self._body.render(ctx, out)
            out.terminate_if_absent().add_at_the_end("\n")
        if message.assert_that is not None:
            out.add_line_with_ending(message.assert_that.execution_command)
        out.end_block()


class MessagingAssertThen:
    """``then:`` with only the input's assertion when no message is expected."""

    def accepts(self, ctx: RenderContext) -> bool:
        message = _input(ctx)
        return (
            ctx.contract.is_messaging
            and _output(ctx) is None
            and message is not None
            and message.assert_that is not None
        )

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        start_body_block(out, "then:")
        out.add_line_with_ending(_input(ctx).assert_that.execution_command)
        out.end_block()
