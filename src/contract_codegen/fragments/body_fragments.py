"""Response and output-message body assertions.

The generic ``and:`` section picks the first body-then that accepts the
contract: binary files, then plain text, then JSON, then XML.
"""

from __future__ import annotations

import logging
from typing import Any

from src.contract_codegen.body.json_verification import JsonBodySynthesizer
from src.contract_codegen.body.xml_verification import XmlBodySynthesizer
from src.contract_codegen.fragments.common import start_body_block
from src.contract_codegen.fragments.registry import RenderContext
from src.contract_codegen.metadata import request_body_as_string
from src.contract_codegen.text_assembler import Emitter
from src.shared.constants import RESPONSE_BODY_VAR, RESPONSE_DIRECTION
from src.shared.errors import UnsupportedFeatureError
from src.shared.models.contracts import BodyMatchers
from src.shared.models.render import ContentType
from src.shared.models.values import (
    ExecutionProperty,
    FromFileProperty,
    RegexProperty,
    resolve_test_side,
)

logger = logging.getLogger(__name__)


def output_body(ctx: RenderContext) -> Any:
    return resolve_test_side(ctx.contract.output_body)


def output_matchers(ctx: RenderContext) -> BodyMatchers | None:
    contract = ctx.contract.contract
    if contract.response is not None:
        return contract.response.body_matchers
    if contract.output_message is not None:
        return contract.output_message.body_matchers
    return None


class BinaryBodyThen:
    """Compares the raw response bytes with a fixture file."""

    def accepts(self, ctx: RenderContext) -> bool:
        body = output_body(ctx)
        return isinstance(body, FromFileProperty) and body.is_byte

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        expected = ctx.body_reader.read_bytes_expression(
            ctx.contract, output_body(ctx), RESPONSE_DIRECTION
        )
        out.add_indented(
            ctx.syntax.assert_that(ctx.accessors.bytes(ctx.syntax))
            + ctx.syntax.is_equal_to_unquoted(expected)
        )


class TextBodyThen:
    """Plain text bodies: ``String responseBody = ...`` and one assertion."""

    def accepts(self, ctx: RenderContext) -> bool:
        content_type = ctx.contract.output_test_content_type
        if content_type in (ContentType.JSON, ContentType.XML):
            return False
        body = output_body(ctx)
        if isinstance(body, FromFileProperty):
            return not body.is_byte
        return not (content_type is ContentType.DEFINED and ctx.contract.evaluates_to_json)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        syntax = ctx.syntax
        out.add_line_with_ending(
            syntax.string_variable(RESPONSE_BODY_VAR, ctx.accessors.response_as_string)
        )
        body = output_body(ctx)
        if isinstance(body, FromFileProperty):
            body = body.as_string()
        if isinstance(body, str) and body.startswith("$"):
            out.add_indented(body[1:].replace("$value", RESPONSE_BODY_VAR))
        elif isinstance(body, RegexProperty):
            out.add_indented(syntax.assert_that(RESPONSE_BODY_VAR) + syntax.matches(body.pattern))
        elif isinstance(body, ExecutionProperty):
            out.add_indented(body.insert_value(RESPONSE_BODY_VAR))
        else:
            text = request_body_as_string(body, ctx.contract.output_test_content_type)
            out.add_indented(
                syntax.assert_that(RESPONSE_BODY_VAR)
                + syntax.is_equal_to_unquoted(syntax.quoted_long_text(text))
            )


class JsonBodyThen:
    def accepts(self, ctx: RenderContext) -> bool:
        content_type = ctx.contract.output_test_content_type
        if content_type is ContentType.JSON:
            return True
        return content_type is ContentType.DEFINED and ctx.contract.evaluates_to_json

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        contract = ctx.contract.contract
        synthesizer = JsonBodySynthesizer(
            ctx.syntax,
            assert_json_size=ctx.config.assert_json_size,
            template_processor=ctx.template_processor,
        )
        verification = synthesizer.synthesize(
            output_body(ctx),
            output_matchers(ctx),
            ctx.accessors.response_as_string,
            contract.request,
        )
        verification.emit(out)
        residual = verification.residual_body
        if residual is not None and not isinstance(residual, (dict, list, ExecutionProperty)):
            logger.debug("JSON body of [%s] is a scalar, comparing it as text", ctx.contract.method_name)
            out.add_line_with_ending(
                ctx.syntax.string_variable(RESPONSE_BODY_VAR, ctx.accessors.response_as_string)
            )
            out.add_indented(
                ctx.syntax.assert_that(RESPONSE_BODY_VAR)
                + ctx.syntax.is_equal_to_unquoted(ctx.syntax.quoted_long_text(residual))
            )


class XmlBodyThen:
    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.contract.output_test_content_type is ContentType.XML

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        verification = XmlBodySynthesizer(ctx.syntax).synthesize(
            output_body(ctx),
            output_matchers(ctx),
            ctx.accessors.response_as_string,
        )
        verification.emit(out)


BODY_THENS = (BinaryBodyThen(), TextBodyThen(), JsonBodyThen(), XmlBodyThen())


class GenericBodyThen:
    """Opens an ``and:`` section and renders the matching body assertions."""

    def __init__(self, body_thens: tuple = BODY_THENS) -> None:
        self._body_thens = body_thens

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.contract.output_body is not None

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.terminate_if_absent().end_block().add_empty_line()
        start_body_block(out, "and:")
        for body_then in self._body_thens:
            if body_then.accepts(ctx):
                body_then.render(ctx, out)
                return
        raise UnsupportedFeatureError(
            detail=f"No body assertion applies to [{ctx.contract.method_name}]"
        )
