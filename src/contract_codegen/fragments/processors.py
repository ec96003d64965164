"""Method pre- and post-processors."""

from __future__ import annotations

import logging

from src.contract_codegen.fragments.registry import RenderContext
from src.contract_codegen.text_assembler import Emitter, SpanHandle

logger = logging.getLogger(__name__)


class InProgressContractPreProcessor:
    """Skips contracts that are still being written."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.contract.is_in_progress

    def should_continue(self, ctx: RenderContext) -> bool:
        logger.debug(
            "Contract [%s] is in progress, no test will be generated", ctx.contract.method_name
        )
        return False


class IgnoredContractPreProcessor:
    """Lets ignored contracts through; the ignore annotation marks them."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.contract.is_ignored

    def should_continue(self, ctx: RenderContext) -> bool:
        logger.debug("Contract [%s] is ignored, the test will be disabled", ctx.contract.method_name)
        return True


class TemplateUpdatingPostProcessor:
    """Resolves request template entries left in the rendered method.

    Response values may reference the request (``{{ request.url }}``); the
    references are evaluated against the test-side request once the whole
    method is rendered.  Text without template entries is left untouched,
    so applying the processor twice gives the same result.
    """

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.contract.is_http

    def process(self, ctx: RenderContext, out: Emitter, span: SpanHandle) -> None:
        request = ctx.contract.contract.request
        out.transform(span, lambda text: ctx.template_processor.transform(
            request, text, ctx.syntax.escape_substitution
        ))
