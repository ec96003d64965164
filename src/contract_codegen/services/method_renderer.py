"""Rendering of one test method per contract.

For each contract the renderer walks a fixed sequence::

    pre-processors -> (skip?) -> annotations -> signature -> {
        given -> when -> then
    } -> post-processors

Pre-processors may veto the contract, in which case nothing at all is
recorded for it.  Post-processors receive a span handle covering the
method text and may rewrite it once the method is complete.
"""

from __future__ import annotations

import logging

from src.contract_codegen.fragments.registry import ExtensionPoint, RenderContext
from src.contract_codegen.metadata import SingleContractMetadata
from src.contract_codegen.text_assembler import Emitter

logger = logging.getLogger(__name__)


class MethodRenderer:
    """Renders the test methods of a class."""

    def render_methods(self, ctx: RenderContext, out: Emitter) -> int:
        """Render every contract of the class and return how many were rendered.

        Raises
        ------
        ConfigurationExhaustedError
            When no method metadata fragment accepts the profile.
        """
        catalogue = ctx.catalogue
        catalogue.select_one(ExtensionPoint.METHOD_METADATA, ctx)
        out.add_empty_line()
        rendered = 0
        for metadata in ctx.class_metadata.contracts():
            if self.render_method(ctx.for_contract(metadata), out):
                rendered += 1
        return rendered

    def render_method(self, ctx: RenderContext, out: Emitter) -> bool:
        catalogue = ctx.catalogue
        metadata: SingleContractMetadata = ctx.contract
        for processor in catalogue.select_all(ExtensionPoint.METHOD_PRE_PROCESSORS, ctx):
            if not processor.should_continue(ctx):
                logger.debug(
                    "Pre-processor [%s] skipped contract [%s]",
                    type(processor).__name__, metadata.method_name,
                )
                return False
        logger.debug("Rendering test method [%s]", metadata.test_method_name)

        span = out.mark()
        for annotation in catalogue.select_all(ExtensionPoint.METHOD_ANNOTATIONS, ctx):
            annotation.render(ctx, out)
        catalogue.select_one(ExtensionPoint.METHOD_METADATA, ctx).render(ctx, out)
        out.wrap_in_braces(lambda body: self._render_body(ctx, body))
        out.add_empty_line()

        for processor in catalogue.select_all(ExtensionPoint.METHOD_POST_PROCESSORS, ctx):
            processor.process(ctx, out, span)
        return True

    def _render_body(self, ctx: RenderContext, out: Emitter) -> None:
        if self._visit(ctx, out, ExtensionPoint.GIVEN):
            out.add_empty_line()
        self._visit(ctx, out, ExtensionPoint.WHEN)
        out.add_empty_line()
        self._visit(ctx, out, ExtensionPoint.THEN)

    @staticmethod
    def _visit(ctx: RenderContext, out: Emitter, point: ExtensionPoint) -> bool:
        fragments = ctx.catalogue.select_all(point, ctx)
        for index, fragment in enumerate(fragments):
            fragment.render(ctx, out)
            out.terminate_if_absent()
            if index < len(fragments) - 1:
                out.add_empty_line()
        return bool(fragments)
