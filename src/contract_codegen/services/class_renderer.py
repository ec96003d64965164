"""Rendering of a whole test class."""

from __future__ import annotations

import logging

from src.contract_codegen.fragments.registry import ExtensionPoint, RenderContext
from src.contract_codegen.services.method_renderer import MethodRenderer
from src.contract_codegen.text_assembler import Emitter

logger = logging.getLogger(__name__)


class ClassRenderer:
    """Records package, imports, annotations, fields and methods of a class.

    Parameters
    ----------
    method_renderer:
        Renderer used for the class body; a default one is created when
        omitted.
    """

    def __init__(self, method_renderer: MethodRenderer | None = None) -> None:
        self._methods = method_renderer or MethodRenderer()

    def render(self, ctx: RenderContext) -> Emitter:
        """Return the emitter holding the complete class.

        Raises
        ------
        ConfigurationExhaustedError
            When no class metadata fragment accepts the profile.
        """
        out = Emitter()
        catalogue = ctx.catalogue
        class_metadata = catalogue.select_one(ExtensionPoint.CLASS_METADATA, ctx)

        if class_metadata.render_package(ctx, out):
            out.add_empty_line()
        for point in (ExtensionPoint.IMPORTS, ExtensionPoint.STATIC_IMPORTS):
            fragments = catalogue.select_all(point, ctx)
            for fragment in fragments:
                fragment.render(ctx, out)
            if fragments:
                out.add_empty_line()
        for annotation in catalogue.select_all(ExtensionPoint.CLASS_ANNOTATIONS, ctx):
            annotation.render(ctx, out)
        class_metadata.render(ctx, out)

        def render_body(body: Emitter) -> None:
            for field in catalogue.select_all(ExtensionPoint.FIELDS, ctx):
                field.render(ctx, body)
                body.terminate_if_absent().add_empty_line()
            rendered = self._methods.render_methods(ctx, body)
            logger.debug("Rendered %d test methods", rendered)

        out.wrap_in_braces(render_body)
        return out
