"""Runtime-checkable protocols for fragments and method processors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from src.contract_codegen.fragments.registry import RenderContext
    from src.contract_codegen.text_assembler import Emitter, SpanHandle


@runtime_checkable
class Fragment(Protocol):
    """Protocol for code fragments registered at an extension point."""

    def accepts(self, ctx: RenderContext) -> bool:
        """Check whether this fragment applies to the current render.

        Args:
            ctx: The render context (class level, or bound to one contract).

        Returns:
            True if the fragment should render.
        """
        ...

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        """Record the fragment's text into *out*.

        Args:
            ctx: The render context.
            out: The emitter owned by the caller.
        """
        ...


@runtime_checkable
class MethodPreProcessor(Protocol):
    """Protocol for processors that may veto rendering a test method."""

    def accepts(self, ctx: RenderContext) -> bool:
        ...

    def should_continue(self, ctx: RenderContext) -> bool:
        """Return False to skip the method for the bound contract."""
        ...


@runtime_checkable
class MethodPostProcessor(Protocol):
    """Protocol for processors that rewrite a rendered test method."""

    def accepts(self, ctx: RenderContext) -> bool:
        ...

    def process(self, ctx: RenderContext, out: Emitter, span: SpanHandle) -> None:
        """Rewrite the method text recorded since *span*.

        Args:
            ctx: The render context bound to the contract.
            out: The emitter holding the method.
            span: Handle marking the start of the method.
        """
        ...
