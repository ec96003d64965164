"""Fragment registration and per-profile selection.

Fragments are registered once in a :class:`FragmentLibrary` together with
the slice of output profiles they apply to (languages, frameworks,
harnesses).  :meth:`FragmentLibrary.catalogue` freezes the candidates of
every extension point for one :class:`Profile`; renderers then ask the
resulting :class:`FragmentCatalogue` either for the single fragment of an
exclusive-choice point or for every accepting fragment of a filter point.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.contract_codegen.syntax import (
    AssertionSyntaxProfile,
    HarnessAccessors,
    accessors_for,
    syntax_for,
)
from src.shared.errors import ConfigurationExhaustedError
from src.shared.models.render import Profile, TargetLanguage, TestFramework, TestMode

logger = logging.getLogger(__name__)


class ExtensionPoint(str, Enum):
    """Places in a test class where fragments plug in."""
    CLASS_METADATA = "class metadata"
    IMPORTS = "imports"
    STATIC_IMPORTS = "static imports"
    CLASS_ANNOTATIONS = "class annotations"
    FIELDS = "fields"
    METHOD_METADATA = "method metadata"
    METHOD_ANNOTATIONS = "method annotations"
    METHOD_PRE_PROCESSORS = "method pre-processors"
    GIVEN = "given"
    WHEN = "when"
    THEN = "then"
    METHOD_POST_PROCESSORS = "method post-processors"
    REQUEST_GIVEN = "request given"
    RESPONSE_WHEN = "response when"


EXCLUSIVE_POINTS: frozenset[ExtensionPoint] = frozenset({
    ExtensionPoint.CLASS_METADATA,
    ExtensionPoint.METHOD_METADATA,
    ExtensionPoint.REQUEST_GIVEN,
    ExtensionPoint.RESPONSE_WHEN,
})


@dataclass(frozen=True)
class Registration:
    """A fragment plus the profile slice it was registered for.

    ``None`` for a dimension means every value of that dimension.
    """
    fragment: Any
    languages: frozenset[TargetLanguage] | None = None
    frameworks: frozenset[TestFramework] | None = None
    harnesses: frozenset[TestMode] | None = None

    def applies_to(self, profile: Profile) -> bool:
        return (
            (self.languages is None or profile.language in self.languages)
            and (self.frameworks is None or profile.framework in self.frameworks)
            and (self.harnesses is None or profile.harness in self.harnesses)
        )


def _frozen(values: Iterable[Any] | None) -> frozenset | None:
    return None if values is None else frozenset(values)


class FragmentLibrary:
    """Table of fragments keyed by extension point and profile slice."""

    def __init__(self) -> None:
        self._registrations: dict[ExtensionPoint, list[Registration]] = {
            point: [] for point in ExtensionPoint
        }

    def register(
        self,
        point: ExtensionPoint,
        fragment: Any,
        languages: Iterable[TargetLanguage] | None = None,
        frameworks: Iterable[TestFramework] | None = None,
        harnesses: Iterable[TestMode] | None = None,
    ) -> FragmentLibrary:
        self._registrations[point].append(Registration(
            fragment=fragment,
            languages=_frozen(languages),
            frameworks=_frozen(frameworks),
            harnesses=_frozen(harnesses),
        ))
        return self

    def candidates(self, point: ExtensionPoint, profile: Profile) -> list[Any]:
        """Fragments registered for *point* whose slice covers *profile*."""
        return [
            registration.fragment
            for registration in self._registrations[point]
            if registration.applies_to(profile)
        ]

    def catalogue(self, profile: Profile) -> FragmentCatalogue:
        """Freeze the candidate lists of every point for *profile*."""
        return FragmentCatalogue(
            profile=profile,
            fragments={point: tuple(self.candidates(point, profile)) for point in ExtensionPoint},
        )

    def check_exhaustive(self, profile: Profile) -> None:
        """Fail early when an exclusive point that is always needed has no candidate.

        Only class and method metadata are checked: the request/response
        points are needed by HTTP contracts alone.

        Raises
        ------
        ConfigurationExhaustedError
            Naming the first point left without a candidate.
        """
        for point in (ExtensionPoint.CLASS_METADATA, ExtensionPoint.METHOD_METADATA):
            if not self.candidates(point, profile):
                logger.debug("No [%s] fragment registered for %s", point.value, profile.describe())
                raise ConfigurationExhaustedError(point.value)


@dataclass(frozen=True)
class FragmentCatalogue:
    """Per-profile view of a library; immutable once built."""

    profile: Profile
    fragments: dict[ExtensionPoint, tuple[Any, ...]]

    def select_one(self, point: ExtensionPoint, ctx: RenderContext) -> Any:
        """Return the first registered fragment of *point* accepting *ctx*.

        Raises
        ------
        ConfigurationExhaustedError
            When no candidate accepts the context.
        """
        for fragment in self.fragments[point]:
            if fragment.accepts(ctx):
                logger.debug("Selected [%s] for [%s]", type(fragment).__name__, point.value)
                return fragment
        raise ConfigurationExhaustedError(point.value)

    def select_all(self, point: ExtensionPoint, ctx: RenderContext) -> list[Any]:
        """Return every fragment of *point* accepting *ctx*, in registration order."""
        return [fragment for fragment in self.fragments[point] if fragment.accepts(ctx)]


@dataclass(frozen=True)
class RenderContext:
    """Everything a fragment may read while rendering.

    The class-level context has ``contract`` unset; the method renderer
    binds one contract at a time with :meth:`for_contract`.
    """

    config: Any
    class_metadata: Any
    catalogue: FragmentCatalogue
    syntax: AssertionSyntaxProfile
    body_reader: Any
    template_processor: Any
    contract: Any = None

    @property
    def profile(self) -> Profile:
        return self.catalogue.profile

    @property
    def accessors(self) -> HarnessAccessors:
        messaging = self.contract is not None and self.contract.is_messaging
        return accessors_for(self.profile.harness, messaging=messaging)

    @property
    def is_groovy(self) -> bool:
        return self.syntax.language is TargetLanguage.GROOVY

    def for_contract(self, metadata: Any) -> RenderContext:
        return dataclasses.replace(self, contract=metadata)


def build_context(
    config: Any,
    class_metadata: Any,
    catalogue: FragmentCatalogue,
    body_reader: Any,
    template_processor: Any,
) -> RenderContext:
    """Create the class-level context with the syntax of the profile's language."""
    return RenderContext(
        config=config,
        class_metadata=class_metadata,
        catalogue=catalogue,
        syntax=syntax_for(catalogue.profile.language),
        body_reader=body_reader,
        template_processor=template_processor,
    )
