"""Tests for fragment registration and per-profile selection."""
from __future__ import annotations

import itertools

import pytest

from src.contract_codegen.fragments.catalogue import default_library
from src.contract_codegen.fragments.protocols import Fragment, MethodPostProcessor, MethodPreProcessor
from src.contract_codegen.fragments.registry import (
    ExtensionPoint,
    FragmentLibrary,
    build_context,
)
from src.contract_codegen.syntax import (
    CUSTOM_ACCESSORS,
    GroovySyntax,
    JAXRS_ACCESSORS,
    KotlinSyntax,
    MESSAGING_ACCESSORS,
)
from src.shared.errors import ConfigurationExhaustedError
from src.shared.models.render import Profile, TargetLanguage, TestFramework, TestMode

JAVA_JUNIT5_MOCKMVC = Profile(TargetLanguage.JAVA, TestFramework.JUNIT5, TestMode.MOCKMVC)


class StubFragment:
    def __init__(self, name: str, accepting: bool = True) -> None:
        self.name = name
        self.accepting = accepting

    def accepts(self, ctx) -> bool:
        return self.accepting

    def render(self, ctx, out) -> None:
        out.append(self.name)


def context_for(library: FragmentLibrary, profile: Profile = JAVA_JUNIT5_MOCKMVC):
    return build_context(None, None, library.catalogue(profile), None, None)


class TestRegistration:
    """Slicing of registered fragments by profile."""

    def test_slices_filter_candidates(self):
        java_only = StubFragment("java")
        everywhere = StubFragment("all")
        library = (
            FragmentLibrary()
            .register(ExtensionPoint.IMPORTS, java_only, languages=[TargetLanguage.JAVA])
            .register(ExtensionPoint.IMPORTS, everywhere)
        )
        groovy = Profile(TargetLanguage.GROOVY, TestFramework.SPOCK, TestMode.MOCKMVC)
        assert library.candidates(ExtensionPoint.IMPORTS, JAVA_JUNIT5_MOCKMVC) == [java_only, everywhere]
        assert library.candidates(ExtensionPoint.IMPORTS, groovy) == [everywhere]

    def test_harness_slice(self):
        jaxrs = StubFragment("jaxrs")
        library = FragmentLibrary().register(
            ExtensionPoint.WHEN, jaxrs, harnesses=[TestMode.JAXRSCLIENT]
        )
        assert library.candidates(ExtensionPoint.WHEN, JAVA_JUNIT5_MOCKMVC) == []

    def test_catalogue_is_frozen(self):
        library = FragmentLibrary().register(ExtensionPoint.FIELDS, StubFragment("a"))
        catalogue = library.catalogue(JAVA_JUNIT5_MOCKMVC)
        library.register(ExtensionPoint.FIELDS, StubFragment("b"))
        assert len(catalogue.fragments[ExtensionPoint.FIELDS]) == 1


class TestSelection:
    """Exclusive and filter selection from a frozen catalogue."""

    def test_select_one_takes_first_accepting(self):
        second = StubFragment("second")
        library = (
            FragmentLibrary()
            .register(ExtensionPoint.CLASS_METADATA, StubFragment("first", accepting=False))
            .register(ExtensionPoint.CLASS_METADATA, second)
            .register(ExtensionPoint.CLASS_METADATA, StubFragment("third"))
        )
        ctx = context_for(library)
        assert ctx.catalogue.select_one(ExtensionPoint.CLASS_METADATA, ctx) is second

    def test_select_one_exhausted(self):
        library = FragmentLibrary().register(
            ExtensionPoint.METHOD_METADATA, StubFragment("no", accepting=False)
        )
        ctx = context_for(library)
        with pytest.raises(ConfigurationExhaustedError) as exc_info:
            ctx.catalogue.select_one(ExtensionPoint.METHOD_METADATA, ctx)
        assert exc_info.value.extension_point == "method metadata"

    def test_select_all_keeps_registration_order(self):
        fragments = [StubFragment("a"), StubFragment("b", accepting=False), StubFragment("c")]
        library = FragmentLibrary()
        for fragment in fragments:
            library.register(ExtensionPoint.THEN, fragment)
        ctx = context_for(library)
        selected = ctx.catalogue.select_all(ExtensionPoint.THEN, ctx)
        assert [fragment.name for fragment in selected] == ["a", "c"]

    def test_check_exhaustive(self):
        groovy = Profile(TargetLanguage.GROOVY, TestFramework.JUNIT5, TestMode.MOCKMVC)
        with pytest.raises(ConfigurationExhaustedError) as exc_info:
            FragmentLibrary().check_exhaustive(groovy)
        assert "class metadata" in exc_info.value.detail


class TestRenderContext:
    """Syntax and accessors bound into the render context."""

    def test_groovy_profile_gets_groovy_syntax(self):
        profile = Profile(TargetLanguage.GROOVY, TestFramework.SPOCK, TestMode.MOCKMVC)
        ctx = context_for(FragmentLibrary(), profile)
        assert isinstance(ctx.syntax, GroovySyntax)
        assert ctx.is_groovy

    def test_kotlin_profile_gets_kotlin_syntax(self):
        profile = Profile(TargetLanguage.KOTLIN, TestFramework.JUNIT5, TestMode.CUSTOM)
        ctx = context_for(FragmentLibrary(), profile)
        assert isinstance(ctx.syntax, KotlinSyntax)
        assert not ctx.is_groovy
        assert ctx.accessors is CUSTOM_ACCESSORS

    def test_accessors_follow_contract(self, make_config, make_class_metadata, messaging_contract):
        profile = Profile(TargetLanguage.JAVA, TestFramework.JUNIT5, TestMode.JAXRSCLIENT)
        ctx = context_for(FragmentLibrary(), profile)
        assert ctx.accessors is JAXRS_ACCESSORS
        metadata = make_class_metadata(make_config(), messaging_contract).contracts()[0]
        bound = ctx.for_contract(metadata)
        assert bound.accessors is MESSAGING_ACCESSORS
        assert ctx.contract is None


class TestDefaultLibrary:
    """Coverage of the built-in fragment library."""

    @pytest.mark.parametrize(
        ("framework", "language", "harness"),
        [
            (framework, language, harness)
            for framework, harness in itertools.product(TestFramework, TestMode)
            for language in framework.languages
        ],
    )
    def test_every_profile_is_covered(self, framework, language, harness):
        default_library().check_exhaustive(Profile(language, framework, harness))

    def test_kotlin_has_no_java_metadata(self):
        kotlin = Profile(TargetLanguage.KOTLIN, TestFramework.JUNIT5, TestMode.MOCKMVC)
        candidates = default_library().candidates(ExtensionPoint.CLASS_METADATA, kotlin)
        assert [type(fragment).__name__ for fragment in candidates] == ["KotlinClassMetadata"]

    def test_custom_harness_request_fragments(self):
        custom = Profile(TargetLanguage.JAVA, TestFramework.JUNIT5, TestMode.CUSTOM)
        library = default_library()
        given = library.candidates(ExtensionPoint.REQUEST_GIVEN, custom)
        when = library.candidates(ExtensionPoint.RESPONSE_WHEN, custom)
        assert [type(fragment).__name__ for fragment in given] == ["CustomRequestGiven"]
        assert [type(fragment).__name__ for fragment in when] == ["CustomResponseWhen"]

    def test_fragments_follow_protocols(self):
        library = default_library()
        for point in ExtensionPoint:
            for fragment in library.candidates(point, JAVA_JUNIT5_MOCKMVC):
                if point is ExtensionPoint.METHOD_PRE_PROCESSORS:
                    assert isinstance(fragment, MethodPreProcessor)
                elif point is ExtensionPoint.METHOD_POST_PROCESSORS:
                    assert isinstance(fragment, MethodPostProcessor)
                else:
                    assert isinstance(fragment, Fragment)
