"""Tests for the contract, body value and profile models."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.shared.models.contracts import (
    BodyMatcher,
    BodyMatchers,
    Contract,
    Header,
    Headers,
    Input,
    MatchingType,
    OutputMessage,
    Request,
    Response,
    Url,
)
from src.shared.models.render import Profile, TargetLanguage, TestFramework, TestMode
from src.shared.models.values import (
    ISO_DATE,
    DslProperty,
    ExecutionProperty,
    FromFileProperty,
    MatchingStrategy,
    MatchingStrategyType,
    OptionalProperty,
    RegexProperty,
    deep_copy,
    is_absent,
    resolve_test_side,
)


# ---------------------------------------------------------------------------
# Body values
# ---------------------------------------------------------------------------


class TestRegexProperty:
    """Regex values and their equality."""

    def test_defaults_to_string(self):
        assert RegexProperty("[0-9]+").value_type == "String"

    def test_narrowing_returns_new_instance(self):
        regex = RegexProperty("[0-9]+")
        narrowed = regex.as_integer()
        assert narrowed.value_type == "Integer"
        assert regex.value_type == "String"
        assert narrowed.pattern == regex.pattern

    def test_frozen(self):
        with pytest.raises(Exception):
            RegexProperty("a").pattern = "b"


class TestExecutionProperty:
    """Commands with a placeholder for the actual value."""

    def test_insert_value_replaces_placeholder(self):
        command = ExecutionProperty("assertThatRejectionReasonIsNull($it)")
        assert command.insert_value("parsedJson.read(\"$.a\")") == (
            'assertThatRejectionReasonIsNull(parsedJson.read("$.a"))'
        )

    def test_str(self):
        assert str(ExecutionProperty("foo()")) == "foo()"


class TestFromFileProperty:
    """File-backed bodies."""

    def test_from_path(self, tmp_path):
        source = tmp_path / "body.json"
        source.write_bytes(b'{"a": 1}')
        prop = FromFileProperty.from_path(source)
        assert prop.file_name == "body.json"
        assert prop.as_string() == '{"a": 1}'
        assert prop.is_byte is False
        assert prop.extension == "json"

    def test_extension_missing(self):
        assert FromFileProperty("README", b"").extension == ""


class TestOptionalProperty:
    """Optional value patterns."""

    def test_optional_pattern(self):
        assert OptionalProperty("abc").optional_pattern() == "(abc)?"


class TestResolveTestSide:
    """Picking the test side of dual values."""

    def test_dsl_property_uses_server_value(self):
        assert resolve_test_side(DslProperty(client_value="client", server_value="server")) == "server"

    def test_nested_containers(self):
        body = {"a": [DslProperty("c", 1), {"b": DslProperty("c", "s")}]}
        assert resolve_test_side(body) == {"a": [1, {"b": "s"}]}

    def test_optional_becomes_regex(self):
        assert resolve_test_side(OptionalProperty("x")) == RegexProperty("(x)?")

    def test_does_not_share_containers(self):
        body = {"a": [1]}
        resolved = resolve_test_side(body)
        resolved["a"].append(2)
        assert body == {"a": [1]}


class TestMatchingStrategy:
    """Header and cookie matching strategies."""

    def test_absent(self):
        assert is_absent(MatchingStrategy.absent())
        assert not is_absent(MatchingStrategy("x", MatchingStrategyType.EQUAL_TO))
        assert not is_absent("x")


class TestDeepCopy:
    """Copies of bodies holding value types."""

    def test_structural_copy(self):
        body = {"a": [{"b": 1}], "c": RegexProperty("x")}
        copied = deep_copy(body)
        assert copied == body
        copied["a"][0]["b"] = 2
        assert body["a"][0]["b"] == 1
        assert copied["c"] is body["c"]


# ---------------------------------------------------------------------------
# Contracts
# ---------------------------------------------------------------------------


class TestHeaders:
    """Header lookup and content type helpers."""

    def test_lookup_is_case_insensitive(self):
        headers = Headers(entries=[Header(name="Content-Type", value="application/json")])
        assert headers.get("content-type").value == "application/json"
        assert headers.content_type() == "application/json"
        assert headers.accept() is None

    def test_test_side_value(self):
        headers = Headers(entries=[Header(name="Accept", value=DslProperty("a", "b"))])
        assert headers.accept() == "b"


class TestBodyMatcher:
    """Body matcher construction."""

    def test_factories(self):
        assert BodyMatcher.by_regex("$.a", "[0-9]+").value == RegexProperty("[0-9]+")
        assert BodyMatcher.by_date("$.d").value.pattern == ISO_DATE
        assert BodyMatcher.by_command("$.c", "foo($it)").value == ExecutionProperty("foo($it)")
        assert BodyMatcher.by_null("$.n").matching_type is MatchingType.NULL

    def test_bounds_only_for_type(self):
        with pytest.raises(ValidationError):
            BodyMatcher(path="$.a", matching_type=MatchingType.EQUALITY, min_type_occurrence=1)

    def test_min_not_greater_than_max(self):
        with pytest.raises(ValidationError):
            BodyMatcher.by_type("$.a", min_occurrence=3, max_occurrence=1)

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            BodyMatcher(path="", matching_type=MatchingType.EQUALITY)

    def test_regex_related(self):
        assert MatchingType.DATE.regex_related()
        assert not MatchingType.TYPE.regex_related()

    def test_has_matchers(self):
        assert not BodyMatchers().has_matchers()
        assert BodyMatchers(matchers=[BodyMatcher.by_null("$.a")]).has_matchers()


class TestContract:
    """Contract parsing and defaults."""

    def test_http_contract(self, http_contract):
        assert http_contract.request.effective_url.value == "url"

    def test_single_url(self):
        with pytest.raises(ValidationError):
            Request(method="GET", url=Url(value="/a"), url_path=Url(value="/b"))

    def test_http_needs_both_sides(self):
        with pytest.raises(ValidationError):
            Contract(request=Request(method="GET", url=Url(value="/a")))

    def test_cannot_mix_http_and_messaging(self):
        with pytest.raises(ValidationError):
            Contract(
                request=Request(method="GET", url=Url(value="/a")),
                response=Response(),
                output_message=OutputMessage(sent_to="out"),
            )

    def test_needs_an_interaction(self):
        with pytest.raises(ValidationError):
            Contract()

    def test_messaging_contract(self, messaging_contract):
        assert messaging_contract.input == Input(triggered_by=ExecutionProperty("hashCode()"))

    def test_async_alias(self):
        assert Response(**{"async": True}).async_ is True
        assert Response(async_=True).async_ is True


class TestProfile:
    """Profile description."""

    def test_frozen_and_hashable(self):
        profile = Profile(TargetLanguage.JAVA, TestFramework.JUNIT, TestMode.MOCKMVC)
        assert {profile: 1}[Profile(TargetLanguage.JAVA, TestFramework.JUNIT, TestMode.MOCKMVC)] == 1

    def test_framework_language(self):
        assert TestFramework.SPOCK.language is TargetLanguage.GROOVY
        assert TestFramework.TESTNG.language is TargetLanguage.JAVA
        assert TestFramework.JUNIT5.languages == (TargetLanguage.JAVA, TargetLanguage.KOTLIN)
