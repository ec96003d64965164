"""Tests for per-language formatting rules and harness accessors."""
from __future__ import annotations

from decimal import Decimal

import pytest

from src.contract_codegen.syntax import (
    JAXRS_ACCESSORS,
    MESSAGING_ACCESSORS,
    REST_ASSURED_ACCESSORS,
    CUSTOM_ACCESSORS,
    GroovySyntax,
    JavaSyntax,
    KotlinSyntax,
    accessors_for,
    escape_dollars,
    escape_java,
    java_class_literal,
    java_type_name,
    syntax_for,
)
from src.shared.models.render import TargetLanguage, TestMode
from src.shared.models.values import ExecutionProperty, NotToEscapePattern, RegexProperty


class TestEscaping:
    """Java string escaping and dollar handling."""

    def test_quotes_and_backslashes(self):
        assert escape_java('say "hi" \\ bye') == 'say \\"hi\\" \\\\ bye'

    def test_control_characters(self):
        assert escape_java("a\nb\tc") == "a\\nb\\tc"

    def test_non_ascii(self):
        assert escape_java("é") == "\\u00E9"

    def test_astral_code_point_becomes_surrogate_pair(self):
        assert escape_java("\U0001F600") == "\\uD83D\\uDE00"

    def test_escape_dollars_skips_placeholders(self):
        assert escape_dollars("$.a {{ jsonpath(request.body, '$.b') }}") == (
            "\\$.a {{ jsonpath(request.body, '$.b') }}"
        )

    def test_escape_dollars_is_idempotent(self):
        once = escape_dollars("cost $5")
        assert escape_dollars(once) == once == "cost \\$5"

    def test_escape_dollars_after_escaped_backslash(self):
        assert escape_dollars("^\\\\$[0-9]+") == "^\\\\\\$[0-9]+"
        assert escape_dollars("\\\\\\$") == "\\\\\\$"


class TestTypeNames:
    """Java type names and class literals for values."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, "Boolean"),
            (1, "Integer"),
            (2**40, "Long"),
            (1.5, "Double"),
            (Decimal("1.10"), "BigDecimal"),
            ("a", "String"),
            (RegexProperty("[0-9]+").as_long(), "Long"),
        ],
    )
    def test_java_type_name(self, value, expected):
        assert java_type_name(value) == expected

    def test_class_literals(self):
        assert java_class_literal([1]) == "java.util.List"
        assert java_class_literal({"a": 1}) == "java.util.Map"
        assert java_class_literal(1) == "java.lang.Integer"
        assert java_class_literal(Decimal("1")) == "java.math.BigDecimal"


class TestJavaSyntax:
    """Java literals and assertion operators."""

    syntax = JavaSyntax()

    def test_literals(self):
        assert self.syntax.literal(None) == "null"
        assert self.syntax.literal("a") == '"a"'
        assert self.syntax.literal(False) == "false"
        assert self.syntax.number_literal(2**40) == f"{2**40}L"
        assert self.syntax.number_literal(1.5) == "1.5D"
        assert self.syntax.number_literal(Decimal("0.1")) == '"0.1"'

    def test_is_equal_to(self):
        assert self.syntax.is_equal_to(5) == ".isEqualTo(5)"
        assert self.syntax.is_equal_to("5") == '.isEqualTo("5")'

    def test_comparison_for_regex(self):
        assert self.syntax.comparison(RegexProperty("[a-z]+")) == '.matches("[a-z]+")'

    def test_not_to_escape_pattern_is_kept_verbatim(self):
        assert self.syntax.comparison(NotToEscapePattern("\\d+")) == '.matches("\\\\d+")'

    def test_assert_comparison_with_command(self):
        command = ExecutionProperty("isValid($it)")
        assert self.syntax.assert_comparison('response.header("a")', command) == (
            'isValid(response.header("a"))'
        )

    def test_assert_not_null(self):
        assert self.syntax.assert_not_null("response") == "assertThat(response).isNotNull()"

    def test_java_keeps_dollars(self):
        assert self.syntax.quoted_short_text("$.a") == '"$.a"'


class TestGroovySyntax:
    """Groovy quoting and labels."""

    syntax = GroovySyntax()

    def test_no_line_ending_and_live_labels(self):
        assert self.syntax.line_ending == ""
        assert self.syntax.comment_label("given:") == "given:"

    def test_dollars_are_escaped(self):
        assert self.syntax.quoted_short_text("$.a") == '"\\$.a"'

    def test_long_text_uses_triple_quotes(self):
        assert self.syntax.quoted_long_text("it's") == "'''it\\'s'''"

    def test_long_text_keeps_double_quotes(self):
        assert self.syntax.quoted_long_text('{"a":"\\d"}') == "'''{\"a\":\"\\\\d\"}'''"

    def test_substitution_escapes_quotes_and_dollars(self):
        assert self.syntax.escape_substitution('say "$x"') == 'say \\"\\$x\\"'


class TestKotlinSyntax:
    """Kotlin quoting and declarations."""

    syntax = KotlinSyntax()

    def test_no_line_ending_and_commented_labels(self):
        assert self.syntax.line_ending == ""
        assert self.syntax.comment_label("given:") == "// given:"

    def test_dollars_are_escaped(self):
        assert self.syntax.quoted_short_text("$.a") == '"\\$.a"'

    def test_form_feed_uses_unicode_escape(self):
        assert self.syntax.quoted_short_text("a\fb") == '"a\\u000Cb"'

    def test_doubles_have_no_suffix(self):
        assert self.syntax.number_literal(1.5) == "1.5"
        assert self.syntax.number_literal(2**40) == "1099511627776L"

    def test_declarations(self):
        assert self.syntax.declare("Response", "response") == "val response"
        assert self.syntax.injected_field("HttpVerifier", "httpVerifier") == (
            "@Inject lateinit var httpVerifier: HttpVerifier"
        )

    def test_type_expressions(self):
        assert self.syntax.class_literal("String") == "String::class.java"
        assert self.syntax.cast_to_object("x") == "x as Any?"
        assert self.syntax.new_string("b", "ISO-8859-1") == 'String(b, charset("ISO-8859-1"))'


class TestFactories:
    """Syntax and accessor lookup."""

    def test_syntax_for(self):
        assert isinstance(syntax_for(TargetLanguage.JAVA), JavaSyntax)
        assert isinstance(syntax_for(TargetLanguage.GROOVY), GroovySyntax)
        assert isinstance(syntax_for(TargetLanguage.KOTLIN), KotlinSyntax)

    def test_accessors_for(self):
        assert accessors_for(TestMode.MOCKMVC) is REST_ASSURED_ACCESSORS
        assert accessors_for(TestMode.JAXRSCLIENT) is JAXRS_ACCESSORS
        assert accessors_for(TestMode.JAXRSCLIENT, messaging=True) is MESSAGING_ACCESSORS
        assert accessors_for(TestMode.CUSTOM) is CUSTOM_ACCESSORS

    def test_header_accessor(self):
        assert REST_ASSURED_ACCESSORS.header(JavaSyntax(), "Content-Type") == (
            'response.header("Content-Type")'
        )
        assert JAXRS_ACCESSORS.cookie_value(JavaSyntax(), "k") == (
            'response.getCookies().get("k").getValue()'
        )
