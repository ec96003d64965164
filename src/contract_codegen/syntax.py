"""Per-profile formatting rules for generated assertions.

An :class:`AssertionSyntaxProfile` knows how the target language quotes and
escapes text, spells numeric literals and comparison operators.  A
:class:`HarnessAccessors` knows how the chosen test harness exposes the
response (body as string / bytes, status, headers, cookies).  Body
synthesis and the given/when/then fragments are written against these two
objects only, so the same algorithm renders Java and Groovy output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from src.shared.models.render import TargetLanguage, TestMode
from src.shared.models.values import (
    ExecutionProperty,
    NotToEscapePattern,
    RegexProperty,
)

_JAVA_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\n": "\\n",
    "\t": "\\t",
    "\f": "\\f",
    "\r": "\\r",
}

_INT_MIN, _INT_MAX = -(2**31), 2**31 - 1

_PLACEHOLDER = re.compile(r"\{\{.*?\}\}", re.DOTALL)

# A dollar behind an even run of backslashes (possibly none) is unescaped.
_UNESCAPED_DOLLAR = re.compile(r"(?<!\\)((?:\\\\)*)\$")


def escape_java(text: str) -> str:
    """Escape *text* with Java string literal rules.

    Quotes, backslashes and control characters get backslash escapes;
    characters outside ASCII become ``\\uXXXX`` sequences (surrogate pairs
    for astral code points).
    """
    out: list[str] = []
    for char in text:
        if char in _JAVA_ESCAPES:
            out.append(_JAVA_ESCAPES[char])
            continue
        code = ord(char)
        if code < 0x20:
            out.append(f"\\u{code:04X}")
        elif code > 0x7F:
            if code > 0xFFFF:
                code -= 0x10000
                out.append(f"\\u{0xD800 + (code >> 10):04X}")
                out.append(f"\\u{0xDC00 + (code & 0x3FF):04X}")
            else:
                out.append(f"\\u{code:04X}")
        else:
            out.append(char)
    return "".join(out)


def escape_dollars(text: str) -> str:
    """Escape ``$`` as ``\\$`` everywhere except inside ``{{ ... }}`` placeholders.

    Already escaped dollars are left untouched, so the function is
    idempotent.
    """
    result: list[str] = []
    position = 0
    for placeholder in _PLACEHOLDER.finditer(text):
        result.append(_escape_plain_dollars(text[position:placeholder.start()]))
        result.append(placeholder.group(0))
        position = placeholder.end()
    result.append(_escape_plain_dollars(text[position:]))
    return "".join(result)


def _escape_plain_dollars(text: str) -> str:
    return _UNESCAPED_DOLLAR.sub(r"\1\\$", text)


def java_type_name(value: Any) -> str:
    """Simple name of the Java class a body value is read back as."""
    if isinstance(value, RegexProperty):
        return value.value_type
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, int):
        return "Integer" if _INT_MIN <= value <= _INT_MAX else "Long"
    if isinstance(value, float):
        return "Double"
    if isinstance(value, Decimal):
        return "BigDecimal"
    if isinstance(value, str):
        return "String"
    return "Object"


def java_class_literal(value: Any) -> str:
    """Fully qualified class literal used in ``isInstanceOf`` checks."""
    if isinstance(value, list):
        return "java.util.List"
    if isinstance(value, dict):
        return "java.util.Map"
    if isinstance(value, (set, frozenset)):
        return "java.util.Set"
    name = java_type_name(value)
    if name == "BigDecimal":
        return "java.math.BigDecimal"
    return f"java.lang.{name}"


class AssertionSyntaxProfile:
    """Formatting rules of one target language.

    Subclasses override the quoting primitives; everything else is derived
    from them.
    """

    language: TargetLanguage = TargetLanguage.JAVA
    line_ending: str = ";"
    label_prefix: str = "// "
    byte_array_type: str = "byte[]"

    # ------------------------------------------------------------------
    # Quoting and escaping
    # ------------------------------------------------------------------

    def escape(self, text: str) -> str:
        return escape_java(text)

    def quoted_escaped_short_text(self, escaped: str) -> str:
        """Quote text that has already been escaped."""
        return f'"{escaped}"'

    def quoted_short_text(self, text: Any) -> str:
        return self.quoted_escaped_short_text(self.escape(str(text)))

    def quoted_long_text(self, text: Any) -> str:
        return self.quoted_short_text(text)

    def escape_substitution(self, text: str) -> str:
        """Escape a value substituted into an already rendered string literal."""
        return self.escape(text)

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def number_literal(self, value: Any) -> str:
        """Render a scalar with the language's numeric suffix rules.

        Decimal values are quoted so that no precision is lost.
        """
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, Decimal):
            return self.quoted_short_text(str(value))
        if isinstance(value, int):
            if _INT_MIN <= value <= _INT_MAX:
                return str(value)
            return f"{value}L"
        if isinstance(value, float):
            return f"{value!r}D"
        return str(value)

    def literal(self, value: Any) -> str:
        """Render any scalar body value as a source literal."""
        if value is None:
            return "null"
        if isinstance(value, str):
            return self.quoted_short_text(value)
        if isinstance(value, (bool, int, float, Decimal)):
            return self.number_literal(value)
        return self.quoted_short_text(str(value))

    def class_literal(self, fqn: str) -> str:
        return f"{fqn}.class"

    def cast_to_object(self, expression: str) -> str:
        return f"(Object) {expression}"

    def cast_to_iterable(self, expression: str) -> str:
        return f"(java.lang.Iterable) {expression}"

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def assert_that(self, expression: str) -> str:
        return f"assertThat({expression})"

    def is_equal_to_unquoted(self, literal: str) -> str:
        return f".isEqualTo({literal})"

    def is_equal_to(self, value: Any) -> str:
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return self.is_equal_to_unquoted(self.number_literal(value))
        return self.is_equal_to_unquoted(self.quoted_short_text(value))

    def matches(self, pattern: str) -> str:
        return f".matches({self.quoted_short_text(pattern)})"

    def matches_escaped(self, escaped_pattern: str) -> str:
        return f".matches({self.quoted_escaped_short_text(escaped_pattern)})"

    def is_not_null(self) -> str:
        return ".isNotNull()"

    def is_null(self) -> str:
        return ".isNull()"

    def comparison(self, value: Any) -> str:
        """Build the comparison applied to a header or cookie value."""
        if isinstance(value, NotToEscapePattern):
            return self.matches_escaped(value.pattern.replace("\\", "\\\\"))
        if isinstance(value, RegexProperty):
            return self.matches(value.pattern)
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return self.is_equal_to(value)
        return self.is_equal_to(str(value))

    def assert_comparison(self, expression: str, value: Any) -> str:
        """Full assertion of *expression* against *value*.

        Execution properties bind the expression into their command instead.
        """
        if isinstance(value, ExecutionProperty):
            return value.insert_value(expression)
        return self.assert_that(expression) + self.comparison(value)

    def assert_not_null(self, expression: str) -> str:
        return self.assert_that(expression) + self.is_not_null()

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def new_string(self, bytes_expression: str, charset: str | None = None) -> str:
        if charset:
            return f'new String({bytes_expression}, "{charset}")'
        return f"new String({bytes_expression})"

    def declare(self, java_type: str, name: str) -> str:
        """Left-hand side of a local variable declaration."""
        return f"{java_type} {name}"

    def injected_field(self, java_type: str, name: str) -> str:
        return f"@Inject {java_type} {name}"

    def string_variable(self, name: str, expression: str) -> str:
        return f"{self.declare('String', name)} = {expression}"

    def comment_label(self, label: str) -> str:
        return f"{self.label_prefix}{label}"


class JavaSyntax(AssertionSyntaxProfile):
    """Java source: ``;`` terminated, BDD labels commented out."""

    language = TargetLanguage.JAVA
    line_ending = ";"
    label_prefix = "// "


class GroovySyntax(AssertionSyntaxProfile):
    """Groovy (Spock) source: no terminator, live BDD labels.

    Double-quoted Groovy strings interpolate ``$``, so every short literal
    has its dollars escaped outside template placeholders.  Long text uses
    triple single quotes, which do not interpolate.
    """

    language = TargetLanguage.GROOVY
    line_ending = ""
    label_prefix = ""

    def quoted_escaped_short_text(self, escaped: str) -> str:
        return f'"{escape_dollars(escaped)}"'

    def quoted_long_text(self, text: Any) -> str:
        escaped = str(text).replace("\\", "\\\\").replace("'", "\\'")
        return f"'''{escaped}'''"

    def escape_substitution(self, text: str) -> str:
        return escape_dollars(self.escape(text)).replace("'", "\\'")


class KotlinSyntax(AssertionSyntaxProfile):
    """Kotlin source: no terminator, BDD labels commented out.

    Kotlin strings interpolate ``$`` too, so dollars are escaped in every
    literal.  Kotlin has no ``\\f`` escape and no ``D`` suffix for doubles.
    """

    language = TargetLanguage.KOTLIN
    line_ending = ""
    label_prefix = "// "
    byte_array_type = "ByteArray"

    def escape(self, text: str) -> str:
        return "".join("\\u000C" if char == "\f" else escape_java(char) for char in text)

    def quoted_escaped_short_text(self, escaped: str) -> str:
        return f'"{escape_dollars(escaped)}"'

    def escape_substitution(self, text: str) -> str:
        return escape_dollars(self.escape(text))

    def number_literal(self, value: Any) -> str:
        if isinstance(value, float):
            return repr(value)
        return super().number_literal(value)

    def class_literal(self, fqn: str) -> str:
        return f"{fqn}::class.java"

    def cast_to_object(self, expression: str) -> str:
        return f"{expression} as Any?"

    def cast_to_iterable(self, expression: str) -> str:
        return f"{expression} as Iterable<*>"

    def new_string(self, bytes_expression: str, charset: str | None = None) -> str:
        if charset:
            return f'String({bytes_expression}, charset("{charset}"))'
        return f"String({bytes_expression})"

    def declare(self, java_type: str, name: str) -> str:
        return f"val {name}"

    def injected_field(self, java_type: str, name: str) -> str:
        return f"@Inject lateinit var {name}: {java_type}"


def syntax_for(language: TargetLanguage) -> AssertionSyntaxProfile:
    if language is TargetLanguage.GROOVY:
        return GroovySyntax()
    if language is TargetLanguage.KOTLIN:
        return KotlinSyntax()
    return JavaSyntax()


# ---------------------------------------------------------------------------
# Response accessors per harness
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HarnessAccessors:
    """How generated code reads the response of one harness."""

    response_as_string: str
    byte_array: str
    status: str
    header_template: str
    cookie_template: str
    cookie_value_template: str

    def header(self, syntax: AssertionSyntaxProfile, name: str) -> str:
        return self.header_template.format(name=syntax.quoted_short_text(name))

    def cookie(self, syntax: AssertionSyntaxProfile, name: str) -> str:
        return self.cookie_template.format(name=syntax.quoted_short_text(name))

    def cookie_value(self, syntax: AssertionSyntaxProfile, name: str) -> str:
        return self.cookie_value_template.format(name=syntax.quoted_short_text(name))

    def bytes(self, syntax: AssertionSyntaxProfile) -> str:
        return self.byte_array.format(byte_array_class=syntax.class_literal(syntax.byte_array_type))


REST_ASSURED_ACCESSORS = HarnessAccessors(
    response_as_string="response.getBody().asString()",
    byte_array="response.getBody().asByteArray()",
    status="response.statusCode()",
    header_template="response.header({name})",
    cookie_template="response.getCookie({name})",
    cookie_value_template="response.getCookie({name})",
)

JAXRS_ACCESSORS = HarnessAccessors(
    response_as_string="responseAsString",
    byte_array="response.readEntity({byte_array_class})",
    status="response.getStatus()",
    header_template="response.getHeaderString({name})",
    cookie_template="response.getCookies().get({name})",
    cookie_value_template="response.getCookies().get({name}).getValue()",
)

CUSTOM_ACCESSORS = HarnessAccessors(
    response_as_string="response.getBody().asString()",
    byte_array="response.getBody().asByteArray()",
    status="response.statusCode()",
    header_template="response.header({name})",
    cookie_template="response.cookie({name})",
    cookie_value_template="response.cookie({name})",
)

MESSAGING_ACCESSORS = HarnessAccessors(
    response_as_string="contractVerifierObjectMapper.writeValueAsString(response.getPayload())",
    byte_array="response.getPayloadAsByteArray()",
    status="",
    header_template="response.getHeader({name})",
    cookie_template="",
    cookie_value_template="",
)


def accessors_for(harness: TestMode, messaging: bool = False) -> HarnessAccessors:
    if messaging:
        return MESSAGING_ACCESSORS
    if harness is TestMode.JAXRSCLIENT:
        return JAXRS_ACCESSORS
    if harness is TestMode.CUSTOM:
        return CUSTOM_ACCESSORS
    return REST_ASSURED_ACCESSORS
