"""Body value types carried inside contract models.

A body is a tree of plain ``dict`` / ``list`` containers whose leaves are
either JSON scalars or one of the frozen value types defined here.  Each
value type is a distinct variant of the ``BodyValue`` union; renderers
dispatch on the variant instead of inspecting arbitrary objects.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Regular expressions shared by the date/time matchers
ISO_DATE: str = r"(\d\d\d\d)-(0[1-9]|1[012])-(0[1-9]|[12][0-9]|3[01])"
ISO_TIME: str = r"(2[0-3]|[01][0-9]):([0-5][0-9]):([0-5][0-9])"
ISO_DATE_TIME: str = (
    r"([0-9]{4})-(1[0-2]|0[1-9])-(3[01]|0[1-9]|[12][0-9])"
    r"T(2[0-3]|[01][0-9]):([0-5][0-9]):([0-5][0-9])"
)

EXECUTION_PLACEHOLDER: str = "$it"


@dataclass(frozen=True)
class RegexProperty:
    """A value that must match *pattern*.

    ``value_type`` is the simple name of the class used when the value is
    read back from a parsed body (``String`` unless narrowed with one of the
    ``as_*`` helpers).
    """
    pattern: str
    value_type: str = "String"

    def as_integer(self) -> RegexProperty:
        return RegexProperty(self.pattern, "Integer")

    def as_long(self) -> RegexProperty:
        return RegexProperty(self.pattern, "Long")

    def as_double(self) -> RegexProperty:
        return RegexProperty(self.pattern, "Double")

    def as_float(self) -> RegexProperty:
        return RegexProperty(self.pattern, "Float")

    def as_short(self) -> RegexProperty:
        return RegexProperty(self.pattern, "Short")

    def as_boolean(self) -> RegexProperty:
        return RegexProperty(self.pattern, "Boolean")

    def as_string(self) -> RegexProperty:
        return RegexProperty(self.pattern, "String")

    def __str__(self) -> str:
        return self.pattern


@dataclass(frozen=True)
class NotToEscapePattern:
    """A header pattern rendered verbatim, without Java escaping."""
    pattern: str

    def __str__(self) -> str:
        return self.pattern


@dataclass(frozen=True)
class ExecutionProperty:
    """A piece of code executed in the generated test.

    ``$it`` in the command is replaced with the accessor expression the
    value is bound to.
    """
    execution_command: str

    def insert_value(self, accessor: str) -> str:
        return self.execution_command.replace(EXECUTION_PLACEHOLDER, accessor)

    def __str__(self) -> str:
        return self.execution_command


@dataclass(frozen=True)
class FromFileProperty:
    """Body content that lives in an external file."""
    file_name: str
    content: bytes
    is_byte: bool = False
    charset: str = "utf-8"

    @classmethod
    def from_path(cls, path: str | Path, as_bytes: bool = False) -> FromFileProperty:
        source = Path(path)
        return cls(file_name=source.name, content=source.read_bytes(), is_byte=as_bytes)

    def as_string(self) -> str:
        return self.content.decode(self.charset)

    def as_bytes(self) -> bytes:
        return self.content

    @property
    def extension(self) -> str:
        if "." not in self.file_name:
            return ""
        return self.file_name.rsplit(".", 1)[1].lower()


@dataclass(frozen=True)
class DslProperty:
    """A value with distinct consumer (stub) and producer (test) sides."""
    client_value: Any
    server_value: Any


@dataclass(frozen=True)
class NamedProperty:
    """A named multipart file part."""
    name: Any
    value: Any
    content_type: Any = None


@dataclass(frozen=True)
class OptionalProperty:
    """A value that may be missing; rendered as an optional regex group."""
    value: Any

    def optional_pattern(self) -> str:
        return f"({self.value})?"


class MatchingStrategyType(str, Enum):
    """How a header, cookie or query parameter value is compared."""
    EQUAL_TO = "equalTo"
    CONTAINS = "containing"
    MATCHING = "matching"
    NOT_MATCHING = "notMatching"
    EQUAL_TO_JSON = "equalToJson"
    EQUAL_TO_XML = "equalToXml"
    ABSENT = "absent"
    BINARY_EQUAL_TO = "binaryEqualTo"


@dataclass(frozen=True)
class MatchingStrategy:
    """A comparison strategy attached to a non-body value."""
    value: Any
    type: MatchingStrategyType = MatchingStrategyType.EQUAL_TO

    @classmethod
    def absent(cls) -> MatchingStrategy:
        return cls(value=None, type=MatchingStrategyType.ABSENT)


Scalar = Union[str, int, float, bool, Decimal, None]

BodyValue = Union[
    Scalar,
    RegexProperty,
    NotToEscapePattern,
    ExecutionProperty,
    FromFileProperty,
    DslProperty,
    OptionalProperty,
    NamedProperty,
    MatchingStrategy,
    list,
    dict,
]


def is_absent(value: Any) -> bool:
    """Return ``True`` for values that must not be rendered at all."""
    return (
        isinstance(value, MatchingStrategy)
        and value.type is MatchingStrategyType.ABSENT
    )


def resolve_test_side(value: Any) -> Any:
    """Resolve *value* to what the generated test sends or expects.

    Containers are rebuilt, so the result never shares mutable state with
    the contract it came from.
    """
    if isinstance(value, DslProperty):
        return resolve_test_side(value.server_value)
    if isinstance(value, OptionalProperty):
        return RegexProperty(value.optional_pattern())
    if isinstance(value, MatchingStrategy):
        return resolve_test_side(value.value)
    if isinstance(value, dict):
        return {key: resolve_test_side(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [resolve_test_side(item) for item in value]
    return value


def deep_copy(value: Any) -> Any:
    """Structurally copy a body tree.

    Maps and lists are rebuilt recursively; leaves are immutable and shared.
    """
    if isinstance(value, dict):
        return {key: deep_copy(item) for key, item in value.items()}
    if isinstance(value, list):
        return [deep_copy(item) for item in value]
    return value
