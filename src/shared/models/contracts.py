"""Contract model: immutable Pydantic v2 description of one interaction."""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from src.shared.models.values import (
    ISO_DATE,
    ISO_DATE_TIME,
    ISO_TIME,
    ExecutionProperty,
    RegexProperty,
    resolve_test_side,
)

_FROZEN = {"frozen": True, "arbitrary_types_allowed": True}


class MatchingType(str, Enum):
    """Kinds of body matchers."""
    EQUALITY = "equality"
    TYPE = "type"
    COMMAND = "command"
    REGEX = "regex"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    NULL = "null"

    def regex_related(self) -> bool:
        return self in (
            MatchingType.REGEX,
            MatchingType.DATE,
            MatchingType.TIME,
            MatchingType.TIMESTAMP,
        )


class Header(BaseModel):
    """A single header entry."""
    name: str
    value: Any

    model_config = _FROZEN


class Headers(BaseModel):
    """Ordered header entries."""
    entries: list[Header] = Field(default_factory=list)

    model_config = _FROZEN

    def get(self, name: str) -> Header | None:
        for header in self.entries:
            if header.name.lower() == name.lower():
                return header
        return None

    def test_side_value(self, name: str) -> Any:
        header = self.get(name)
        if header is None:
            return None
        return resolve_test_side(header.value)

    def content_type(self) -> str | None:
        value = self.test_side_value("Content-Type")
        return None if value is None else str(value)

    def accept(self) -> str | None:
        value = self.test_side_value("Accept")
        return None if value is None else str(value)


class Cookie(BaseModel):
    """A single cookie entry."""
    key: str
    value: Any

    model_config = _FROZEN


class Cookies(BaseModel):
    """Ordered cookie entries."""
    entries: list[Cookie] = Field(default_factory=list)

    model_config = _FROZEN


class QueryParameter(BaseModel):
    """A single query parameter."""
    name: str
    value: Any

    model_config = _FROZEN


class QueryParameters(BaseModel):
    """Ordered query parameters."""
    parameters: list[QueryParameter] = Field(default_factory=list)

    model_config = _FROZEN


class Url(BaseModel):
    """A request URL or URL path, optionally with query parameters."""
    value: Any
    query_parameters: QueryParameters | None = None

    model_config = _FROZEN


class BodyMatcher(BaseModel):
    """A rule overriding default equality for one path in a body."""
    path: str = Field(..., min_length=1)
    matching_type: MatchingType
    value: Any = None
    min_type_occurrence: int | None = Field(default=None, ge=0)
    max_type_occurrence: int | None = Field(default=None, ge=0)

    model_config = _FROZEN

    @model_validator(mode="after")
    def check_occurrence_bounds(self) -> BodyMatcher:
        has_bounds = (
            self.min_type_occurrence is not None
            or self.max_type_occurrence is not None
        )
        if has_bounds and self.matching_type is not MatchingType.TYPE:
            raise ValueError("Occurrence bounds are only allowed for type matchers")
        if (
            self.min_type_occurrence is not None
            and self.max_type_occurrence is not None
            and self.min_type_occurrence > self.max_type_occurrence
        ):
            raise ValueError(
                "min_type_occurrence must not be greater than max_type_occurrence"
            )
        return self

    # Factories mirroring the contract DSL

    @classmethod
    def by_equality(cls, path: str) -> BodyMatcher:
        return cls(path=path, matching_type=MatchingType.EQUALITY)

    @classmethod
    def by_regex(cls, path: str, regex: str | RegexProperty) -> BodyMatcher:
        if not isinstance(regex, RegexProperty):
            regex = RegexProperty(regex)
        return cls(path=path, matching_type=MatchingType.REGEX, value=regex)

    @classmethod
    def by_date(cls, path: str) -> BodyMatcher:
        return cls(path=path, matching_type=MatchingType.DATE, value=RegexProperty(ISO_DATE))

    @classmethod
    def by_time(cls, path: str) -> BodyMatcher:
        return cls(path=path, matching_type=MatchingType.TIME, value=RegexProperty(ISO_TIME))

    @classmethod
    def by_timestamp(cls, path: str) -> BodyMatcher:
        return cls(
            path=path,
            matching_type=MatchingType.TIMESTAMP,
            value=RegexProperty(ISO_DATE_TIME),
        )

    @classmethod
    def by_type(
        cls,
        path: str,
        min_occurrence: int | None = None,
        max_occurrence: int | None = None,
    ) -> BodyMatcher:
        return cls(
            path=path,
            matching_type=MatchingType.TYPE,
            min_type_occurrence=min_occurrence,
            max_type_occurrence=max_occurrence,
        )

    @classmethod
    def by_null(cls, path: str) -> BodyMatcher:
        return cls(path=path, matching_type=MatchingType.NULL)

    @classmethod
    def by_command(cls, path: str, command: str | ExecutionProperty) -> BodyMatcher:
        if not isinstance(command, ExecutionProperty):
            command = ExecutionProperty(command)
        return cls(path=path, matching_type=MatchingType.COMMAND, value=command)


class BodyMatchers(BaseModel):
    """Matchers declared for one body, in declaration order."""
    matchers: list[BodyMatcher] = Field(default_factory=list)

    model_config = _FROZEN

    def has_matchers(self) -> bool:
        return bool(self.matchers)


class Request(BaseModel):
    """HTTP request side of a contract."""
    method: Any
    url: Url | None = None
    url_path: Url | None = None
    headers: Headers | None = None
    cookies: Cookies | None = None
    body: Any = None
    multipart: dict[str, Any] | None = None
    body_matchers: BodyMatchers | None = None

    model_config = _FROZEN

    @model_validator(mode="after")
    def check_single_url(self) -> Request:
        if self.url is not None and self.url_path is not None:
            raise ValueError("Only one of url and url_path can be set")
        return self

    @property
    def effective_url(self) -> Url | None:
        return self.url or self.url_path


class Response(BaseModel):
    """HTTP response side of a contract."""
    status: Any = 200
    headers: Headers | None = None
    cookies: Cookies | None = None
    body: Any = None
    body_matchers: BodyMatchers | None = None
    async_: bool = Field(default=False, alias="async")
    delay: int | None = Field(default=None, ge=0)

    model_config = {**_FROZEN, "populate_by_name": True}


class Input(BaseModel):
    """Message (or trigger) that starts a messaging contract."""
    triggered_by: ExecutionProperty | None = None
    message_from: Any = None
    message_headers: Headers | None = None
    message_body: Any = None
    body_matchers: BodyMatchers | None = None
    assert_that: ExecutionProperty | None = None

    model_config = _FROZEN


class OutputMessage(BaseModel):
    """Message expected to be sent by the service under test."""
    sent_to: Any = None
    headers: Headers | None = None
    body: Any = None
    body_matchers: BodyMatchers | None = None
    assert_that: ExecutionProperty | None = None

    model_config = _FROZEN


class Contract(BaseModel):
    """One HTTP or messaging interaction."""
    name: str | None = None
    description: str | None = None
    label: str | None = None
    priority: int | None = None
    ignored: bool = False
    in_progress: bool = False
    request: Request | None = None
    response: Response | None = None
    input: Input | None = None
    output_message: OutputMessage | None = None

    model_config = _FROZEN

    @model_validator(mode="after")
    def check_interaction_kind(self) -> Contract:
        is_http = self.request is not None or self.response is not None
        is_messaging = self.input is not None or self.output_message is not None
        if is_http and is_messaging:
            raise ValueError(
                "A contract is either an HTTP or a messaging contract, not both"
            )
        if is_http and (self.request is None or self.response is None):
            raise ValueError("HTTP contracts need both a request and a response")
        if not is_http and not is_messaging:
            raise ValueError("A contract needs a request/response or a message")
        return self
