"""Derived facts about contracts and the test class being generated.

:class:`SingleContractMetadata` wraps one contract with everything the
fragments ask about it (content types, HTTP vs messaging, method name).
:class:`GeneratedClassMetadata` groups the contract files rendered into one
test class together with the render configuration.
"""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from decimal import Decimal
from functools import cached_property
from pathlib import Path, PurePath
from typing import Any

from src.shared.config import RenderConfig
from src.shared.constants import JAVA_TEST_SUFFIX, SPOCK_TEST_SUFFIX, TEST_METHOD_PREFIX
from src.shared.models.contracts import Contract, Headers
from src.shared.models.render import ContentType, TargetLanguage
from src.shared.models.values import (
    DslProperty,
    ExecutionProperty,
    FromFileProperty,
    NotToEscapePattern,
    RegexProperty,
    resolve_test_side,
)
from src.shared.utils import (
    camel_case,
    convert_illegal_method_name_chars,
    convert_illegal_package_chars,
    package_to_directory,
    to_last_dot,
)

logger = logging.getLogger(__name__)

_FILE_EXTENSIONS = {
    TargetLanguage.JAVA: ".java",
    TargetLanguage.GROOVY: ".groovy",
    TargetLanguage.KOTLIN: ".kt",
}

_EXTENSION_CONTENT_TYPES = {
    "json": ContentType.JSON,
    "xml": ContentType.XML,
    "txt": ContentType.TEXT,
    "text": ContentType.TEXT,
}


# ---------------------------------------------------------------------------
# Content type evaluation
# ---------------------------------------------------------------------------


def _content_type_from_header(value: str) -> ContentType:
    lowered = value.lower()
    if "json" in lowered:
        return ContentType.JSON
    if "xml" in lowered:
        return ContentType.XML
    if "x-www-form-urlencoded" in lowered:
        return ContentType.FORM
    if "text/plain" in lowered:
        return ContentType.TEXT
    return ContentType.DEFINED


def _content_type_from_body(body: Any) -> ContentType:
    if isinstance(body, (dict, list)):
        return ContentType.JSON
    if isinstance(body, FromFileProperty):
        return _EXTENSION_CONTENT_TYPES.get(body.extension, ContentType.UNKNOWN)
    if isinstance(body, (bytes, bytearray)):
        return ContentType.UNKNOWN
    if isinstance(body, str):
        text = body.strip()
        if text.startswith(("{", "[")):
            try:
                json.loads(text)
            except ValueError:
                pass
            else:
                return ContentType.JSON
        if text.startswith("<"):
            try:
                ET.fromstring(text)
            except ET.ParseError:
                pass
            else:
                return ContentType.XML
        return ContentType.TEXT
    if body is None:
        return ContentType.UNKNOWN
    return ContentType.TEXT


def evaluate_content_type(headers: Headers | None, body: Any) -> ContentType:
    """Classify a body as JSON, XML, form, text or a defined custom type.

    The ``Content-Type`` header wins; without one the body shape decides.
    When the test side is inconclusive the client side of a
    :class:`DslProperty` body is tried as well.
    """
    if body is None:
        return ContentType.UNKNOWN
    header = headers.content_type() if headers else None
    if header:
        return _content_type_from_header(header)
    evaluated = _content_type_from_body(resolve_test_side(body))
    if evaluated in (ContentType.UNKNOWN, ContentType.DEFINED) and isinstance(body, DslProperty):
        return _content_type_from_body(body.client_value)
    return evaluated


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (RegexProperty, NotToEscapePattern)):
        return value.pattern
    if isinstance(value, ExecutionProperty):
        return value.execution_command
    if isinstance(value, FromFileProperty):
        return value.as_string()
    return str(value)


def request_body_as_string(value: Any, content_type: ContentType) -> str:
    """Serialize a test-side body the way it goes on the wire.

    Form bodies given as a map or list join into ``a=1&b=2``; containers
    become compact JSON; strings are sent as written.
    """
    if content_type is ContentType.FORM:
        if isinstance(value, dict):
            return "&".join(f"{key}={item}" for key, item in value.items())
        if isinstance(value, list):
            return "&".join(str(item) for item in value)
    if isinstance(value, str):
        return value
    if isinstance(value, FromFileProperty):
        return value.as_string()
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=_json_default)
    if value is None:
        return ""
    return json.dumps(value, default=_json_default) if isinstance(value, bool) else str(value)


# ---------------------------------------------------------------------------
# Per contract
# ---------------------------------------------------------------------------


@dataclass
class ContractFileMetadata:
    """One contract file (possibly a scenario holding several contracts)."""

    path: Path
    contracts: list[Contract]
    ignored: bool = False
    order: int | None = None

    @property
    def group_size(self) -> int:
        return len(self.contracts)

    def single_contracts(self) -> list[SingleContractMetadata]:
        return [
            SingleContractMetadata(contract, self, index)
            for index, contract in enumerate(self.contracts)
        ]


class SingleContractMetadata:
    """A contract plus facts derived from it once.

    Parameters
    ----------
    contract:
        The contract being rendered.
    file_metadata:
        The file the contract was read from.
    index:
        Position of the contract within its file.
    """

    def __init__(
        self,
        contract: Contract,
        file_metadata: ContractFileMetadata,
        index: int = 0,
    ) -> None:
        self.contract = contract
        self.file_metadata = file_metadata
        self.index = index
        self.input_test_content_type = evaluate_content_type(
            self.input_headers, self.input_body
        )
        self.output_test_content_type = evaluate_content_type(
            self.output_headers, self.output_body
        )

    # -- sides ---------------------------------------------------------

    @property
    def input_headers(self) -> Headers | None:
        if self.contract.request is not None:
            return self.contract.request.headers
        if self.contract.input is not None:
            return self.contract.input.message_headers
        return None

    @property
    def input_body(self) -> Any:
        if self.contract.request is not None:
            return self.contract.request.body
        if self.contract.input is not None:
            return self.contract.input.message_body
        return None

    @property
    def output_headers(self) -> Headers | None:
        if self.contract.response is not None:
            return self.contract.response.headers
        if self.contract.output_message is not None:
            return self.contract.output_message.headers
        return None

    @property
    def output_body(self) -> Any:
        if self.contract.response is not None:
            return self.contract.response.body
        if self.contract.output_message is not None:
            return self.contract.output_message.body
        return None

    # -- flags ---------------------------------------------------------

    @property
    def is_http(self) -> bool:
        return self.contract.request is not None

    @property
    def is_messaging(self) -> bool:
        return not self.is_http

    @property
    def is_json(self) -> bool:
        return ContentType.JSON in (self.input_test_content_type, self.output_test_content_type)

    @property
    def is_xml(self) -> bool:
        return ContentType.XML in (self.input_test_content_type, self.output_test_content_type)

    @property
    def evaluates_to_json(self) -> bool:
        """JSON by header or body shape, or a defined type whose body is JSON."""
        if self.is_json:
            return True
        return any(
            _content_type_from_body(resolve_test_side(body)) is ContentType.JSON
            for body in (self.input_body, self.output_body)
            if body is not None
        )

    @property
    def is_ignored(self) -> bool:
        return self.contract.ignored or self.file_metadata.ignored

    @property
    def is_in_progress(self) -> bool:
        return self.contract.in_progress

    @property
    def order(self) -> int | None:
        return self.file_metadata.order

    # -- naming --------------------------------------------------------

    @cached_property
    def method_name(self) -> str:
        """Identifier of the test, without the ``validate_`` prefix."""
        if self.contract.name:
            name = camel_case(convert_illegal_package_chars(self.contract.name))
            logger.debug("Overriding the default test name with [%s]", name)
            return name
        from_file = camel_case(
            convert_illegal_method_name_chars(to_last_dot(PurePath(self.file_metadata.path).name))
        )
        if self.file_metadata.group_size > 1:
            name = f"{from_file}_{self.index}"
            logger.debug("Scenario found. The method name will be [%s]", name)
            return name
        logger.debug("The method name will be [%s]", from_file)
        return from_file

    @property
    def test_method_name(self) -> str:
        return TEST_METHOD_PREFIX + self.method_name


# ---------------------------------------------------------------------------
# Per class
# ---------------------------------------------------------------------------


@dataclass
class GeneratedClassMetadata:
    """Everything needed to render one test class."""

    config: RenderConfig
    files: list[ContractFileMetadata] = field(default_factory=list)
    included_directory_relative_path: str = ""
    package: str = ""
    class_name: str = ""

    def contracts(self) -> list[SingleContractMetadata]:
        result: list[SingleContractMetadata] = []
        for file_metadata in self.files:
            result.extend(file_metadata.single_contracts())
        return result

    @property
    def full_class_name(self) -> str:
        """Class name with the framework suffix (or the configured one)."""
        if self.config.name_suffix_for_tests:
            suffix = self.config.name_suffix_for_tests
        elif self.config.target_language is TargetLanguage.GROOVY:
            suffix = SPOCK_TEST_SUFFIX
        else:
            suffix = JAVA_TEST_SUFFIX
        if self.class_name.endswith(suffix):
            return self.class_name
        return self.class_name + suffix

    @property
    def file_extension(self) -> str:
        return _FILE_EXTENSIONS[self.config.target_language]

    @property
    def test_class_path(self) -> Path:
        """Where the generated class lives under the test sources directory."""
        return (
            Path(self.config.generated_test_sources_dir)
            / package_to_directory(self.package)
            / (self.full_class_name + self.file_extension)
        )

    def _any(self, predicate) -> bool:
        return any(predicate(metadata) for metadata in self.contracts())

    def is_any_json(self) -> bool:
        return self._any(lambda metadata: metadata.is_json)

    def is_any_xml(self) -> bool:
        return self._any(lambda metadata: metadata.is_xml)

    def is_any_http(self) -> bool:
        return self._any(lambda metadata: metadata.is_http)

    def is_any_messaging(self) -> bool:
        return self._any(lambda metadata: metadata.is_messaging)

    def is_any_ignored(self) -> bool:
        return self._any(lambda metadata: metadata.is_ignored)

    def has_order(self) -> bool:
        return any(file_metadata.order is not None for file_metadata in self.files)
