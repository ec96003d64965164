"""Response templating: substitution of request values into generated code.

Contract responses may reference the request through ``{{ ... }}``
placeholders, for example ``{{ request.url }}`` or
``{{ jsonpath(request.body, '$.id') }}``.  The placeholders survive body
synthesis untouched and are rendered with jinja2 over the finished method
text, using a :class:`TestSideRequestTemplateModel` built from the request.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable

from jinja2 import Environment, StrictUndefined, TemplateError

from src.contract_codegen.body import json_paths
from src.contract_codegen.metadata import evaluate_content_type, request_body_as_string
from src.contract_codegen.syntax import escape_java
from src.shared.errors import MalformedContractError
from src.shared.models.contracts import Request
from src.shared.models.values import is_absent, resolve_test_side

logger = logging.getLogger(__name__)

OPENING_TEMPLATE = "{{"
CLOSING_TEMPLATE = "}}"

_TEMPLATE_ENTRY = re.compile(r"\{\{.*?\}\}", re.DOTALL)
_JSON_PATH_ENTRY = re.compile(
    r"\{\{\s*jsonpath\(\s*request\.body\s*,\s*(['\"])(?P<path>.*?)\1\s*\)\s*\}\}",
    re.DOTALL,
)


class UrlPath(list):
    """URL path segments; renders as the full path."""

    def __init__(self, url: str) -> None:
        super().__init__(segment for segment in url.split("/") if segment)
        self._url = url

    def __str__(self) -> str:
        return self._url


class EscapedText(str):
    """Text that is already escaped for a string literal."""


@dataclass
class TestSideRequestTemplateModel:
    """Test-side view of a request exposed to response templates."""
    __test__ = False

    url: str = ""
    path: UrlPath = field(default_factory=lambda: UrlPath(""))
    query: dict[str, list[Any]] = field(default_factory=dict)
    headers: dict[str, list[Any]] = field(default_factory=dict)
    cookies: dict[str, Any] = field(default_factory=dict)
    body: str = ""
    escaped_body: EscapedText = EscapedText("")
    method: str = ""

    @classmethod
    def from_request(cls, request: Request) -> TestSideRequestTemplateModel:
        url_model = request.effective_url
        url = str(resolve_test_side(url_model.value)) if url_model else ""
        query: dict[str, list[Any]] = {}
        if url_model and url_model.query_parameters:
            for parameter in url_model.query_parameters.parameters:
                if is_absent(parameter.value):
                    continue
                query.setdefault(parameter.name, []).append(
                    resolve_test_side(parameter.value)
                )
        full_url = url
        if query:
            full_url += "?" + "&".join(
                f"{name}={value}" for name, values in query.items() for value in values
            )
        headers: dict[str, list[Any]] = {}
        if request.headers:
            for header in request.headers.entries:
                if is_absent(header.value):
                    continue
                headers.setdefault(header.name, []).append(resolve_test_side(header.value))
        cookies: dict[str, Any] = {}
        if request.cookies:
            for cookie in request.cookies.entries:
                if not is_absent(cookie.value):
                    cookies[cookie.key] = resolve_test_side(cookie.value)
        body = ""
        if request.body is not None:
            body = request_body_as_string(
                resolve_test_side(request.body),
                evaluate_content_type(request.headers, request.body),
            )
        return cls(
            url=full_url,
            path=UrlPath(url),
            query=query,
            headers=headers,
            cookies=cookies,
            body=body,
            escaped_body=EscapedText(escape_java(body)),
            method=str(resolve_test_side(request.method)),
        )


class TemplateProcessor:
    """Renders request placeholders with jinja2.

    Only ``{{ ... }}`` expressions are meaningful: block and comment
    delimiters are remapped to sequences that never occur in generated
    Java or Groovy code.
    """

    def __init__(self) -> None:
        self._env = self._environment(None)
        self._escaping_envs: dict[Callable[[str], str], Environment] = {}

    def _environment(self, escape: Callable[[str], str] | None) -> Environment:
        def finalize(value: Any) -> Any:
            if escape is None or value is None:
                return value
            if isinstance(value, (EscapedText, bool, int, float, Decimal)):
                return value
            return escape(str(value))

        env = Environment(
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            block_start_string="<%%",
            block_end_string="%%>",
            comment_start_string="<##",
            comment_end_string="##>",
            finalize=finalize,
        )
        env.globals["jsonpath"] = self._jsonpath
        return env

    def _env_for(self, escape: Callable[[str], str] | None) -> Environment:
        if escape is None:
            return self._env
        if escape not in self._escaping_envs:
            self._escaping_envs[escape] = self._environment(escape)
        return self._escaping_envs[escape]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def contains_template_entry(self, text: str) -> bool:
        return bool(_TEMPLATE_ENTRY.search(text))

    def contains_json_path_template_entry(self, text: str) -> bool:
        return bool(_JSON_PATH_ENTRY.search(text))

    def json_path_from_template_entry(self, text: str) -> str | None:
        match = _JSON_PATH_ENTRY.search(text)
        return match.group("path") if match else None

    def transform(
        self,
        request: Request,
        text: str,
        escape: Callable[[str], str] | None = None,
    ) -> str:
        """Render every placeholder in *text* against *request*.

        Text without placeholders is returned unchanged, which makes the
        operation idempotent.  With *escape* every substituted value except
        numbers, booleans and ``request.escaped_body`` is passed through it,
        which is how values land inside string literals of generated code.

        Raises
        ------
        MalformedContractError
            When a placeholder references something the request lacks.
        """
        if not self.contains_template_entry(text):
            return text
        model = TestSideRequestTemplateModel.from_request(request)
        try:
            rendered = self._env_for(escape).from_string(text).render(request=model)
        except TemplateError as exc:
            raise MalformedContractError(
                detail=f"Cannot resolve response template: {exc}",
                body_snapshot=text,
            ) from exc
        logger.debug("Resolved %d template entries", len(_TEMPLATE_ENTRY.findall(text)))
        return rendered

    def referenced_value(self, request: Request, path: str) -> Any:
        """Read *path* from the request body (used to decide on quoting)."""
        body = TestSideRequestTemplateModel.from_request(request).body
        return json_paths.read(json.loads(body), path)

    # ------------------------------------------------------------------
    # Template helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _jsonpath(body: str, path: str) -> Any:
        value = json_paths.read(json.loads(body), path)
        if isinstance(value, (dict, list)):
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        if isinstance(value, bool):
            return "true" if value else "false"
        return value
