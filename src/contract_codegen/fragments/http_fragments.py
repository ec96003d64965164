"""Given/when/then fragments for HTTP contracts.

RestAssured harnesses (MockMvc, explicit, WebTestClient) build a request
specification in ``given:`` and send it in ``when:``.  The JAX-RS client
has no ``given:`` section: the whole call is a single ``webTarget`` chain.
The custom harness builds a ``Request`` and hands it to an ``HttpVerifier``.
"""

from __future__ import annotations

import logging
from typing import Any

from src.contract_codegen.fragments.body_fragments import GenericBodyThen
from src.contract_codegen.fragments.common import (
    body_block,
    continuation_lines,
    declaration,
    indented_body_block,
    mime_type,
    non_body_literal,
    non_body_value,
    present,
    request_body_expression,
    start_body_block,
)
from src.contract_codegen.fragments.registry import ExtensionPoint, RenderContext
from src.contract_codegen.text_assembler import Emitter
from src.shared.errors import MalformedContractError, UnsupportedFeatureError
from src.shared.models.render import TestMode
from src.shared.models.values import (
    ExecutionProperty,
    NamedProperty,
    resolve_test_side,
)

logger = logging.getLogger(__name__)

_REQUEST_TYPES = {
    TestMode.MOCKMVC: "MockMvcRequestSpecification",
    TestMode.EXPLICIT: "RequestSpecification",
    TestMode.WEBTESTCLIENT: "WebTestClientRequestSpecification",
}

_RESPONSE_TYPES = {
    TestMode.MOCKMVC: "ResponseOptions",
    TestMode.EXPLICIT: "Response",
    TestMode.WEBTESTCLIENT: "WebTestClientResponse",
}

_JAXRS_SKIPPED_HEADERS = ("content-type", "accept")


def is_rest_assured(ctx: RenderContext) -> bool:
    return ctx.contract.is_http and ctx.profile.harness in _REQUEST_TYPES


def is_jaxrs(ctx: RenderContext) -> bool:
    return ctx.contract.is_http and ctx.profile.harness is TestMode.JAXRSCLIENT


def is_custom(ctx: RenderContext) -> bool:
    return ctx.contract.is_http and ctx.profile.harness is TestMode.CUSTOM


def _request(ctx: RenderContext):
    return ctx.contract.contract.request


def _response(ctx: RenderContext):
    return ctx.contract.contract.response


def _url(ctx: RenderContext):
    url = _request(ctx).effective_url
    if url is None:
        raise MalformedContractError(
            detail=f"url or urlPath not found in contract [{ctx.contract.method_name}]"
        )
    return url


def _url_literal(ctx: RenderContext) -> str:
    value = resolve_test_side(_url(ctx).value)
    if isinstance(value, ExecutionProperty):
        return value.execution_command
    return ctx.syntax.quoted_short_text(value)


def _query_parameters(ctx: RenderContext) -> list[Any]:
    params = _url(ctx).query_parameters
    return present(params.parameters if params else [])


def _request_headers(ctx: RenderContext) -> list[Any]:
    headers = _request(ctx).headers
    return present(headers.entries if headers else [])


def _request_cookies(ctx: RenderContext) -> list[Any]:
    cookies = _request(ctx).cookies
    return present(cookies.entries if cookies else [])


# ---------------------------------------------------------------------------
# given: (RestAssured)
# ---------------------------------------------------------------------------


class RequestSpecificationGiven:
    """``MockMvcRequestSpecification request = given()`` and friends."""

    def accepts(self, ctx: RenderContext) -> bool:
        return is_rest_assured(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        java_type = _REQUEST_TYPES[ctx.profile.harness]
        out.add_indented(f"{declaration(ctx, java_type, 'request')} = given()")


class RequestHeadersGiven:
    def accepts(self, ctx: RenderContext) -> bool:
        return bool(_request_headers(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        continuation_lines(out, [
            f".header({ctx.syntax.quoted_short_text(header.name)}, {non_body_literal(ctx, header.value)})"
            for header in _request_headers(ctx)
        ])


class RequestCookiesGiven:
    def accepts(self, ctx: RenderContext) -> bool:
        return bool(_request_cookies(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        continuation_lines(out, [
            f".cookie({ctx.syntax.quoted_short_text(cookie.key)}, {non_body_literal(ctx, cookie.value)})"
            for cookie in _request_cookies(ctx)
        ])


class RequestBodyGiven:
    def accepts(self, ctx: RenderContext) -> bool:
        return _request(ctx).body is not None

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented(f".body({request_body_expression(ctx, _request(ctx).body)})")


class MultipartGiven:
    """``.multiPart(...)`` for named file parts, ``.param(...)`` otherwise."""

    def accepts(self, ctx: RenderContext) -> bool:
        return bool(_request(ctx).multipart)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        syntax = ctx.syntax
        lines = []
        for key, value in _request(ctx).multipart.items():
            value = resolve_test_side(value)
            if isinstance(value, NamedProperty):
                arguments = [
                    syntax.quoted_short_text(key),
                    non_body_literal(ctx, value.name),
                    request_body_expression(ctx, value.value, long_text=False),
                ]
                if value.content_type is not None:
                    arguments.append(non_body_literal(ctx, value.content_type))
                lines.append(f".multiPart({', '.join(arguments)})")
            else:
                lines.append(f".param({syntax.quoted_short_text(key)}, {non_body_literal(ctx, value)})")
        continuation_lines(out, lines)


class RestAssuredGiven:
    """The ``given:`` section of RestAssured based harnesses."""

    def __init__(self) -> None:
        self._visitors = [
            RequestHeadersGiven(),
            RequestCookiesGiven(),
            RequestBodyGiven(),
            MultipartGiven(),
        ]

    def accepts(self, ctx: RenderContext) -> bool:
        return is_rest_assured(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        start_body_block(out, "given:")
        ctx.catalogue.select_one(ExtensionPoint.REQUEST_GIVEN, ctx).render(ctx, out)
        indented_body_block(ctx, out, self._visitors)
        out.end_block()


# ---------------------------------------------------------------------------
# when: (RestAssured)
# ---------------------------------------------------------------------------


class ResponseWhen:
    """``ResponseOptions response = given().spec(request)`` and friends."""

    def accepts(self, ctx: RenderContext) -> bool:
        return is_rest_assured(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        java_type = _RESPONSE_TYPES[ctx.profile.harness]
        out.add_indented(f"{declaration(ctx, java_type, 'response')} = given().spec(request)")


class UrlWhen:
    """Query parameters followed by the HTTP method call."""

    def accepts(self, ctx: RenderContext) -> bool:
        return True

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        for param in _query_parameters(ctx):
            out.add_line(
                f".queryParam({ctx.syntax.quoted_short_text(param.name)},"
                f"{non_body_literal(ctx, param.value)})"
            )
        method = str(resolve_test_side(_request(ctx).method)).lower()
        out.add_indented(f".{method}({_url_literal(ctx)})")


class AsyncWhen:
    """MockMvc async dispatch, with an optional timeout."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.profile.harness is TestMode.MOCKMVC and _response(ctx).async_

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        delay = _response(ctx).delay
        if delay:
            out.add_line(".when().async()")
            out.add_indented(f".timeout({delay})")
        else:
            out.add_indented(".when().async()")


class RestAssuredWhen:
    def __init__(self) -> None:
        self._visitors = [UrlWhen(), AsyncWhen()]

    def accepts(self, ctx: RenderContext) -> bool:
        return is_rest_assured(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        start_body_block(out, "when:")
        ctx.catalogue.select_one(ExtensionPoint.RESPONSE_WHEN, ctx).render(ctx, out)
        indented_body_block(ctx, out, self._visitors)
        out.end_block()


# ---------------------------------------------------------------------------
# then: (all HTTP harnesses)
# ---------------------------------------------------------------------------


class StatusThen:
    def accepts(self, ctx: RenderContext) -> bool:
        return _response(ctx).status is not None

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        status = resolve_test_side(_response(ctx).status)
        out.add_indented(
            ctx.syntax.assert_that(ctx.accessors.status) + ctx.syntax.is_equal_to_unquoted(str(status))
        )


def _response_headers(ctx: RenderContext) -> list[Any]:
    headers = _response(ctx).headers
    return present(headers.entries if headers else [])


def _response_cookies(ctx: RenderContext) -> list[Any]:
    cookies = _response(ctx).cookies
    return present(cookies.entries if cookies else [])


class ResponseHeadersThen:
    def accepts(self, ctx: RenderContext) -> bool:
        return bool(_response_headers(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        headers = _response_headers(ctx)
        for index, header in enumerate(headers):
            line = ctx.syntax.assert_comparison(
                ctx.accessors.header(ctx.syntax, header.name), non_body_value(header.value)
            )
            if index < len(headers) - 1:
                out.add_line_with_ending(line)
            else:
                out.add_indented(line)


class ResponseCookiesThen:
    def accepts(self, ctx: RenderContext) -> bool:
        return bool(_response_cookies(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        syntax = ctx.syntax
        cookies = _response_cookies(ctx)
        for index, cookie in enumerate(cookies):
            out.add_line_with_ending(syntax.assert_not_null(ctx.accessors.cookie(syntax, cookie.key)))
            line = syntax.assert_comparison(
                ctx.accessors.cookie_value(syntax, cookie.key), non_body_value(cookie.value)
            )
            if index < len(cookies) - 1:
                out.add_line_with_ending(line)
            else:
                out.add_indented(line)


class HttpThen:
    """Status, headers, cookies and body checks of the response."""

    def __init__(self) -> None:
        self._visitors = [
            StatusThen(),
            ResponseHeadersThen(),
            ResponseCookiesThen(),
            GenericBodyThen(),
        ]

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.contract.is_http

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        start_body_block(out, "then:")
        body_block(ctx, out, self._visitors)


# ---------------------------------------------------------------------------
# when: (JAX-RS)
# ---------------------------------------------------------------------------


class JaxRsUrlPath:
    def accepts(self, ctx: RenderContext) -> bool:
        return True

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_line(f".path({_url_literal(ctx)})")
        for param in _query_parameters(ctx):
            out.add_line(
                f".queryParam({ctx.syntax.quoted_short_text(param.name)}, "
                f"{non_body_literal(ctx, param.value)})"
            )


class JaxRsRequest:
    def accepts(self, ctx: RenderContext) -> bool:
        return True

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        headers = _request(ctx).headers
        accept = headers.accept() if headers else None
        if accept:
            out.add_line(f".request({ctx.syntax.quoted_short_text(accept)})")
        else:
            out.add_line(".request()")


class JaxRsHeaders:
    def _headers(self, ctx: RenderContext) -> list[Any]:
        return [
            header for header in _request_headers(ctx)
            if header.name.lower() not in _JAXRS_SKIPPED_HEADERS
        ]

    def accepts(self, ctx: RenderContext) -> bool:
        return bool(self._headers(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        for header in self._headers(ctx):
            out.add_line(
                f".header({ctx.syntax.quoted_short_text(header.name)}, "
                f"{non_body_literal(ctx, header.value)})"
            )


class JaxRsCookies:
    def accepts(self, ctx: RenderContext) -> bool:
        return bool(_request_cookies(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        for cookie in _request_cookies(ctx):
            out.add_line(
                f".cookie({ctx.syntax.quoted_short_text(cookie.key)}, "
                f"{non_body_literal(ctx, cookie.value)})"
            )


class JaxRsInvocation:
    """``.build("METHOD"[, entity(...)])`` followed by ``.invoke()``."""

    def accepts(self, ctx: RenderContext) -> bool:
        return True

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        syntax = ctx.syntax
        request = _request(ctx)
        method = syntax.quoted_short_text(str(resolve_test_side(request.method)).upper())
        if request.body is not None:
            body = request_body_expression(ctx, request.body)
            out.add_line(f".build({method}, entity({body}, {syntax.quoted_short_text(mime_type(ctx))}))")
        else:
            out.add_line(f".build({method})")
        out.add_indented(".invoke()")


class JaxRsWhen:
    def __init__(self) -> None:
        self._visitors = [
            JaxRsUrlPath(),
            JaxRsRequest(),
            JaxRsHeaders(),
            JaxRsCookies(),
            JaxRsInvocation(),
        ]

    def accepts(self, ctx: RenderContext) -> bool:
        return is_jaxrs(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        if _request(ctx).multipart:
            raise UnsupportedFeatureError(
                detail="Multipart requests are not supported by the JAX-RS client harness"
            )
        start_body_block(out, "when:")
        out.add_indented(f"{declaration(ctx, 'Response', 'response')} = webTarget")
        out.add_empty_line().indent()
        for visitor in self._visitors:
            if visitor.accepts(ctx):
                visitor.render(ctx, out)
        out.terminate_if_absent().add_empty_line().unindent()
        if _response(ctx).body is not None:
            out.add_empty_line()
            out.add_line_with_ending(
                ctx.syntax.string_variable(
                    "responseAsString",
                    f"response.readEntity({ctx.syntax.class_literal('String')})",
                )
            )
        out.end_block()


# ---------------------------------------------------------------------------
# given: / when: (custom HttpVerifier)
# ---------------------------------------------------------------------------


class CustomRequestGiven:
    """``Request request = request()``, later passed to ``httpVerifier``."""

    def accepts(self, ctx: RenderContext) -> bool:
        return is_custom(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented(f"{declaration(ctx, 'Request', 'request')} = request()")


class CustomMethodWithUrlGiven:
    def accepts(self, ctx: RenderContext) -> bool:
        return True

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        method = str(resolve_test_side(_request(ctx).method)).upper()
        continuation_lines(out, [
            f".method({ctx.syntax.quoted_short_text(method)})",
            f".path({_url_literal(ctx)})",
        ])


class CustomQueryParamsGiven:
    def accepts(self, ctx: RenderContext) -> bool:
        return bool(_query_parameters(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        continuation_lines(out, [
            f".queryParam({ctx.syntax.quoted_short_text(param.name)}, {non_body_literal(ctx, param.value)})"
            for param in _query_parameters(ctx)
        ])


class CustomRequestBuildGiven:
    def accepts(self, ctx: RenderContext) -> bool:
        return True

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented(".build()")


class CustomModeGiven:
    """The ``given:`` section of the custom harness."""

    def __init__(self) -> None:
        self._visitors = [
            CustomMethodWithUrlGiven(),
            CustomQueryParamsGiven(),
            RequestHeadersGiven(),
            RequestCookiesGiven(),
            RequestBodyGiven(),
            CustomRequestBuildGiven(),
        ]

    def accepts(self, ctx: RenderContext) -> bool:
        return is_custom(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        if _request(ctx).multipart:
            raise UnsupportedFeatureError(
                detail="Multipart requests are not supported by the custom harness"
            )
        start_body_block(out, "given:")
        ctx.catalogue.select_one(ExtensionPoint.REQUEST_GIVEN, ctx).render(ctx, out)
        indented_body_block(ctx, out, self._visitors)
        out.end_block()


class CustomResponseWhen:
    """``Response response = httpVerifier.exchange(request)``."""

    def accepts(self, ctx: RenderContext) -> bool:
        return is_custom(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented(f"{declaration(ctx, 'Response', 'response')} = httpVerifier.exchange(request)")


class CustomModeWhen:
    def accepts(self, ctx: RenderContext) -> bool:
        return is_custom(ctx)

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        start_body_block(out, "when:")
        ctx.catalogue.select_one(ExtensionPoint.RESPONSE_WHEN, ctx).render(ctx, out)
        indented_body_block(ctx, out, [])
        out.end_block()
