"""Class-level fragments: package, imports, annotations, fields and signatures."""

from __future__ import annotations

import logging

from src.contract_codegen.fragments.registry import RenderContext
from src.contract_codegen.services.base_class_resolver import BaseClassResolver
from src.contract_codegen.text_assembler import Emitter
from src.shared.models.render import TargetLanguage, TestFramework, TestMode
from src.shared.utils import after_last_dot

logger = logging.getLogger(__name__)

_MESSAGING_INTERNAL = "org.springframework.cloud.contract.verifier.messaging.internal"
_HTTP_VERIFIER = "org.springframework.cloud.contract.verifier.http"

_MESSAGING_IMPORTS = [
    "javax.inject.Inject",
    f"{_MESSAGING_INTERNAL}.ContractVerifierObjectMapper",
    f"{_MESSAGING_INTERNAL}.ContractVerifierMessage",
    f"{_MESSAGING_INTERNAL}.ContractVerifierMessaging",
]

_FRAMEWORK_IMPORTS = {
    TestFramework.JUNIT: ["org.junit.Test", "org.junit.Rule"],
    TestFramework.JUNIT5: ["org.junit.jupiter.api.Test", "org.junit.jupiter.api.extension.ExtendWith"],
    TestFramework.TESTNG: ["org.testng.annotations.Test"],
    TestFramework.SPOCK: ["spock.lang.Specification"],
}

_IGNORE_IMPORTS = {
    TestFramework.JUNIT: ["org.junit.Ignore"],
    TestFramework.JUNIT5: ["org.junit.jupiter.api.Disabled"],
    TestFramework.SPOCK: ["spock.lang.Ignore"],
}

_ORDER_IMPORTS = {
    TestFramework.JUNIT: ["org.junit.FixMethodOrder", "org.junit.runners.MethodSorters"],
    TestFramework.JUNIT5: ["org.junit.jupiter.api.TestMethodOrder", "org.junit.jupiter.api.MethodOrderer"],
    TestFramework.SPOCK: ["spock.lang.Stepwise"],
}

_ORDER_ANNOTATIONS = {
    TestFramework.JUNIT: "@FixMethodOrder(MethodSorters.NAME_ASCENDING)",
    TestFramework.JUNIT5: "@TestMethodOrder(MethodOrderer.MethodName.class)",
    TestFramework.SPOCK: "@Stepwise",
}

_IGNORE_ANNOTATIONS = {
    TestFramework.JUNIT: "@Ignore",
    TestFramework.JUNIT5: "@Disabled",
    TestFramework.SPOCK: "@Ignore",
}

_HARNESS_IMPORTS = {
    TestMode.MOCKMVC: [
        "io.restassured.module.mockmvc.specification.MockMvcRequestSpecification",
        "io.restassured.response.ResponseOptions",
    ],
    TestMode.EXPLICIT: [
        "io.restassured.specification.RequestSpecification",
        "io.restassured.response.Response",
    ],
    TestMode.WEBTESTCLIENT: [
        "io.restassured.module.webtestclient.specification.WebTestClientRequestSpecification",
        "io.restassured.module.webtestclient.response.WebTestClientResponse",
    ],
    TestMode.JAXRSCLIENT: [
        "javax.ws.rs.client.Entity",
        "javax.ws.rs.core.Response",
    ],
    TestMode.CUSTOM: [
        f"{_HTTP_VERIFIER}.HttpVerifier",
        f"{_HTTP_VERIFIER}.Request",
        f"{_HTTP_VERIFIER}.Response",
        "javax.inject.Inject",
    ],
}

_HARNESS_STATIC_IMPORTS = {
    TestMode.MOCKMVC: ["io.restassured.module.mockmvc.RestAssuredMockMvc.*"],
    TestMode.EXPLICIT: ["io.restassured.RestAssured.*"],
    TestMode.WEBTESTCLIENT: ["io.restassured.module.webtestclient.RestAssuredWebTestClient.*"],
    TestMode.JAXRSCLIENT: ["javax.ws.rs.client.Entity.*"],
    TestMode.CUSTOM: [f"{_HTTP_VERIFIER}.Request.request"],
}


def base_class(ctx: RenderContext) -> str | None:
    return BaseClassResolver().resolve(
        ctx.config, ctx.class_metadata.included_directory_relative_path
    )


# ---------------------------------------------------------------------------
# Class metadata
# ---------------------------------------------------------------------------


class JavaClassMetadata:
    """``public class FooTest extends Base`` for the JUnit and TestNG profiles."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.syntax.language is TargetLanguage.JAVA

    def render_package(self, ctx: RenderContext, out: Emitter) -> bool:
        package = ctx.class_metadata.package
        if not package:
            return False
        out.add_line_with_ending(f"package {package}")
        return True

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.append("public class ").append(ctx.class_metadata.full_class_name).append(" ")
        resolved = base_class(ctx)
        if resolved:
            out.append(f"extends {after_last_dot(resolved)} ")


class SpockClassMetadata(JavaClassMetadata):
    """``class FooSpec extends Specification`` unless a base class is set."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.is_groovy

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        resolved = base_class(ctx)
        parent = after_last_dot(resolved) if resolved else "Specification"
        out.append("class ").append(ctx.class_metadata.full_class_name).append(f" extends {parent} ")


class KotlinClassMetadata(JavaClassMetadata):
    """``class FooTest : Base() `` for Kotlin test sources.

    Kotlin classes are public by default and extend a class by calling one
    of its constructors.
    """

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.syntax.language is TargetLanguage.KOTLIN

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.append("class ").append(ctx.class_metadata.full_class_name).append(" ")
        resolved = base_class(ctx)
        if resolved:
            out.append(f": {after_last_dot(resolved)}() ")


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------


class ImportsFragment:
    """Renders ``import x`` lines; subclasses decide which and when."""

    static = False

    def imports(self, ctx: RenderContext) -> list[str]:
        return []

    def accepts(self, ctx: RenderContext) -> bool:
        return bool(self.imports(ctx))

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        # Kotlin imports members with the plain keyword
        static = self.static and ctx.syntax.language is not TargetLanguage.KOTLIN
        keyword = "import static" if static else "import"
        for name in self.imports(ctx):
            out.add_line_with_ending(f"{keyword} {name}")


class BaseClassImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        resolved = base_class(ctx)
        return [resolved] if resolved else []


class CustomImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        return list(ctx.config.imports)


class JsonPathImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        if not any(metadata.evaluates_to_json for metadata in ctx.class_metadata.contracts()):
            return []
        return ["com.jayway.jsonpath.DocumentContext", "com.jayway.jsonpath.JsonPath"]


class FrameworkImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        return list(_FRAMEWORK_IMPORTS[ctx.profile.framework])


class IgnoreImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        if not ctx.class_metadata.is_any_ignored():
            return []
        return list(_IGNORE_IMPORTS.get(ctx.profile.framework, []))


class OrderImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        if not ctx.class_metadata.has_order():
            return []
        return list(_ORDER_IMPORTS.get(ctx.profile.framework, []))


class XmlImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        if not ctx.class_metadata.is_any_xml():
            return []
        return [
            "javax.xml.parsers.DocumentBuilder",
            "javax.xml.parsers.DocumentBuilderFactory",
            "org.w3c.dom.Document",
            "org.xml.sax.InputSource",
            "java.io.StringReader",
        ]


class MessagingImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        if not ctx.class_metadata.is_any_messaging():
            return []
        return list(_MESSAGING_IMPORTS)


class HarnessImports(ImportsFragment):
    def imports(self, ctx: RenderContext) -> list[str]:
        if not ctx.class_metadata.is_any_http():
            return []
        names = _HARNESS_IMPORTS[ctx.profile.harness]
        if ctx.class_metadata.is_any_messaging():
            # already imported for the messaging fields
            names = [name for name in names if name not in _MESSAGING_IMPORTS]
        return list(names)


class DefaultStaticImports(ImportsFragment):
    static = True

    def imports(self, ctx: RenderContext) -> list[str]:
        return [
            "org.springframework.cloud.contract.verifier.assertion.SpringCloudContractAssertions.assertThat",
            "org.springframework.cloud.contract.verifier.util.ContractVerifierUtil.*",
        ]


class CustomStaticImports(ImportsFragment):
    static = True

    def imports(self, ctx: RenderContext) -> list[str]:
        return list(ctx.config.static_imports)


class JsonAssertStaticImports(JsonPathImports):
    static = True

    def imports(self, ctx: RenderContext) -> list[str]:
        if not super().imports(ctx):
            return []
        return ["com.toomuchcoding.jsonassert.JsonAssertion.assertThatJson"]


class MessagingStaticImports(ImportsFragment):
    static = True

    def imports(self, ctx: RenderContext) -> list[str]:
        if not ctx.class_metadata.is_any_messaging():
            return []
        return [
            "org.springframework.cloud.contract.verifier.messaging.util.ContractVerifierMessagingUtil.headers",
            "org.springframework.cloud.contract.verifier.util.ContractVerifierUtil.fileToBytes",
        ]


class HarnessStaticImports(ImportsFragment):
    static = True

    def imports(self, ctx: RenderContext) -> list[str]:
        if not ctx.class_metadata.is_any_http():
            return []
        return list(_HARNESS_STATIC_IMPORTS[ctx.profile.harness])


# ---------------------------------------------------------------------------
# Class annotations and fields
# ---------------------------------------------------------------------------


class SuppressWarningsAnnotation:
    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.syntax.language is TargetLanguage.JAVA

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_line('@SuppressWarnings("rawtypes")')


class OrderAnnotation:
    """Runs test methods in name order when any contract file declares an order."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.profile.framework in _ORDER_ANNOTATIONS and ctx.class_metadata.has_order()

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        annotation = _ORDER_ANNOTATIONS[ctx.profile.framework]
        if ctx.syntax.language is TargetLanguage.KOTLIN:
            annotation = annotation.replace(".class", "::class")
        out.add_line(annotation)


class MessagingFields:
    """Injected messaging helpers used by every messaging test method."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.class_metadata.is_any_messaging()

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        inject = ctx.syntax.injected_field
        out.add_line_with_ending(inject("ContractVerifierMessaging", "contractVerifierMessaging"))
        out.add_indented(inject("ContractVerifierObjectMapper", "contractVerifierObjectMapper"))


class CustomModeFields:
    """The injected :class:`HttpVerifier` that sends custom-mode requests."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.profile.harness is TestMode.CUSTOM and ctx.class_metadata.is_any_http()

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented(ctx.syntax.injected_field("HttpVerifier", "httpVerifier"))


# ---------------------------------------------------------------------------
# Method metadata and annotations
# ---------------------------------------------------------------------------


class JUnitMethodMetadata:
    """``public void validate_x() throws Exception``."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.syntax.language is TargetLanguage.JAVA

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented("public").append_with_space("void")
        out.append_with_space(ctx.contract.test_method_name).append("() throws Exception ")


class SpockMethodMetadata:
    """``def validate_x() throws Exception``."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.is_groovy

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented("def").append_with_space(ctx.contract.test_method_name)
        out.append("() throws Exception ")


class KotlinMethodMetadata:
    """``fun validate_x()``; Kotlin has no checked exceptions."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.syntax.language is TargetLanguage.KOTLIN

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        out.add_indented("fun").append_with_space(ctx.contract.test_method_name).append("() ")


class JUnitTestAnnotation:
    """``@Test`` for the JUnit profiles; TestNG carries the ignore flag itself."""

    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.profile.framework is not TestFramework.SPOCK

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        if ctx.profile.framework is TestFramework.TESTNG and ctx.contract.is_ignored:
            out.add_line("@Test(enabled = false)")
            return
        out.add_line("@Test")


class IgnoreAnnotation:
    def accepts(self, ctx: RenderContext) -> bool:
        return ctx.profile.framework in _IGNORE_ANNOTATIONS and ctx.contract.is_ignored

    def render(self, ctx: RenderContext, out: Emitter) -> None:
        logger.debug("Contract [%s] is ignored", ctx.contract.method_name)
        out.add_line(_IGNORE_ANNOTATIONS[ctx.profile.framework])
