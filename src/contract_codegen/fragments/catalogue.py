"""The default fragment library.

Registration order matters: exclusive points take the first accepting
fragment and filter points render in the order given here.
"""

from __future__ import annotations

from src.contract_codegen.fragments import class_fragments as cls
from src.contract_codegen.fragments import http_fragments as http
from src.contract_codegen.fragments import messaging_fragments as messaging
from src.contract_codegen.fragments.processors import (
    IgnoredContractPreProcessor,
    InProgressContractPreProcessor,
    TemplateUpdatingPostProcessor,
)
from src.contract_codegen.fragments.registry import ExtensionPoint, FragmentLibrary
from src.shared.models.render import TargetLanguage, TestFramework, TestMode

JAVA = [TargetLanguage.JAVA]
GROOVY = [TargetLanguage.GROOVY]
KOTLIN = [TargetLanguage.KOTLIN]
JAVA_FRAMEWORKS = [TestFramework.JUNIT, TestFramework.JUNIT5, TestFramework.TESTNG]
REST_ASSURED = [TestMode.MOCKMVC, TestMode.EXPLICIT, TestMode.WEBTESTCLIENT]
CUSTOM = [TestMode.CUSTOM]


def default_library() -> FragmentLibrary:
    """Build a library covering every supported language, framework and harness."""
    library = FragmentLibrary()

    library.register(
        ExtensionPoint.CLASS_METADATA, cls.JavaClassMetadata(),
        languages=JAVA, frameworks=JAVA_FRAMEWORKS,
    )
    library.register(
        ExtensionPoint.CLASS_METADATA, cls.SpockClassMetadata(),
        languages=GROOVY, frameworks=[TestFramework.SPOCK],
    )
    library.register(
        ExtensionPoint.CLASS_METADATA, cls.KotlinClassMetadata(),
        languages=KOTLIN, frameworks=JAVA_FRAMEWORKS,
    )

    for fragment in (
        cls.BaseClassImports(),
        cls.CustomImports(),
        cls.JsonPathImports(),
        cls.FrameworkImports(),
        cls.IgnoreImports(),
        cls.OrderImports(),
        cls.XmlImports(),
        cls.MessagingImports(),
        cls.HarnessImports(),
    ):
        library.register(ExtensionPoint.IMPORTS, fragment)

    for fragment in (
        cls.DefaultStaticImports(),
        cls.CustomStaticImports(),
        cls.JsonAssertStaticImports(),
        cls.MessagingStaticImports(),
        cls.HarnessStaticImports(),
    ):
        library.register(ExtensionPoint.STATIC_IMPORTS, fragment)

    library.register(ExtensionPoint.CLASS_ANNOTATIONS, cls.SuppressWarningsAnnotation(), languages=JAVA)
    library.register(ExtensionPoint.CLASS_ANNOTATIONS, cls.OrderAnnotation())
    library.register(ExtensionPoint.FIELDS, cls.MessagingFields())
    library.register(ExtensionPoint.FIELDS, cls.CustomModeFields(), harnesses=CUSTOM)

    library.register(ExtensionPoint.METHOD_METADATA, cls.JUnitMethodMetadata(), languages=JAVA)
    library.register(ExtensionPoint.METHOD_METADATA, cls.SpockMethodMetadata(), languages=GROOVY)
    library.register(ExtensionPoint.METHOD_METADATA, cls.KotlinMethodMetadata(), languages=KOTLIN)
    library.register(ExtensionPoint.METHOD_ANNOTATIONS, cls.JUnitTestAnnotation(), frameworks=JAVA_FRAMEWORKS)
    library.register(ExtensionPoint.METHOD_ANNOTATIONS, cls.IgnoreAnnotation())

    library.register(ExtensionPoint.METHOD_PRE_PROCESSORS, InProgressContractPreProcessor())
    library.register(ExtensionPoint.METHOD_PRE_PROCESSORS, IgnoredContractPreProcessor())
    library.register(ExtensionPoint.METHOD_POST_PROCESSORS, TemplateUpdatingPostProcessor())

    library.register(ExtensionPoint.REQUEST_GIVEN, http.RequestSpecificationGiven(), harnesses=REST_ASSURED)
    library.register(ExtensionPoint.RESPONSE_WHEN, http.ResponseWhen(), harnesses=REST_ASSURED)
    library.register(ExtensionPoint.REQUEST_GIVEN, http.CustomRequestGiven(), harnesses=CUSTOM)
    library.register(ExtensionPoint.RESPONSE_WHEN, http.CustomResponseWhen(), harnesses=CUSTOM)

    library.register(ExtensionPoint.GIVEN, http.RestAssuredGiven(), harnesses=REST_ASSURED)
    library.register(ExtensionPoint.GIVEN, http.CustomModeGiven(), harnesses=CUSTOM)
    library.register(ExtensionPoint.GIVEN, messaging.MessagingGiven())

    library.register(ExtensionPoint.WHEN, http.RestAssuredWhen(), harnesses=REST_ASSURED)
    library.register(ExtensionPoint.WHEN, http.JaxRsWhen(), harnesses=[TestMode.JAXRSCLIENT])
    library.register(ExtensionPoint.WHEN, http.CustomModeWhen(), harnesses=CUSTOM)
    library.register(ExtensionPoint.WHEN, messaging.MessagingWhen())

    library.register(ExtensionPoint.THEN, http.HttpThen())
    library.register(ExtensionPoint.THEN, messaging.MessagingThen())
    library.register(ExtensionPoint.THEN, messaging.MessagingAssertThen())
    return library
