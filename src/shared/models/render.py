"""Output profile enums shared by configuration and renderers."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TargetLanguage(str, Enum):
    """Source language of the generated test class."""
    JAVA = "java"
    GROOVY = "groovy"
    KOTLIN = "kotlin"


class TestFramework(str, Enum):
    """Test framework dialect of the generated test class."""
    __test__ = False

    JUNIT = "junit"
    JUNIT5 = "junit5"
    TESTNG = "testng"
    SPOCK = "spock"

    @property
    def language(self) -> TargetLanguage:
        return self.languages[0]

    @property
    def languages(self) -> tuple[TargetLanguage, ...]:
        """Languages the framework can be generated in; the first is the default."""
        if self is TestFramework.SPOCK:
            return (TargetLanguage.GROOVY,)
        return (TargetLanguage.JAVA, TargetLanguage.KOTLIN)


class TestMode(str, Enum):
    """HTTP harness used to call the service under test."""
    __test__ = False

    MOCKMVC = "mockmvc"
    EXPLICIT = "explicit"
    WEBTESTCLIENT = "webtestclient"
    JAXRSCLIENT = "jaxrsclient"
    CUSTOM = "custom"


class ContentType(str, Enum):
    """Evaluated content type of a request or response body."""
    JSON = "json"
    XML = "xml"
    TEXT = "text"
    FORM = "form"
    DEFINED = "defined"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Profile:
    """Key used to look up fragments: language, framework and harness."""
    language: TargetLanguage
    framework: TestFramework
    harness: TestMode

    def describe(self) -> str:
        return f"{self.language.value}/{self.framework.value}/{self.harness.value}"
