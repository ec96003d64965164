"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

from src.shared.models.render import Profile, TargetLanguage, TestFramework, TestMode


class SharedConfig(BaseSettings):
    """Base configuration shared across all components."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class RenderConfig(SharedConfig):
    """Configuration of one contract test render call."""
    test_framework: TestFramework = Field(
        default=TestFramework.JUNIT5, validation_alias="CODEGEN_TEST_FRAMEWORK"
    )
    test_mode: TestMode = Field(
        default=TestMode.MOCKMVC, validation_alias="CODEGEN_TEST_MODE"
    )
    test_language: TargetLanguage | None = Field(
        default=None, validation_alias="CODEGEN_TEST_LANGUAGE"
    )
    base_class_for_tests: str | None = Field(
        default=None, validation_alias="CODEGEN_BASE_CLASS_FOR_TESTS"
    )
    package_with_base_classes: str | None = Field(
        default=None, validation_alias="CODEGEN_PACKAGE_WITH_BASE_CLASSES"
    )
    base_class_mappings: dict[str, str] = Field(
        default_factory=dict, validation_alias="CODEGEN_BASE_CLASS_MAPPINGS"
    )
    name_suffix_for_tests: str | None = Field(
        default=None, validation_alias="CODEGEN_NAME_SUFFIX_FOR_TESTS"
    )
    imports: list[str] = Field(
        default_factory=list, validation_alias="CODEGEN_IMPORTS"
    )
    static_imports: list[str] = Field(
        default_factory=list, validation_alias="CODEGEN_STATIC_IMPORTS"
    )
    assert_json_size: bool = Field(
        default=False, validation_alias="CODEGEN_ASSERT_JSON_SIZE"
    )
    fail_on_in_progress: bool = Field(
        default=True, validation_alias="CODEGEN_FAIL_ON_IN_PROGRESS"
    )
    generated_test_sources_dir: str = Field(
        default="./build/generated-test-sources",
        validation_alias="CODEGEN_GENERATED_TEST_SOURCES_DIR",
    )
    generated_test_resources_dir: str = Field(
        default="./build/generated-test-resources",
        validation_alias="CODEGEN_GENERATED_TEST_RESOURCES_DIR",
    )

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "frozen": True,
    }

    @model_validator(mode="after")
    def _check_language(self) -> RenderConfig:
        if self.test_language is not None and self.test_language not in self.test_framework.languages:
            raise ValueError(
                f"{self.test_framework.value} tests cannot be generated in {self.test_language.value}"
            )
        return self

    @property
    def target_language(self) -> TargetLanguage:
        return self.test_language or self.test_framework.language

    @property
    def profile(self) -> Profile:
        return Profile(
            language=self.target_language,
            framework=self.test_framework,
            harness=self.test_mode,
        )
