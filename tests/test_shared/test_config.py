"""Tests for configuration management."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from src.shared.config import RenderConfig, SharedConfig
from src.shared.models.render import Profile, TargetLanguage, TestFramework, TestMode


class TestSharedConfig:
    """Settings every component shares."""

    def test_default_values(self):
        config = SharedConfig()
        assert config.log_level == "info"

    def test_env_override_log_level(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        config = SharedConfig()
        assert config.log_level == "debug"


class TestRenderConfig:
    """Render settings and the profile derived from them."""

    def test_default_values(self):
        config = RenderConfig()
        assert config.test_framework is TestFramework.JUNIT5
        assert config.test_mode is TestMode.MOCKMVC
        assert config.base_class_for_tests is None
        assert config.base_class_mappings == {}
        assert config.imports == []
        assert config.assert_json_size is False
        assert config.fail_on_in_progress is True

    def test_env_override_framework(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CODEGEN_TEST_FRAMEWORK", "spock")
        monkeypatch.setenv("CODEGEN_TEST_MODE", "explicit")
        config = RenderConfig()
        assert config.test_framework is TestFramework.SPOCK
        assert config.test_mode is TestMode.EXPLICIT

    def test_env_override_json_list(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CODEGEN_IMPORTS", '["com.example.Foo"]')
        config = RenderConfig()
        assert config.imports == ["com.example.Foo"]

    def test_populate_by_field_name(self):
        config = RenderConfig(test_framework=TestFramework.TESTNG, assert_json_size=True)
        assert config.test_framework is TestFramework.TESTNG
        assert config.assert_json_size is True

    def test_frozen(self):
        config = RenderConfig()
        with pytest.raises(ValidationError):
            config.assert_json_size = True

    @pytest.mark.parametrize(
        ("framework", "language"),
        [
            (TestFramework.JUNIT, TargetLanguage.JAVA),
            (TestFramework.JUNIT5, TargetLanguage.JAVA),
            (TestFramework.TESTNG, TargetLanguage.JAVA),
            (TestFramework.SPOCK, TargetLanguage.GROOVY),
        ],
    )
    def test_target_language_follows_framework(self, framework, language):
        assert RenderConfig(test_framework=framework).target_language is language

    def test_profile(self):
        config = RenderConfig(test_framework=TestFramework.SPOCK, test_mode=TestMode.JAXRSCLIENT)
        assert config.profile == Profile(TargetLanguage.GROOVY, TestFramework.SPOCK, TestMode.JAXRSCLIENT)
        assert config.profile.describe() == "groovy/spock/jaxrsclient"

    def test_kotlin_language(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CODEGEN_TEST_LANGUAGE", "kotlin")
        config = RenderConfig(test_mode=TestMode.CUSTOM)
        assert config.target_language is TargetLanguage.KOTLIN
        assert config.profile.describe() == "kotlin/junit5/custom"

    def test_language_must_suit_framework(self):
        with pytest.raises(ValidationError):
            RenderConfig(test_framework=TestFramework.SPOCK, test_language=TargetLanguage.KOTLIN)
        with pytest.raises(ValidationError):
            RenderConfig(test_framework=TestFramework.JUNIT, test_language=TargetLanguage.GROOVY)
