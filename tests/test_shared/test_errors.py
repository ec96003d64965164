"""Tests for shared error classes."""
from __future__ import annotations

import pytest

from src.shared.errors import (
    AssemblyError,
    CodegenError,
    ConfigurationExhaustedError,
    FixtureWriteError,
    MalformedContractError,
    UnsupportedFeatureError,
)


class TestCodegenError:
    """Tests for the base CodegenError exception."""

    def test_default_status_code(self):
        err = CodegenError(detail="something broke")
        assert err.status_code == 500
        assert err.detail == "something broke"

    def test_custom_status_code(self):
        err = CodegenError(detail="bad request", status_code=400)
        assert err.status_code == 400

    def test_str_is_detail(self):
        err = CodegenError(detail="human readable")
        assert str(err) == "human readable"


class TestConfigurationExhaustedError:
    """Tests for ConfigurationExhaustedError."""

    def test_message_names_extension_point(self):
        err = ConfigurationExhaustedError("class metadata")
        assert err.extension_point == "class metadata"
        assert "class metadata" in str(err)
        assert str(err) == "No matching fragment found for extension point [class metadata]"

    def test_custom_detail(self):
        err = ConfigurationExhaustedError("given", detail="nothing for given")
        assert err.detail == "nothing for given"
        assert err.extension_point == "given"

    def test_inherits_from_codegen_error(self):
        assert issubclass(ConfigurationExhaustedError, CodegenError)


class TestMalformedContractError:
    """Tests for MalformedContractError (422)."""

    def test_default_detail(self):
        err = MalformedContractError()
        assert err.status_code == 422
        assert err.detail == "Malformed contract"
        assert err.path is None
        assert err.body_snapshot is None

    def test_carries_path_and_snapshot(self):
        err = MalformedContractError(detail="missing", path="$.a", body_snapshot='{"b": 1}')
        assert err.path == "$.a"
        assert err.body_snapshot == '{"b": 1}'


class TestUnsupportedFeatureError:
    """Unsupported contract features."""

    def test_status_code(self):
        err = UnsupportedFeatureError(detail="no xml type matchers")
        assert err.status_code == 501
        assert err.detail == "no xml type matchers"


class TestFixtureWriteError:
    """Failures writing fixture files."""

    def test_carries_path(self):
        err = FixtureWriteError(detail="disk full", path="/tmp/x.bin")
        assert err.path == "/tmp/x.bin"
        assert err.status_code == 500

    def test_can_be_chained(self):
        with pytest.raises(FixtureWriteError) as exc_info:
            try:
                raise OSError("denied")
            except OSError as exc:
                raise FixtureWriteError(detail="cannot write", path="x") from exc
        assert isinstance(exc_info.value.__cause__, OSError)


class TestAssemblyError:
    """Unbalanced text assembly."""

    def test_default_detail(self):
        err = AssemblyError()
        assert err.detail == "Unbalanced assembly instructions"
        assert isinstance(err, CodegenError)
