"""Tests for fixture files written for from-file bodies."""
from __future__ import annotations

import yaml
import pytest

from src.contract_codegen.services.body_reader import BodyReader, contract_to_yaml_ready
from src.shared.errors import FixtureWriteError
from src.shared.models.values import FromFileProperty, RegexProperty


@pytest.fixture
def class_metadata(make_config, make_class_metadata, http_contract):
    return make_class_metadata(make_config(), http_contract)


class TestFixtures:
    """From-file bodies copied next to the generated class."""

    def test_fixture_name(self, class_metadata):
        metadata = class_metadata.contracts()[0]
        prop = FromFileProperty("body.bin", b"\x01")
        assert BodyReader.fixture_name(metadata, prop, "RESPONSE") == "foo_response_body.bin"

    def test_bytes_are_written_twice(self, class_metadata, tmp_path):
        reader = BodyReader(class_metadata)
        metadata = class_metadata.contracts()[0]
        expression = reader.read_bytes_expression(
            metadata, FromFileProperty("body.bin", b"\x01\x02", is_byte=True), "response"
        )
        assert expression == 'fileToBytes(this, "foo_response_body.bin")'
        assert (tmp_path / "sources" / "test" / "foo_response_body.bin").read_bytes() == b"\x01\x02"
        assert (tmp_path / "resources" / "test" / "foo_response_body.bin").read_bytes() == b"\x01\x02"

    def test_existing_fixture_is_kept(self, class_metadata, tmp_path):
        reader = BodyReader(class_metadata)
        metadata = class_metadata.contracts()[0]
        target = tmp_path / "sources" / "test" / "foo_request_body.json"
        target.parent.mkdir(parents=True)
        target.write_bytes(b"old")
        reader.read_bytes_expression(metadata, FromFileProperty("body.json", b"new"), "request")
        assert target.read_bytes() == b"old"

    def test_string_expression_with_charset(self, class_metadata):
        reader = BodyReader(class_metadata)
        metadata = class_metadata.contracts()[0]
        utf8 = reader.read_string_expression(metadata, FromFileProperty("a.txt", b"a"), "request")
        latin = reader.read_string_expression(
            metadata, FromFileProperty("b.txt", b"b", charset="ISO-8859-1"), "request"
        )
        assert utf8 == 'new String(fileToBytes(this, "foo_request_a.txt"))'
        assert latin == 'new String(fileToBytes(this, "foo_request_b.txt"), "ISO-8859-1")'

    def test_write_failure(self, make_config, make_class_metadata, http_contract, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        config = make_config(generated_test_sources_dir=str(blocker / "sources"))
        reader = BodyReader(make_class_metadata(config, http_contract))
        metadata = reader._class_metadata.contracts()[0]
        with pytest.raises(FixtureWriteError):
            reader.read_bytes_expression(metadata, FromFileProperty("a.bin", b"a"), "response")


class TestStoredContracts:
    """Messaging contracts stored as YAML beside the test."""

    def test_store_contract_as_yaml(self, make_config, make_class_metadata, messaging_contract, tmp_path):
        class_metadata = make_class_metadata(make_config(), messaging_contract)
        file_name = BodyReader(class_metadata).store_contract_as_yaml(class_metadata.contracts()[0])
        assert file_name == "messaging.yml"
        stored = yaml.safe_load((tmp_path / "sources" / "test" / file_name).read_text())
        assert stored["name"] == "messaging"
        assert stored["output_message"]["sent_to"] == "jms:output"

    def test_yaml_ready_conversion(self):
        converted = contract_to_yaml_ready({"a": None, "b": RegexProperty("x"), "c": (1, 2)})
        assert converted == {
            "b": {"type": "RegexProperty", "pattern": "x", "value_type": "String"},
            "c": [1, 2],
        }
