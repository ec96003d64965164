"""Fixture files for from-file bodies and stored messaging contracts.

Bodies declared as files are not inlined into the generated test.  They
are copied next to the test class as ``{method}_{direction}_{file}`` and the
test loads them back with ``fileToBytes(this, "...")``.  Every file is also
mirrored under the generated test resources directory so that the build
tool puts it on the test classpath.  Writes are skipped when the target
already exists, which keeps repeated renders idempotent.
"""

from __future__ import annotations

import dataclasses
import logging
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from src.contract_codegen.metadata import GeneratedClassMetadata, SingleContractMetadata
from src.contract_codegen.syntax import AssertionSyntaxProfile, JavaSyntax
from src.shared.errors import FixtureWriteError
from src.shared.models.values import FromFileProperty

logger = logging.getLogger(__name__)


class BodyReader:
    """Persists fixtures and builds the expressions that load them."""

    def __init__(self, class_metadata: GeneratedClassMetadata) -> None:
        self._class_metadata = class_metadata

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def read_bytes_expression(
        self,
        metadata: SingleContractMetadata,
        prop: FromFileProperty,
        side: str,
    ) -> str:
        """Write the fixture for *prop* and return the byte-loading expression.

        Raises
        ------
        FixtureWriteError
            When the fixture cannot be written.
        """
        file_name = self.fixture_name(metadata, prop, side)
        self._write_for_ide_and_build_tool(prop.as_bytes(), file_name)
        return f'fileToBytes(this, "{file_name}")'

    def read_string_expression(
        self,
        metadata: SingleContractMetadata,
        prop: FromFileProperty,
        side: str,
        syntax: AssertionSyntaxProfile | None = None,
    ) -> str:
        """Like :meth:`read_bytes_expression`, wrapped into a ``String``."""
        syntax = syntax or JavaSyntax()
        bytes_expression = self.read_bytes_expression(metadata, prop, side)
        if prop.charset.lower().replace("_", "-") not in ("utf-8", "utf8"):
            return syntax.new_string(bytes_expression, prop.charset)
        return syntax.new_string(bytes_expression)

    def store_contract_as_yaml(self, metadata: SingleContractMetadata) -> str:
        """Store the contract as ``{method}.yml`` and return the file name."""
        file_name = f"{metadata.method_name}.yml"
        document = contract_to_yaml_ready(metadata.contract.model_dump(by_alias=True))
        content = yaml.dump(document, default_flow_style=False, sort_keys=False)
        self._write_for_ide_and_build_tool(content.encode("utf-8"), file_name)
        return file_name

    @staticmethod
    def fixture_name(metadata: SingleContractMetadata, prop: FromFileProperty, side: str) -> str:
        return f"{metadata.method_name}_{side.lower()}_{prop.file_name}"

    def fixture_directory(self) -> Path:
        return self._class_metadata.test_class_path.parent

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _write_for_ide_and_build_tool(self, content: bytes, file_name: str) -> None:
        target = self.fixture_directory() / file_name
        if target.exists():
            logger.debug("Fixture [%s] already exists, skipping", target)
            return
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Writing file for [%s] for body reading in generated test (for IDE)", target)
            target.write_bytes(content)
            mirror = self._mirror_path(target)
            if mirror.exists():
                return
            mirror.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("Writing file for [%s] for body reading in generated test (build tool)", mirror)
            mirror.write_bytes(content)
        except OSError as exc:
            raise FixtureWriteError(
                detail=f"Cannot write fixture {file_name}: {exc}",
                path=str(target),
            ) from exc

    def _mirror_path(self, target: Path) -> Path:
        config = self._class_metadata.config
        sources = Path(config.generated_test_sources_dir)
        try:
            relative = target.relative_to(sources)
        except ValueError:
            relative = Path(target.name)
        return Path(config.generated_test_resources_dir) / relative


def contract_to_yaml_ready(value: Any) -> Any:
    """Convert a dumped contract into plain YAML-serializable data.

    Body value types become small tagged mappings; ``None`` entries are
    dropped to keep the stored file short.
    """
    if isinstance(value, dict):
        return {
            str(key): contract_to_yaml_ready(item)
            for key, item in value.items()
            if item is not None
        }
    if isinstance(value, (list, tuple)):
        return [contract_to_yaml_ready(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, FromFileProperty):
        return {"file": value.file_name, "byte": value.is_byte}
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        tagged = {"type": type(value).__name__}
        tagged.update(contract_to_yaml_ready(dataclasses.asdict(value)))
        return tagged
    return value
