"""Shared test fixtures for the contract codegen test suite."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from src.contract_codegen.fragments.catalogue import default_library
from src.contract_codegen.fragments.registry import RenderContext, build_context
from src.contract_codegen.metadata import ContractFileMetadata, GeneratedClassMetadata
from src.contract_codegen.services.body_reader import BodyReader
from src.contract_codegen.services.template_processor import TemplateProcessor
from src.contract_codegen.text_assembler import Emitter, TextAssembler
from src.shared.config import RenderConfig
from src.shared.models.contracts import (
    Contract,
    Header,
    Headers,
    Input,
    OutputMessage,
    Request,
    Response,
    Url,
)
from src.shared.models.render import TestFramework, TestMode
from src.shared.models.values import ExecutionProperty


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _clean_codegen_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment variables out of config defaults."""
    for name in list(os.environ):
        if name.startswith("CODEGEN_") or name == "LOG_LEVEL":
            monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Configuration and metadata factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., RenderConfig]:
    """Return a factory for render configs writing below *tmp_path*."""

    def factory(**overrides) -> RenderConfig:
        values = {
            "test_framework": TestFramework.JUNIT5,
            "test_mode": TestMode.MOCKMVC,
            "generated_test_sources_dir": str(tmp_path / "sources"),
            "generated_test_resources_dir": str(tmp_path / "resources"),
        }
        values.update(overrides)
        return RenderConfig(**values)

    return factory


@pytest.fixture
def make_class_metadata() -> Callable[..., GeneratedClassMetadata]:
    """Return a factory wrapping contracts into class metadata.

    Each contract becomes its own file named ``<file_name>`` (or
    ``<file_name>_<n>`` when several are given).
    """

    def factory(
        config: RenderConfig,
        *contracts: Contract,
        file_name: str = "foo.groovy",
        ignored: bool = False,
        order: int | None = None,
        package: str = "test",
        class_name: str = "FooBar",
        included_directory_relative_path: str = "",
    ) -> GeneratedClassMetadata:
        files = []
        for index, contract in enumerate(contracts):
            name = file_name if len(contracts) == 1 else f"{Path(file_name).stem}_{index}.groovy"
            files.append(ContractFileMetadata(Path(name), [contract], ignored=ignored, order=order))
        return GeneratedClassMetadata(
            config=config,
            files=files,
            included_directory_relative_path=included_directory_relative_path,
            package=package,
            class_name=class_name,
        )

    return factory


# ---------------------------------------------------------------------------
# Sample contracts
# ---------------------------------------------------------------------------


@pytest.fixture
def http_contract() -> Contract:
    """PUT with a header and a JSON body, answering 200 with a JSON body."""
    return Contract(
        request=Request(
            method="PUT",
            url=Url(value="url"),
            headers=Headers(entries=[Header(name="foo", value="bar")]),
            body={"foo1": "bar1"},
        ),
        response=Response(
            status=200,
            headers=Headers(entries=[Header(name="foo2", value="bar2")]),
            body={"foo3": "bar3"},
        ),
    )


@pytest.fixture
def messaging_contract() -> Contract:
    """Triggered by a method call, expecting a JSON message on ``jms:output``."""
    return Contract(
        name="messaging",
        input=Input(triggered_by=ExecutionProperty("hashCode()")),
        output_message=OutputMessage(
            sent_to="jms:output",
            headers=Headers(entries=[Header(name="BOOK-NAME", value="foo")]),
            body={"bookName": "foo"},
        ),
    )


# ---------------------------------------------------------------------------
# Fragment rendering
# ---------------------------------------------------------------------------


@pytest.fixture
def make_context(make_config, make_class_metadata) -> Callable[..., RenderContext]:
    """Return a factory for a render context bound to a single contract."""

    def factory(contract: Contract, **config_overrides) -> RenderContext:
        config = make_config(**config_overrides)
        class_metadata = make_class_metadata(config, contract)
        ctx = build_context(
            config,
            class_metadata,
            default_library().catalogue(config.profile),
            BodyReader(class_metadata),
            TemplateProcessor(),
        )
        return ctx.for_contract(class_metadata.contracts()[0])

    return factory


@pytest.fixture
def render_fragment() -> Callable[..., str]:
    """Return a helper rendering one fragment on a fresh emitter."""

    def render(fragment, ctx: RenderContext) -> str:
        out = Emitter()
        fragment.render(ctx, out)
        syntax = ctx.syntax
        return TextAssembler("    ", syntax.line_ending, syntax.label_prefix).assemble(out)

    return render
