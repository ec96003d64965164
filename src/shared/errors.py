"""Custom exception classes raised while rendering contract tests."""
from __future__ import annotations

from typing import Any


class CodegenError(Exception):
    """Base code generation error."""

    def __init__(self, detail: str, status_code: int = 500) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class ConfigurationExhaustedError(CodegenError):
    """No fragment accepted the configuration at an exclusive-choice point."""

    def __init__(
        self,
        extension_point: str,
        detail: str | None = None,
    ) -> None:
        self.extension_point = extension_point
        super().__init__(
            detail=detail
            or f"No matching fragment found for extension point [{extension_point}]",
            status_code=500,
        )


class MalformedContractError(CodegenError):
    """The contract cannot be rendered as written (422)."""

    def __init__(
        self,
        detail: str = "Malformed contract",
        path: str | None = None,
        body_snapshot: str | None = None,
    ) -> None:
        self.path = path
        self.body_snapshot = body_snapshot
        super().__init__(detail=detail, status_code=422)


class UnsupportedFeatureError(CodegenError):
    """The feature is recognised but not implemented for the profile (501)."""

    def __init__(self, detail: str = "Unsupported feature") -> None:
        super().__init__(detail=detail, status_code=501)


class FixtureWriteError(CodegenError):
    """Writing a fixture or generated file failed."""

    def __init__(
        self,
        detail: str = "Fixture write failed",
        path: Any = None,
    ) -> None:
        self.path = path
        super().__init__(detail=detail, status_code=500)


class AssemblyError(CodegenError):
    """Unbalanced block or indentation instructions."""

    def __init__(self, detail: str = "Unbalanced assembly instructions") -> None:
        super().__init__(detail=detail, status_code=500)
