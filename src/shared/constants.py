"""Shared constants used across the code generator."""
from __future__ import annotations

# Application version
VERSION: str = "1.0.0"

# Service name used in structured log entries
CODEGEN_SERVICE_NAME: str = "contract-codegen"
CODEGEN_LOGGER_NAMESPACE: str = "src.contract_codegen"

# Text assembly
DEFAULT_SPACER: str = "    "
BLOCK_OPEN: str = "{"
BLOCK_CLOSE: str = "}"

# Generated test naming
TEST_METHOD_PREFIX: str = "validate_"
JAVA_TEST_SUFFIX: str = "Test"
SPOCK_TEST_SUFFIX: str = "Spec"
DEFAULT_TEST_PACKAGE: str = "org.springframework.cloud.contract.verifier.tests"
DEFAULT_CLASS_NAME: str = "ContractVerifier"

# Fixture directions
REQUEST_DIRECTION: str = "request"
RESPONSE_DIRECTION: str = "response"

# Variable names used in generated code
PARSED_JSON_VAR: str = "parsedJson"
PARSED_XML_VAR: str = "parsedXml"
RESPONSE_BODY_VAR: str = "responseBody"

# Characters that cannot appear in package or method names
ILLEGAL_PACKAGE_CHARS: list[str] = ["-", " ", ".", ":", "/", "\\", "@", "#", "+"]
JAVA_KEYWORDS: list[str] = [
    "abstract", "assert", "boolean", "break", "byte", "case", "catch", "char",
    "class", "const", "continue", "default", "do", "double", "else", "enum",
    "extends", "final", "finally", "float", "for", "goto", "if", "implements",
    "import", "instanceof", "int", "interface", "long", "native", "new",
    "package", "private", "protected", "public", "return", "short", "static",
    "strictfp", "super", "switch", "synchronized", "this", "throw", "throws",
    "transient", "try", "void", "volatile", "while",
]
