"""Shared naming utility functions."""
from __future__ import annotations

import re


def camel_case(name: str) -> str:
    """Return *name* with its first character lower-cased."""
    if not name:
        return name
    return name[0].lower() + name[1:]


def capitalize(name: str) -> str:
    """Return *name* with its first character upper-cased."""
    if not name:
        return name
    return name[0].upper() + name[1:]


def before_last(value: str, separator: str) -> str:
    """Return the part of *value* before the last *separator*, or ``""``."""
    if separator in value:
        return value[: value.rindex(separator)]
    return ""


def after_last(value: str, separator: str) -> str:
    """Return the part of *value* after the last *separator*, or *value*."""
    if separator in value:
        return value[value.rindex(separator) + len(separator):]
    return value


def after_last_dot(value: str) -> str:
    return after_last(value, ".")


def to_last_dot(value: str) -> str:
    """Strip everything from the last dot on (a file extension)."""
    if "." in value:
        return value[: value.rindex(".")]
    return value


def convert_illegal_package_chars(name: str) -> str:
    """Replace characters that are not allowed in a package segment."""
    return re.sub(r"[_\- .+]", "_", name)


def convert_illegal_method_name_chars(name: str) -> str:
    """Replace characters that are not allowed in a method identifier."""
    result = re.sub(r"^[^a-zA-Z_$0-9]", "_", name)
    return re.sub(r"[^a-zA-Z_$0-9]", "_", result)


def directory_to_package(directory: str) -> str:
    """Convert a relative directory path to a dotted package name.

    Dots inside directory names become underscores and segments starting
    with a digit get a leading underscore.
    """
    result = directory.replace(".", "_").replace("\\", "/").strip("/")
    result = result.replace("/", ".")
    result = re.sub(r"\.([0-9])", r"._\1", result)
    return re.sub(r"^([0-9].*)", r"_\1", result)


def package_to_directory(package_name: str) -> str:
    return package_name.replace(".", "/")
