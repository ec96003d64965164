"""JSON-path evaluation over in-memory body trees.

Supports the subset of JSON-path used by contract body matchers:

* root ``$``, dot members ``.name`` and bracket members ``['name']`` /
  ``["name"]`` (several names separated by commas select a union);
* array indexes ``[0]`` (negative indexes count from the end), index
  unions ``[0,2]`` and slices ``[1:3]`` / ``[::2]``;
* wildcards ``.*`` / ``[*]``;
* recursive descent ``..name`` / ``..[*]``;
* simple filters ``[?(@.field)]`` and ``[?(@.field <op> literal)]`` with
  ``==``, ``!=``, ``<``, ``<=``, ``>``, ``>=``.

Selections are returned as :class:`Location` objects that remember the
parent container, so the same machinery can read and delete nodes.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

_FILTER = re.compile(
    r"^\?\(\s*@((?:\.[^.\s=!<>\[\]()]+|\[\s*'[^']*'\s*\]|\[\s*\"[^\"]*\"\s*\])+)"
    r"\s*(?:(==|!=|<=|>=|<|>)\s*(.+?))?\s*\)$"
)
_FILTER_STEP = re.compile(r"\.([^.\[\]]+)|\[\s*'([^']*)'\s*\]|\[\s*\"([^\"]*)\"\s*\]")
_INDEX = re.compile(r"^-?\d+$")
_SLICE = re.compile(r"^(-?\d*):(-?\d*)(?::(-?\d*))?$")


class JsonPathSyntaxError(ValueError):
    """The path cannot be parsed."""


class JsonPathNotFoundError(KeyError):
    """A definite path does not resolve to a node."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(path)


# ---------------------------------------------------------------------------
# Parsed representation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Segment:
    """One selector of a parsed path.

    ``kind`` is one of ``names``, ``indexes``, ``wildcard``, ``slice`` or
    ``filter``.  ``descent`` marks a selector preceded by ``..``.
    """
    kind: str
    values: tuple = ()
    descent: bool = False
    raw: str = ""

    def render(self) -> str:
        prefix = ".." if self.descent else ""
        return f"{prefix}[{self.raw}]"


@dataclass(frozen=True)
class Location:
    """A selected node together with the way to reach it."""
    parent: Any
    key: Any
    value: Any
    steps: tuple

    @property
    def is_root(self) -> bool:
        return self.parent is None


def parse(path: str) -> list[Segment]:
    """Parse *path* into selectors.

    Raises
    ------
    JsonPathSyntaxError
        When the path is empty or malformed.
    """
    text = path.strip()
    if not text:
        raise JsonPathSyntaxError("Empty JSON path")
    if not text.startswith("$"):
        text = "$." + text if not text.startswith("[") else "$" + text
    segments: list[Segment] = []
    position = 1
    length = len(text)
    while position < length:
        descent = False
        char = text[position]
        if text.startswith("..", position):
            descent = True
            position += 2
            if position < length and text[position] == "[":
                segment, position = _parse_bracket(text, position, descent)
            else:
                segment, position = _parse_member(text, position, descent)
        elif char == ".":
            position += 1
            segment, position = _parse_member(text, position, descent)
        elif char == "[":
            segment, position = _parse_bracket(text, position, descent)
        else:
            raise JsonPathSyntaxError(
                f"Unexpected character {char!r} at position {position} in {path}"
            )
        segments.append(segment)
    return segments


def _parse_member(text: str, position: int, descent: bool) -> tuple[Segment, int]:
    end = position
    while end < len(text) and text[end] not in ".[":
        end += 1
    name = text[position:end]
    if not name:
        raise JsonPathSyntaxError(f"Missing member name at position {position} in {text}")
    if name == "*":
        return Segment("wildcard", descent=descent, raw="*"), end
    return Segment("names", (name,), descent, _quote(name)), end


def _parse_bracket(text: str, position: int, descent: bool) -> tuple[Segment, int]:
    end = _closing_bracket(text, position)
    content = text[position + 1:end].strip()
    after = end + 1
    if content == "*":
        return Segment("wildcard", descent=descent, raw="*"), after
    if content.startswith("?"):
        return Segment("filter", (_parse_filter(content),), descent, content), after
    if content.startswith(("'", '"')):
        names = tuple(_split_quoted(content))
        return Segment("names", names, descent, ",".join(_quote(name) for name in names)), after
    slice_match = _SLICE.match(content)
    if slice_match:
        bounds = tuple(int(part) if part else None for part in slice_match.groups())
        return Segment("slice", bounds, descent, content), after
    parts = [part.strip() for part in content.split(",")]
    if parts and all(_INDEX.match(part) for part in parts):
        return Segment("indexes", tuple(int(part) for part in parts), descent, ",".join(parts)), after
    raise JsonPathSyntaxError(f"Unsupported selector [{content}] in {text}")


def _closing_bracket(text: str, position: int) -> int:
    quote: str | None = None
    depth = 0
    for index in range(position, len(text)):
        char = text[index]
        if quote:
            if char == quote and text[index - 1] != "\\":
                quote = None
            continue
        if char in "'\"":
            quote = char
        elif char in "[(":
            depth += 1
        elif char in "])":
            depth -= 1
            if depth == 0 and char == "]":
                return index
    raise JsonPathSyntaxError(f"Unclosed bracket at position {position} in {text}")


def _quote(name: str) -> str:
    escaped = name.replace("'", "\\'")
    return f"'{escaped}'"


def _split_quoted(content: str) -> list[str]:
    names: list[str] = []
    for match in re.finditer(r"'((?:[^'\\]|\\.)*)'|\"((?:[^\"\\]|\\.)*)\"", content):
        raw = match.group(1) if match.group(1) is not None else match.group(2)
        names.append(raw.replace("\\'", "'").replace('\\"', '"'))
    if not names:
        raise JsonPathSyntaxError(f"Invalid member list [{content}]")
    return names


def _parse_filter(content: str) -> tuple[tuple[str, ...], str | None, Any]:
    match = _FILTER.match(content)
    if match is None:
        raise JsonPathSyntaxError(f"Unsupported filter expression [{content}]")
    steps = tuple(
        next(group for group in step.groups() if group is not None)
        for step in _FILTER_STEP.finditer(match.group(1))
    )
    operator = match.group(2)
    literal = _parse_literal(match.group(3)) if operator else None
    return steps, operator, literal


def _parse_literal(raw: str) -> Any:
    raw = raw.strip()
    if len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in "'\"":
        return raw[1:-1]
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise JsonPathSyntaxError(f"Invalid filter literal {raw}") from exc


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def is_definite(path: str) -> bool:
    """Return ``True`` when *path* can select at most one node."""
    return all(
        not segment.descent and segment.kind in ("names", "indexes")
        and len(segment.values) == 1
        for segment in parse(path)
    )


def parent_path(path: str) -> str | None:
    """Return *path* without its last selector, or ``None`` for the root."""
    segments = parse(path)
    if not segments:
        return None
    return "$" + "".join(segment.render() for segment in segments[:-1])


def is_array_related(path: str) -> bool:
    """Return ``True`` for paths addressing every element of an array."""
    return "[*]" in path or ".." in path


def find(body: Any, path: str) -> list[Location]:
    """Return every location *path* selects in *body*, in document order."""
    nodes = [Location(parent=None, key=None, value=body, steps=())]
    for segment in parse(path):
        selected: list[Location] = []
        for node in nodes:
            candidates = _descendants(node) if segment.descent else [node]
            for candidate in candidates:
                selected.extend(_select(candidate, segment))
        nodes = _unique(selected)
    return nodes


def exists(body: Any, path: str) -> bool:
    return bool(find(body, path))


def read(body: Any, path: str) -> Any:
    """Read *path* from *body*.

    Definite paths return the single value; indefinite paths return the
    list of selected values (possibly empty).

    Raises
    ------
    JsonPathNotFoundError
        When a definite path does not exist.
    """
    locations = find(body, path)
    if is_definite(path):
        if not locations:
            raise JsonPathNotFoundError(path)
        return locations[0].value
    return [location.value for location in locations]


def delete(body: Any, path: str) -> int:
    """Remove every node selected by *path* from *body* in place.

    The root cannot be removed.  Returns the number of removed nodes.
    """
    locations = [location for location in find(body, path) if not location.is_root]
    removed = 0
    # Remove list items from the highest index down so indexes stay valid
    for location in sorted(
        locations,
        key=lambda loc: loc.key if isinstance(loc.key, int) else -1,
        reverse=True,
    ):
        parent = location.parent
        if isinstance(parent, dict) and location.key in parent:
            del parent[location.key]
            removed += 1
        elif isinstance(parent, list) and location.key < len(parent):
            if parent[location.key] is location.value:
                del parent[location.key]
                removed += 1
    return removed


def format_steps(steps: tuple) -> str:
    """Render concrete steps as a bracket-notation path, e.g. ``$['a'][0]``."""
    parts = ["$"]
    for step in steps:
        if isinstance(step, int):
            parts.append(f"[{step}]")
        else:
            escaped = str(step).replace("'", "\\'")
            parts.append(f"['{escaped}']")
    return "".join(parts)


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _children(node: Location) -> list[Location]:
    value = node.value
    if isinstance(value, dict):
        return [
            Location(value, key, item, node.steps + (key,))
            for key, item in value.items()
        ]
    if isinstance(value, list):
        return [
            Location(value, index, item, node.steps + (index,))
            for index, item in enumerate(value)
        ]
    return []


def _descendants(node: Location) -> list[Location]:
    result = [node]
    for child in _children(node):
        result.extend(_descendants(child))
    return result


def _select(node: Location, segment: Segment) -> list[Location]:
    value = node.value
    if segment.kind == "wildcard":
        return _children(node)
    if segment.kind == "names":
        if not isinstance(value, dict):
            return []
        return [
            Location(value, name, value[name], node.steps + (name,))
            for name in segment.values
            if name in value
        ]
    if not isinstance(value, list):
        return []
    if segment.kind == "indexes":
        selected = []
        for index in segment.values:
            actual = index + len(value) if index < 0 else index
            if 0 <= actual < len(value):
                selected.append(Location(value, actual, value[actual], node.steps + (actual,)))
        return selected
    if segment.kind == "slice":
        start, stop, step = segment.values
        return [
            Location(value, index, value[index], node.steps + (index,))
            for index in range(len(value))[slice(start, stop, step)]
        ]
    if segment.kind == "filter":
        return [child for child in _children(node) if _matches_filter(child.value, segment.values[0])]
    return []


def _matches_filter(item: Any, expression: tuple) -> bool:
    steps, operator, literal = expression
    current = item
    for step in steps:
        if not isinstance(current, dict) or step not in current:
            return False
        current = current[step]
    if operator is None:
        return True
    try:
        if operator == "==":
            return current == literal
        if operator == "!=":
            return current != literal
        if operator == "<":
            return current < literal
        if operator == "<=":
            return current <= literal
        if operator == ">":
            return current > literal
        return current >= literal
    except TypeError:
        return False


def _unique(locations: list[Location]) -> list[Location]:
    seen: set[tuple] = set()
    result = []
    for location in locations:
        if location.steps in seen:
            continue
        seen.add(location.steps)
        result.append(location)
    return result
