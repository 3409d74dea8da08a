"""
Type resolution for preview props.

A lightweight textual scan of TypeScript declarations. It is not a type
checker: anything it cannot read is simply absent from the table, and the
synthesizer treats absent as unresolvable.
"""

import re
from pathlib import Path
from typing import Iterable, Protocol, runtime_checkable

from core.logging_config import get_logger

logger = get_logger(__name__)

# Relative to the project root, first existing file wins
TYPES_CANDIDATES = (
    Path(".forge") / "02-types.ts",
    Path(".forge") / "types.ts",
    Path("context") / "types.ts",
)

INTERFACE_HEAD = re.compile(r"\binterface\s+(\w+)\s*(?:<[^>{]*>)?\s*(?:extends\s+[^{]+)?\{")
TYPE_ALIAS_HEAD = re.compile(r"\btype\s+(\w+)\s*(?:<[^>=]*>)?\s*=\s*\{")
PROPS_HEAD = re.compile(r"\binterface\s+(\w+)Props\s*(?:<[^>{]*>)?\s*(?:extends\s+[^{]+)?\{")
FIELD_LINE = re.compile(r"^(?:readonly\s+)?(\w+)\??\s*:\s*(.+?)\s*[;,]?$")

Shape = dict[str, str]


@runtime_checkable
class TypeResolver(Protocol):
    """Lookup table of named shapes to their `{field: type_text}` map."""

    def resolve(self, name: str) -> Shape | None: ...


def _body_after(source: str, open_brace: int) -> str | None:
    """Text between the brace at `open_brace` and its matching close."""
    depth = 0
    for i in range(open_brace, len(source)):
        ch = source[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return source[open_brace + 1 : i]
    return None


def parse_fields(body: str) -> Shape:
    """Top-level `name: type;` members of a declaration body."""
    fields: Shape = {}
    depth = 0
    for raw in body.split("\n"):
        line = raw.strip()
        if depth == 0 and line and not line.startswith(("//", "/*", "*")):
            match = FIELD_LINE.match(line)
            if match:
                fields[match.group(1)] = match.group(2).strip()
        depth += raw.count("{") - raw.count("}")
        depth = max(depth, 0)
    return fields


def parse_declarations(source: str) -> dict[str, Shape]:
    """All `interface X {...}` and `type X = {...}` shapes in a source text."""
    shapes: dict[str, Shape] = {}
    for pattern in (INTERFACE_HEAD, TYPE_ALIAS_HEAD):
        for match in pattern.finditer(source):
            body = _body_after(source, match.end() - 1)
            if body is not None:
                shapes.setdefault(match.group(1), parse_fields(body))
    return shapes


class TextTypeResolver:
    """TypeResolver backed by declarations scanned from source text."""

    def __init__(self, shapes: dict[str, Shape] | None = None):
        self.shapes: dict[str, Shape] = dict(shapes or {})

    @classmethod
    def from_sources(cls, sources: Iterable[str]) -> "TextTypeResolver":
        resolver = cls()
        for source in sources:
            for name, shape in parse_declarations(source).items():
                resolver.shapes.setdefault(name, shape)
        return resolver

    def resolve(self, name: str) -> Shape | None:
        return self.shapes.get(name)

    def with_source(self, source: str) -> "TextTypeResolver":
        """Copy extended by the declarations of one more source (existing names win)."""
        shapes = parse_declarations(source)
        shapes.update(self.shapes)
        return TextTypeResolver(shapes)

    def __len__(self) -> int:
        return len(self.shapes)


def extract_props_contract(source: str, unit_name: str | None = None) -> tuple[str, Shape] | None:
    """
    Find a unit's `interface <Name>Props { ... }` declaration.

    Prefers the interface named after the unit; otherwise the first
    Props interface in the file.

    Returns:
        (interface name, fields) or None when the file declares none
    """
    found: list[tuple[str, Shape]] = []
    for match in PROPS_HEAD.finditer(source):
        body = _body_after(source, match.end() - 1)
        if body is None:
            continue
        found.append((f"{match.group(1)}Props", parse_fields(body)))

    if not found:
        return None
    if unit_name:
        for name, fields in found:
            if name == f"{unit_name}Props":
                return name, fields
    return found[0]


def find_types_source(project_root: str | Path) -> str:
    """Contents of the first existing types file, or '' when none exists."""
    root = Path(project_root)
    for candidate in TYPES_CANDIDATES:
        path = root / candidate
        if path.is_file():
            logger.debug("types_source_found", path=str(path))
            return path.read_text(encoding="utf-8")
    return ""


__all__ = [
    "TYPES_CANDIDATES",
    "TypeResolver",
    "TextTypeResolver",
    "parse_fields",
    "parse_declarations",
    "extract_props_contract",
    "find_types_source",
]
