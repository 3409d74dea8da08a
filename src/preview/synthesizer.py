"""
Sample Synthesizer
Placeholder values for preview props, derived from textual type contracts.
Unresolvable types yield None and the caller omits them.
"""

import re
from datetime import datetime, timezone
from typing import Any, Callable

from .resolver import Shape, TypeResolver

MAX_DEPTH = 2
SAMPLE_STRING = "Sample"
SAMPLE_NUMBER = 1

ARRAY_GENERIC = re.compile(r"^(?:Readonly)?Array<(.+)>$")
STRING_LITERAL = re.compile(r"""^(['"])(.*?)\1""")
NULLISH = ("null", "undefined")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def split_union(type_text: str) -> list[str]:
    """Top-level `|` members, ignoring pipes nested in brackets."""
    members, depth, current = [], 0, []
    for ch in type_text:
        if ch in "<({[":
            depth += 1
        elif ch in ">)}]":
            depth -= 1
        if ch == "|" and depth == 0:
            members.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    members.append("".join(current).strip())
    return [m for m in members if m]


def synthesize(
    type_text: str,
    resolver: TypeResolver,
    depth: int = 0,
    clock: Callable[[], str] = _utc_now,
) -> Any:
    """
    Produce a sample value for a type, or None when it cannot be resolved.

    Recursion stops beyond depth 2, so self-referential shapes terminate
    with at most three levels of nesting.
    """
    if depth > MAX_DEPTH:
        return None

    literal = STRING_LITERAL.match(type_text.strip())
    if literal:
        return literal.group(2)

    t = re.sub(r"\s+", "", type_text)
    if not t:
        return None

    members = [m for m in split_union(t) if m not in NULLISH]
    if len(members) > 1 or (members and members[0] != t):
        return synthesize(members[0], resolver, depth, clock) if members else None

    if t.endswith("[]"):
        return _array(t[:-2], resolver, depth, clock)
    generic = ARRAY_GENERIC.match(t)
    if generic:
        return _array(generic.group(1), resolver, depth, clock)

    if re.match(r"string\b", t):
        return SAMPLE_STRING
    if re.match(r"number\b", t):
        return SAMPLE_NUMBER
    if re.match(r"boolean\b", t):
        return True
    if re.match(r"Date\b", t):
        return clock()

    shape = resolver.resolve(t)
    if shape is not None:
        return synthesize_shape(shape, resolver, depth + 1, clock)

    return None


def _array(inner: str, resolver: TypeResolver, depth: int, clock: Callable[[], str]) -> list[Any] | None:
    value = synthesize(inner, resolver, depth + 1, clock)
    return None if value is None else [value]


def synthesize_shape(
    shape: Shape,
    resolver: TypeResolver,
    depth: int = 0,
    clock: Callable[[], str] = _utc_now,
) -> dict[str, Any]:
    """Object of every field that resolves; unresolved fields are left out."""
    obj = {}
    for field, field_type in shape.items():
        value = synthesize(field_type, resolver, depth, clock)
        if value is not None:
            obj[field] = value
    return obj


__all__ = ["MAX_DEPTH", "SAMPLE_STRING", "synthesize", "synthesize_shape", "split_union"]
