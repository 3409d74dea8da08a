"""Prompt assembly for local backends."""

from typing import Any

from core.json import safe_json_dumps
from planner.models import UnitSpec

SYSTEM_PROMPT = (
    "You generate production-ready React components in TypeScript. "
    "Export the component by name and as the default export, declare its "
    "props as an `interface <Name>Props`, and reply with a single fenced "
    "tsx code block."
)


def build_prompt(unit: UnitSpec, context: dict[str, Any]) -> str:
    """User prompt for one unit."""
    lines = [f"Component: {unit.name}"]
    if unit.group:
        lines.append(f"Group: {unit.group}")
    if unit.kind:
        lines.append(f"Kind: {unit.kind}")
    lines.append(f"Description: {unit.description or unit.name}")
    if unit.group_description:
        lines.append(f"Group purpose: {unit.group_description}")
    if context:
        lines += ["", "Build context:", safe_json_dumps(context, indent=2)]
    return "\n".join(lines)
