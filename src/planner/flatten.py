"""Flatten a component specification into named groups of leaf units."""

from typing import Any

from core.errors import PlanningError
from core.logging_config import get_logger
from .parser import LEGACY_GROUPS_KEY, find_root_key, is_legacy, read_children, read_kind

logger = get_logger(__name__)


def flatten_to_groups(document: Any) -> list[dict[str, Any]]:
    """
    Produce `{name, description, components}` groups from a specification.

    Legacy flat documents are returned as-is. For hierarchical documents
    every first-level child of the root becomes a group; its leaf
    descendants that declare a kind become components named by their
    dot-joined path below the group (`Card.Header`). Groups without any
    components are dropped, and a root without children yields `[]`.

    Raises:
        PlanningError: If the document is not an object or has no root
    """
    if not isinstance(document, dict):
        raise PlanningError(
            "Specification must be a JSON object",
            details={"type": type(document).__name__},
        )

    if is_legacy(document):
        logger.debug("legacy_groups_passthrough", groups=len(document[LEGACY_GROUPS_KEY]))
        return document[LEGACY_GROUPS_KEY]

    root_key = find_root_key(document)
    if root_key is None:
        raise PlanningError("empty specification")

    root = document[root_key]
    if not isinstance(root, dict):
        raise PlanningError(
            f"Root '{root_key}' must be an object",
            details={"root": root_key},
        )

    groups: list[dict[str, Any]] = []
    for group_name, group_data in read_children(root).items():
        if not isinstance(group_data, dict):
            group_data = {"description": str(group_data)}

        components: list[dict[str, Any]] = []
        _collect_leaves(group_data, components, group_name, path="")

        if components:
            groups.append(
                {
                    "name": group_name,
                    "description": group_data.get("description") or f"{group_name} components",
                    "components": components,
                }
            )
        else:
            logger.debug("empty_group_dropped", group=group_name)

    logger.info("spec_flattened", root=root_key, groups=len(groups))
    return groups


def _collect_leaves(node: dict[str, Any], components: list[dict[str, Any]], group: str, path: str) -> None:
    children = read_children(node)
    if not children:
        kind = read_kind(node)
        if kind is not None:
            components.append(_component_record(node, path or group, group, kind.value))
        return

    for child_name, child_data in children.items():
        if not isinstance(child_data, dict):
            child_data = {"description": str(child_data)}
        child_path = f"{path}.{child_name}" if path else child_name
        _collect_leaves(child_data, components, group, child_path)


def _component_record(node: dict[str, Any], name: str, group: str, kind: str) -> dict[str, Any]:
    description = node.get("description") or "Component"
    return {
        "name": name,
        "description": description,
        "kind": kind,
        "priority": "medium",
        "dependencies": [],
        "tags": [group.lower()],
        "acceptanceCriteria": [],
        "context": node.get("description") or "",
    }


__all__ = ["flatten_to_groups"]
