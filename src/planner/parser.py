"""Specification Parser - JSON document to ComponentNode tree."""

from typing import Any

from core.errors import PlanningError
from core.json import extract_json, validate_json_depth, JSONParseError
from core.logging_config import get_logger
from .models import ComponentKind, ComponentNode

logger = get_logger(__name__)

# Sibling key carried by hierarchical documents, never a component
METADATA_KEY = "metadata"
LEGACY_GROUPS_KEY = "groups"
LEGACY_ROOT_NAME = "App"


def load_document(text: str) -> dict[str, Any]:
    """
    Parse a specification document from raw text.

    Accepts plain JSON, JSON wrapped in markdown fences, and JSON with
    repairable syntax errors (trailing commas, single quotes).

    Raises:
        PlanningError: If the text holds no JSON object or nests too deeply
    """
    try:
        document = extract_json(text, repair=True)
        validate_json_depth(document)
        return document
    except JSONParseError as e:
        logger.error("spec_parse_failed", error=str(e))
        raise PlanningError(f"Invalid specification: {e}") from e


def is_legacy(document: dict[str, Any]) -> bool:
    """True for the flat `{groups: [...]}` shape."""
    return isinstance(document.get(LEGACY_GROUPS_KEY), list)


def find_root_key(document: dict[str, Any]) -> str | None:
    """First key that is not the metadata sibling."""
    for key in document:
        if key != METADATA_KEY:
            return key
    return None


def read_kind(data: dict[str, Any]) -> ComponentKind | None:
    """Kind from `kind`, falling back to the older `type` key."""
    return ComponentKind.coerce(data.get("kind", data.get("type")))


def read_children(data: dict[str, Any]) -> dict[str, Any]:
    children = data.get("children")
    if children is None:
        return {}
    if not isinstance(children, dict):
        raise PlanningError(
            "children must be an object keyed by component name",
            details={"type": type(children).__name__},
        )
    return children


def build_tree(document: Any) -> ComponentNode:
    """
    Build the canonical tree from either input shape.

    Hierarchical documents use their first non-metadata key as the root.
    Legacy flat documents get a synthetic `App` root whose children are
    the groups, each holding its components.

    Raises:
        PlanningError: If the document is not an object or has no root
    """
    if not isinstance(document, dict):
        raise PlanningError(
            "Specification must be a JSON object",
            details={"type": type(document).__name__},
        )

    if is_legacy(document):
        root = _build_legacy_tree(document[LEGACY_GROUPS_KEY])
    else:
        root_key = find_root_key(document)
        if root_key is None:
            raise PlanningError("empty specification")
        root = _build_node(root_key, document[root_key], level=0)

    root.validate_levels()
    logger.debug("tree_built", root=root.name, nodes=root.count())
    return root


def _build_node(name: str, data: Any, level: int) -> ComponentNode:
    if isinstance(data, str):
        data = {"description": data}
    if not isinstance(data, dict):
        raise PlanningError(
            f"Component '{name}' must be an object",
            details={"component": name, "type": type(data).__name__},
        )

    tags = data.get("tags") or []
    node = ComponentNode(
        name=name,
        description=data.get("description") or f"{name} component",
        kind=read_kind(data),
        level=level,
        tags=[str(t) for t in tags] if isinstance(tags, list) else [],
    )
    for child_name, child_data in read_children(data).items():
        node.add_child(_build_node(child_name, child_data, level + 1))
    return node


def _build_legacy_tree(groups: list[Any]) -> ComponentNode:
    root = ComponentNode(name=LEGACY_ROOT_NAME, description="Application root", level=0)
    for index, group in enumerate(groups):
        if not isinstance(group, dict) or not group.get("name"):
            raise PlanningError(
                "Legacy group entries need a name",
                details={"index": index},
            )
        group_node = ComponentNode(
            name=group["name"],
            description=group.get("description") or f"{group['name']} components",
        )
        root.add_child(group_node)
        for component in group.get("components") or []:
            if not isinstance(component, dict) or not component.get("name"):
                raise PlanningError(
                    f"Component in group '{group['name']}' needs a name",
                    details={"group": group["name"]},
                )
            group_node.add_child(_build_node(component["name"], component, level=2))
    return root


__all__ = [
    "METADATA_KEY",
    "load_document",
    "is_legacy",
    "find_root_key",
    "read_kind",
    "read_children",
    "build_tree",
]
