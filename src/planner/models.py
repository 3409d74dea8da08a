"""Component tree and generation plan models."""

from enum import Enum
from typing import Any, Iterator
from pydantic import BaseModel, ConfigDict, Field

from core.errors import PlanningError


class ComponentKind(str, Enum):
    """Closed set of design-unit kinds."""

    LAYOUT = "layout"
    FORM = "form"
    NAVIGATION = "navigation"
    FEEDBACK = "feedback"
    DATA = "data"
    OVERLAY = "overlay"
    MEDIA = "media"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: Any) -> "ComponentKind | None":
        """Map a raw kind/type string onto the closed set (None stays None)."""
        if value is None or value == "":
            return None
        if isinstance(value, cls):
            return value
        raw = str(value).strip().lower()
        try:
            return cls(raw)
        except ValueError:
            return KIND_ALIASES.get(raw, cls.OTHER)


KIND_ALIASES = {
    "display": ComponentKind.DATA,
    "list": ComponentKind.DATA,
    "table": ComponentKind.DATA,
    "nav": ComponentKind.NAVIGATION,
    "modal": ComponentKind.OVERLAY,
    "dialog": ComponentKind.OVERLAY,
    "interactive": ComponentKind.OTHER,
}


class ActionParameter(BaseModel):
    """Server action parameter."""

    name: str
    type: str
    required: bool = True


class ServerAction(BaseModel):
    """Server-side action derived for a unit."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: tuple[ActionParameter, ...] = ()
    returns: str = "void"
    method: str = "POST"


class ClientAction(BaseModel):
    """Client handler wired to a server action."""

    model_config = ConfigDict(frozen=True)

    name: str
    server_action: str
    parameters: tuple[str, ...] = ()


class RouteDefinition(BaseModel):
    """Route derived for a unit."""

    model_config = ConfigDict(frozen=True)

    path: str
    kind: str = Field(default="page", pattern="^(page|dynamic)$")
    page: str
    title: str = ""


class ComponentNode(BaseModel):
    """A design unit and its descendants."""

    name: str = Field(..., min_length=1)
    description: str = ""
    kind: ComponentKind | None = None
    level: int = Field(default=0, ge=0)
    tags: list[str] = Field(default_factory=list)
    children: dict[str, "ComponentNode"] = Field(default_factory=dict)

    # Populated by the planner, empty until planning runs
    derived_actions: list[ServerAction] = Field(default_factory=list)
    derived_routes: list[RouteDefinition] = Field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def add_child(self, child: "ComponentNode") -> "ComponentNode":
        """Attach a child, fixing its level relative to this node."""
        if child.name in self.children:
            raise PlanningError(
                f"Duplicate child '{child.name}' under '{self.name}'",
                details={"parent": self.name, "child": child.name},
            )
        self.children[child.name] = child
        _relevel(child, self.level + 1)
        return child

    def iter_nodes(self) -> Iterator["ComponentNode"]:
        """Pre-order walk including this node."""
        yield self
        for child in self.children.values():
            yield from child.iter_nodes()

    def count(self) -> int:
        """Number of nodes in this subtree, including this node."""
        return sum(1 for _ in self.iter_nodes())

    def validate_levels(self) -> None:
        """Check level == parent.level + 1 throughout the subtree."""
        for node in self.iter_nodes():
            for child in node.children.values():
                if child.level != node.level + 1:
                    raise PlanningError(
                        f"Node '{child.name}' has level {child.level}, expected {node.level + 1}",
                        details={"node": child.name, "parent": node.name},
                    )


def _relevel(node: ComponentNode, level: int) -> None:
    node.level = level
    for child in node.children.values():
        _relevel(child, level + 1)


ComponentNode.model_rebuild()


class GenerationQueueItem(BaseModel):
    """One planned build unit. Immutable once planned."""

    model_config = ConfigDict(frozen=True)

    component: ComponentNode
    level: int = Field(ge=1)
    group: str
    parents: tuple[str, ...] = ()
    server_actions: tuple[ServerAction, ...] = ()
    routes: tuple[RouteDefinition, ...] = ()
    client_actions: tuple[ClientAction, ...] = ()
    self_documentation: str = ""

    @property
    def name(self) -> str:
        return self.component.name

    @property
    def path_name(self) -> str:
        """Dotted path below the output group (`Login.Header`), naming the unit within it."""
        return ".".join((*self.parents[2:], self.component.name))

    def context(self) -> dict[str, Any]:
        """Build metadata handed to the backend alongside the unit."""
        return {
            "level": self.level,
            "group": self.group,
            "parents": list(self.parents),
            "server_actions": [a.model_dump() for a in self.server_actions],
            "routes": [r.model_dump() for r in self.routes],
            "client_actions": [a.model_dump() for a in self.client_actions],
        }


class UnitSpec(BaseModel):
    """What the invoker generates: one unit with its group identity."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    kind: str | None = None
    group: str = ""
    group_description: str = ""

    @classmethod
    def from_record(cls, record: dict[str, Any], group: dict[str, Any]) -> "UnitSpec":
        """Build from a flattened component record and its group."""
        kind = record.get("kind", record.get("type"))
        return cls(
            name=str(record.get("name") or "Component"),
            description=str(record.get("description") or ""),
            kind=str(kind) if kind else None,
            group=str(group.get("name") or ""),
            group_description=str(group.get("description") or ""),
        )

    @classmethod
    def from_queue_item(cls, item: GenerationQueueItem) -> "UnitSpec":
        node = item.component
        return cls(
            name=item.path_name,
            description=node.description,
            kind=node.kind.value if node.kind else None,
            group=item.group,
        )


__all__ = [
    "ComponentKind",
    "ActionParameter",
    "ServerAction",
    "ClientAction",
    "RouteDefinition",
    "ComponentNode",
    "GenerationQueueItem",
    "UnitSpec",
]
