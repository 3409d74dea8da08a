"""
Keyword classifier deriving server actions, routes and client handlers
for a component from its name, description, tags and kind.

Pure functions over static node data; never consults sibling output.
"""

from dataclasses import dataclass, field

from core.naming import capitalize, kebab_case, pascal_case, pluralize, split_words, strip_suffixes
from .models import (
    ActionParameter,
    ClientAction,
    ComponentKind,
    ComponentNode,
    RouteDefinition,
    ServerAction,
)

ENTITY_SUFFIXES = (
    "Form", "List", "Table", "Grid", "Detail", "View",
    "Card", "Page", "Screen", "Modal", "Dialog",
)
PAGE_SUFFIXES = ("Page", "View", "Screen")

FORM_KEYWORDS = ("form", "editor", "create", "edit")
SIGN_IN_KEYWORDS = ("login", "log in", "signin", "sign in", "logout", "log out", "auth")
SIGN_UP_KEYWORDS = ("signup", "sign up", "register")
PASSWORD_KEYWORDS = ("password", "reset")
DATA_KEYWORDS = ("list", "table", "grid", "feed")
SEARCH_KEYWORDS = ("search",)

ID_PARAM = ActionParameter(name="id", type="string")


@dataclass(frozen=True)
class Classification:
    """Derived build metadata for one node."""

    server_actions: tuple[ServerAction, ...] = ()
    routes: tuple[RouteDefinition, ...] = ()
    client_actions: tuple[ClientAction, ...] = ()
    categories: frozenset[str] = field(default_factory=frozenset)


class _Text:
    """Lower-cased searchable view of a node."""

    def __init__(self, node: ComponentNode):
        parts = [node.name, node.description, *node.tags]
        if node.kind:
            parts.append(node.kind.value)
        words = [w.lower() for part in parts for w in split_words(part)]
        self.tokens = set(words) | {w[:-1] for w in words if w.endswith("s") and len(w) > 3}
        self.spaced = f" {' '.join(words)} "

    def has(self, keywords: tuple[str, ...]) -> bool:
        for keyword in keywords:
            if " " in keyword:
                if f" {keyword} " in self.spaced:
                    return True
            elif keyword in self.tokens:
                return True
        return False


def entity_name(name: str) -> str:
    """'ProductForm' -> 'Product'."""
    return pascal_case(strip_suffixes(pascal_case(name), ENTITY_SUFFIXES))


def categorize(node: ComponentNode) -> frozenset[str]:
    """Keyword categories matched by the node."""
    text = _Text(node)
    found = set()
    if text.has(SIGN_IN_KEYWORDS):
        found.add("auth")
    if text.has(SIGN_UP_KEYWORDS):
        found.add("signup")
    if text.has(PASSWORD_KEYWORDS):
        found.add("password")
    if node.kind == ComponentKind.FORM or text.has(FORM_KEYWORDS):
        found.add("form")
    if node.kind == ComponentKind.DATA or text.has(DATA_KEYWORDS):
        found.add("data")
    if text.has(SEARCH_KEYWORDS):
        found.add("search")
    return frozenset(found)


def derive_server_actions(node: ComponentNode, categories: frozenset[str]) -> list[ServerAction]:
    entity = entity_name(node.name)
    entities = pluralize(entity)
    actions: list[ServerAction] = []
    is_auth = bool(categories & {"auth", "signup", "password"})

    if "auth" in categories:
        actions += [
            ServerAction(
                name="signIn",
                description="Authenticate a user with credentials",
                parameters=(ActionParameter(name="email", type="string"), ActionParameter(name="password", type="string")),
                returns="{ success: boolean; error?: string }",
            ),
            ServerAction(name="signOut", description="End the current session"),
            ServerAction(name="getSession", description="Read the current session", returns="Session | null", method="GET"),
        ]
    if "signup" in categories:
        actions.append(
            ServerAction(
                name="signUp",
                description="Register a new user account",
                parameters=(ActionParameter(name="email", type="string"), ActionParameter(name="password", type="string")),
                returns="{ success: boolean; error?: string }",
            )
        )
    if "password" in categories:
        actions.append(
            ServerAction(
                name="resetPassword",
                description="Send a password reset link",
                parameters=(ActionParameter(name="email", type="string"),),
                returns="{ success: boolean }",
            )
        )

    # Auth forms submit credentials, not entities
    if "form" in categories and not is_auth:
        actions += [
            ServerAction(
                name=f"create{entity}",
                description=f"Create new {entity}",
                parameters=(ActionParameter(name="data", type=f"Omit<{entity}, 'id'>"),),
                returns=entity,
            ),
            ServerAction(
                name=f"get{entity}",
                description=f"Get {entity} by ID",
                parameters=(ID_PARAM,),
                returns=f"{entity} | null",
                method="GET",
            ),
            ServerAction(
                name=f"update{entity}",
                description=f"Update existing {entity}",
                parameters=(ID_PARAM, ActionParameter(name="data", type=f"Partial<{entity}>")),
                returns=entity,
                method="PUT",
            ),
            ServerAction(
                name=f"delete{entity}",
                description=f"Delete {entity}",
                parameters=(ID_PARAM,),
                returns="boolean",
                method="DELETE",
            ),
        ]
    if "data" in categories:
        actions.append(
            ServerAction(
                name=f"get{entities}",
                description=f"Fetch {entities} for display",
                parameters=(
                    ActionParameter(name="filters", type="Record<string, any>", required=False),
                    ActionParameter(name="pagination", type="{ page: number; limit: number }", required=False),
                ),
                returns=f"{entity}[]",
                method="GET",
            )
        )
    if "search" in categories:
        actions.append(
            ServerAction(
                name=f"search{entities}",
                description=f"Search {entities} by query",
                parameters=(ActionParameter(name="query", type="string"),),
                returns=f"{entity}[]",
                method="GET",
            )
        )

    return _unique(actions)


def derive_routes(node: ComponentNode, categories: frozenset[str]) -> list[RouteDefinition]:
    name = pascal_case(node.name)
    base = kebab_case(entity_name(node.name))
    routes: list[RouteDefinition] = []

    if node.kind == ComponentKind.LAYOUT and node.level == 1:
        routes.append(RouteDefinition(path=f"/{kebab_case(name)}", page=name, title=node.description or name))

    if name.endswith(PAGE_SUFFIXES):
        stripped = strip_suffixes(name, PAGE_SUFFIXES)
        routes.append(RouteDefinition(path=f"/{kebab_case(stripped)}", page=name, title=node.description or name))

    if "form" in categories and not categories & {"auth", "signup", "password"}:
        entity = entity_name(node.name)
        routes += [
            RouteDefinition(path=f"/{base}/new", page=name, title=f"Create {entity}"),
            RouteDefinition(path=f"/{base}/[id]/edit", kind="dynamic", page=name, title=f"Edit {entity}"),
        ]

    if "Detail" in name:
        routes.append(
            RouteDefinition(path=f"/{base}/[id]", kind="dynamic", page=name, title=f"{entity_name(node.name)} Details")
        )

    return _unique(routes, key=lambda r: r.path)


def derive_client_actions(server_actions: list[ServerAction]) -> list[ClientAction]:
    """One `handle<Action>` per server action."""
    return [
        ClientAction(
            name=f"handle{capitalize(action.name)}",
            server_action=action.name,
            parameters=tuple(p.name for p in action.parameters),
        )
        for action in server_actions
    ]


def classify(node: ComponentNode) -> Classification:
    """Derive actions and routes for a node. Deterministic and side-effect free."""
    categories = categorize(node)
    server_actions = derive_server_actions(node, categories)
    return Classification(
        server_actions=tuple(server_actions),
        routes=tuple(derive_routes(node, categories)),
        client_actions=tuple(derive_client_actions(server_actions)),
        categories=categories,
    )


def endpoint_for(action: ServerAction, component: str) -> tuple[str, str]:
    """API path and HTTP method for a server action."""
    method = "GET"
    if action.name.startswith(("create", "sign", "reset")):
        method = "POST"
    elif action.name.startswith("update"):
        method = "PUT"
    elif action.name.startswith("delete"):
        method = "DELETE"
    return f"/api/{kebab_case(component)}", method


def _unique(items, key=lambda item: item.name):
    seen = set()
    result = []
    for item in items:
        k = key(item)
        if k not in seen:
            seen.add(k)
            result.append(item)
    return result


__all__ = [
    "Classification",
    "ENTITY_SUFFIXES",
    "entity_name",
    "categorize",
    "classify",
    "derive_server_actions",
    "derive_routes",
    "derive_client_actions",
    "endpoint_for",
]
