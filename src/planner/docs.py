"""Self-documentation header rendered for each planned unit."""

from .models import ClientAction, ComponentKind, ComponentNode, RouteDefinition, ServerAction

LEVEL_DESCRIPTIONS = {
    0: "Root Application Container",
    1: "Feature Module",
    2: "Sub-feature Component",
    3: "Atomic Component",
    4: "Utility Component",
}

USER_EXPECTATIONS = {
    ComponentKind.FORM: [
        "Users expect clear validation messages",
        "Users expect loading states during submission",
        "Users expect success/error feedback",
        "Users expect form data persistence on errors",
    ],
    ComponentKind.DATA: [
        "Users expect accurate and up-to-date information",
        "Users expect loading states while data fetches",
        "Users expect empty states when no data available",
    ],
    ComponentKind.LAYOUT: [
        "Users expect consistent spacing and alignment",
        "Users expect responsive design across devices",
        "Users expect proper content hierarchy",
    ],
    ComponentKind.NAVIGATION: [
        "Users expect the current location to be highlighted",
        "Users expect keyboard navigation between items",
    ],
    ComponentKind.FEEDBACK: [
        "Users expect messages to be noticeable but not blocking",
        "Users expect status to be announced to assistive technology",
    ],
    ComponentKind.OVERLAY: [
        "Users expect focus to be trapped while open",
        "Users expect Escape to close the overlay",
    ],
    ComponentKind.MEDIA: [
        "Users expect media to load progressively",
        "Users expect alternative text for non-text content",
    ],
    ComponentKind.OTHER: [
        "Users expect immediate visual feedback on interactions",
        "Users expect clear error handling",
    ],
}


def level_description(level: int) -> str:
    return LEVEL_DESCRIPTIONS.get(level, f"Level {level} Component")


def _bullets(items: list[str], empty: str) -> str:
    return "\n".join(f" *   - {item}" for item in items) if items else f" *   - {empty}"


def usage_example(node: ComponentNode, client_actions: tuple[ClientAction, ...]) -> str:
    props = []
    if node.kind == ComponentKind.DATA:
        props.append(" *   data={data}")
    props += [f" *   {a.name}={{{a.name}}}" for a in client_actions]
    body = "\n".join(props)
    return f" * <{node.name}\n{body}\n * />" if body else f" * <{node.name} />"


def render_documentation(
    node: ComponentNode,
    parents: tuple[str, ...],
    routes: tuple[RouteDefinition, ...],
    server_actions: tuple[ServerAction, ...],
    client_actions: tuple[ClientAction, ...],
) -> str:
    """Comment block prepended to the generated source. Descriptive only."""
    kind = node.kind.value if node.kind else "unspecified"
    expectations = USER_EXPECTATIONS.get(node.kind or ComponentKind.OTHER, [])
    lines = [
        "/**",
        f" * Component: {node.name}",
        f" * Level: {node.level} ({level_description(node.level)})",
        f" * Kind: {kind}",
        " *",
        f" * Purpose: {node.description or f'{node.name} component'}",
        " *",
        " * Parents:",
        _bullets(list(parents), "None"),
        " *",
        " * Routes:",
        _bullets([r.path for r in routes], "None (used within parent)"),
        " *",
        " * Actions:",
        _bullets([a.name for a in client_actions], "None"),
        " *",
        " * Server Actions:",
        _bullets([f"{a.name}: {a.description}" for a in server_actions], "None"),
        " *",
        " * User Expectations:",
        _bullets(expectations, "None"),
        " *",
        " * Usage Example:",
        usage_example(node, client_actions),
        " */",
    ]
    return "\n".join(lines)


__all__ = ["LEVEL_DESCRIPTIONS", "level_description", "render_documentation", "usage_example"]
