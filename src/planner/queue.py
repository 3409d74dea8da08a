"""
Generation Queue
Breadth-first build plan over a ComponentNode tree, plus the
architecture summary derived from it.
"""

from collections import deque
from itertools import groupby
from typing import Any

from core.logging_config import get_logger
from monitoring import metrics_collector
from .classifier import classify, endpoint_for
from .docs import render_documentation
from .models import ComponentNode, GenerationQueueItem

logger = get_logger(__name__)


def build_generation_queue(root: ComponentNode) -> list[GenerationQueueItem]:
    """
    One queue item per non-root node, ordered by level.

    All level-1 nodes come before any level-2 node, and so on; within a
    level, items keep pre-order discovery order. The root is a container
    and is never queued. Nodes are annotated with their derived actions
    and routes as a side effect.
    """
    root.validate_levels()

    queue: list[GenerationQueueItem] = []
    pending: deque[tuple[ComponentNode, tuple[str, ...]]] = deque(
        (child, (root.name,)) for child in root.children.values()
    )

    while pending:
        node, parents = pending.popleft()
        queue.append(_plan_item(node, parents))
        pending.extend((child, parents + (node.name,)) for child in node.children.values())

    metrics_collector.record_plan("queue", "success", len(queue))
    logger.info("queue_built", root=root.name, items=len(queue))
    return queue


def _plan_item(node: ComponentNode, parents: tuple[str, ...]) -> GenerationQueueItem:
    classification = classify(node)
    node.derived_actions = list(classification.server_actions)
    node.derived_routes = list(classification.routes)

    # parents[0] is the root; the level-1 ancestor names the output group
    group = parents[1] if len(parents) > 1 else node.name
    return GenerationQueueItem(
        component=node,
        level=node.level,
        group=group,
        parents=parents,
        server_actions=classification.server_actions,
        routes=classification.routes,
        client_actions=classification.client_actions,
        self_documentation=render_documentation(
            node,
            parents,
            classification.routes,
            classification.server_actions,
            classification.client_actions,
        ),
    )


def queue_by_level(queue: list[GenerationQueueItem]) -> list[tuple[int, list[GenerationQueueItem]]]:
    """Group consecutive same-level items (the queue is already level-ordered)."""
    return [(level, list(items)) for level, items in groupby(queue, key=lambda item: item.level)]


def build_architecture_plan(root: ComponentNode, project: dict[str, Any] | None = None) -> dict[str, Any]:
    """Summarise routes, API endpoints and server actions for a whole tree."""
    project = project or {}
    queue = build_generation_queue(root)

    routes: dict[str, dict[str, Any]] = {}
    api: dict[str, dict[str, list[str]]] = {}
    server_actions: dict[str, dict[str, Any]] = {}

    for item in queue:
        for route in item.routes:
            routes[route.path] = route.model_dump()

        for action in item.server_actions:
            path, method = endpoint_for(action, item.name)
            endpoint = api.setdefault(path, {"methods": [], "actions": []})
            if method not in endpoint["methods"]:
                endpoint["methods"].append(method)
            endpoint["actions"].append(action.name)

        if item.server_actions:
            server_actions[f"{item.name}Actions"] = {
                "description": f"Server actions for {item.name}",
                "actions": [a.model_dump() for a in item.server_actions],
            }

    return {
        "project": {
            "name": project.get("name", root.name),
            "description": project.get("description", root.description),
        },
        "routes": routes,
        "api": api,
        "server_actions": server_actions,
        "metadata": {
            "total_components": len(queue),
            "total_routes": len(routes),
            "total_api_endpoints": len(api),
            "total_server_actions": sum(len(v["actions"]) for v in server_actions.values()),
        },
    }


__all__ = ["build_generation_queue", "queue_by_level", "build_architecture_plan"]
