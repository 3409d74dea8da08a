"""
Planner
Component specification to flat groups or a level-ordered generation queue.
"""

from .models import (
    ComponentKind,
    ComponentNode,
    ServerAction,
    ClientAction,
    RouteDefinition,
    GenerationQueueItem,
    UnitSpec,
)
from .parser import load_document, build_tree
from .flatten import flatten_to_groups
from .classifier import classify, Classification
from .queue import build_generation_queue, queue_by_level, build_architecture_plan

__all__ = [
    "ComponentKind",
    "ComponentNode",
    "ServerAction",
    "ClientAction",
    "RouteDefinition",
    "GenerationQueueItem",
    "UnitSpec",
    "load_document",
    "build_tree",
    "flatten_to_groups",
    "classify",
    "Classification",
    "build_generation_queue",
    "queue_by_level",
    "build_architecture_plan",
]
