"""
Preview
Sample prop synthesis and the lazy-loading preview registry.
"""

from .resolver import TypeResolver, TextTypeResolver, extract_props_contract, find_types_source
from .synthesizer import synthesize, synthesize_shape
from .registry import (
    MissingComponent,
    PreviewRegistry,
    RegistryBuild,
    RegistryBuilder,
    RegistryEntry,
)

__all__ = [
    "TypeResolver",
    "TextTypeResolver",
    "extract_props_contract",
    "find_types_source",
    "synthesize",
    "synthesize_shape",
    "MissingComponent",
    "PreviewRegistry",
    "RegistryBuild",
    "RegistryBuilder",
    "RegistryEntry",
]
