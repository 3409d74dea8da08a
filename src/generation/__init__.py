"""
Generation
Retrying invocation, post-processing and persistence of generated units.
"""

from .invoker import RetryPolicy, RetryAttempt, RetryingInvoker
from .sanitize import base_name, extract_code, sanitize_identifiers, attach_documentation
from .writer import OutputWriter, GroupUnit
from .pipeline import GenerationPipeline, GenerationReport, GeneratedUnit

__all__ = [
    "RetryPolicy",
    "RetryAttempt",
    "RetryingInvoker",
    "base_name",
    "extract_code",
    "sanitize_identifiers",
    "attach_documentation",
    "OutputWriter",
    "GroupUnit",
    "GenerationPipeline",
    "GenerationReport",
    "GeneratedUnit",
]
