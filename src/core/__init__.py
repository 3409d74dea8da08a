"""Core utilities and infrastructure."""

from .config import Settings, get_settings
from .errors import (
    ForgeError,
    PlanningError,
    GenerationError,
    RetryableGenerationError,
    InvocationTimeout,
    RateLimited,
    BackendUnavailable,
    AllBackendsFailed,
    TerminalGenerationError,
    HostedGenerationError,
    RetriesExhausted,
    UnitGenerationError,
    as_generation_error,
)
from .logging_config import configure_logging, get_logger, LogContext
from .json import (
    extract_json,
    safe_json_dumps,
    JSONParseError,
    validate_json_depth,
)


def create_container(settings: Settings | None = None, environ=None):
    """Create dependency injection container (lazy import to avoid circular deps)."""
    from .container import create_container as _create_container

    return _create_container(settings, environ)


__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Errors
    "ForgeError",
    "PlanningError",
    "GenerationError",
    "RetryableGenerationError",
    "InvocationTimeout",
    "RateLimited",
    "BackendUnavailable",
    "AllBackendsFailed",
    "TerminalGenerationError",
    "HostedGenerationError",
    "RetriesExhausted",
    "UnitGenerationError",
    "as_generation_error",
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    # JSON
    "extract_json",
    "safe_json_dumps",
    "JSONParseError",
    "validate_json_depth",
    # DI
    "create_container",
]
