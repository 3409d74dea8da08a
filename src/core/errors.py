"""Typed exception hierarchy for planning and generation."""

import asyncio
from typing import Any

# Substrings that mark a foreign exception as transient
RETRYABLE_MARKERS = ("rate limit", "timeout", "timed out", "aborted", "all ai providers failed", "all backends failed")


class ForgeError(Exception):
    """Base exception for all service errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class PlanningError(ForgeError):
    """Component specification is malformed or empty."""

    pass


class GenerationError(ForgeError):
    """Generating a single unit failed."""

    retryable = False

    def __init__(
        self,
        message: str,
        unit: str = "",
        group: str = "",
        description: str = "",
        attempts: int = 0,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.unit = unit
        self.group = group
        self.description = description
        self.attempts = attempts

    def for_unit(self, unit: str, group: str = "", description: str = "") -> "GenerationError":
        """Attach unit identity (keeps values already set)."""
        self.unit = self.unit or unit
        self.group = self.group or group
        self.description = self.description or description
        return self


class RetryableGenerationError(GenerationError):
    """Failure that the retry loop may recover from."""

    retryable = True


class InvocationTimeout(RetryableGenerationError):
    """Backend did not answer before the per-attempt timer fired."""

    pass


class RateLimited(RetryableGenerationError):
    """Backend rejected the request with a rate limit."""

    def __init__(self, message: str, retry_after: float | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class BackendUnavailable(RetryableGenerationError):
    """Backend unreachable, overloaded, or its circuit breaker is open."""

    def __init__(self, message: str, backend: str = "", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.backend = backend


class AllBackendsFailed(BackendUnavailable):
    """Every configured local backend failed for this attempt."""

    def __init__(self, message: str, failures: dict[str, str] | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.failures = failures or {}


class TerminalGenerationError(GenerationError):
    """Failure that retrying cannot fix (credentials, malformed request)."""

    def __init__(self, message: str, backend: str = "", status_code: int | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.backend = backend
        self.status_code = status_code


class HostedGenerationError(TerminalGenerationError):
    """Hosted API failure, reported with user guidance and never retried."""

    def __init__(self, message: str, guidance: list[str] | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.guidance = guidance or []


class RetriesExhausted(GenerationError):
    """Retryable failures continued until the attempt budget ran out."""

    def __init__(self, message: str, last_error: GenerationError | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.last_error = last_error


def as_generation_error(error: BaseException) -> GenerationError:
    """Normalise any failure into the taxonomy, classifying foreign errors by message."""
    if isinstance(error, GenerationError):
        return error
    if isinstance(error, asyncio.TimeoutError):
        return InvocationTimeout(str(error) or "Generation timed out")
    message = str(error) or type(error).__name__
    if any(marker in message.lower() for marker in RETRYABLE_MARKERS):
        return RetryableGenerationError(message)
    return TerminalGenerationError(message)


class UnitGenerationError(ForgeError):
    """A unit failed inside the generation pipeline; aborts the remaining run."""

    def __init__(self, cause: GenerationError, completed: list[str] | None = None) -> None:
        location = f"{cause.group}/{cause.unit}" if cause.group else cause.unit
        message = f"Generation failed for {location}: {cause}"
        if isinstance(cause, RetriesExhausted):
            message += f" (after {cause.attempts} attempts)"
        super().__init__(
            message,
            details={
                "unit": cause.unit,
                "group": cause.group,
                "description": cause.description,
                "attempts": cause.attempts,
            },
        )
        self.cause = cause
        self.completed = completed or []

    @property
    def unit(self) -> str:
        return self.cause.unit

    @property
    def attempts(self) -> int:
        return self.cause.attempts


__all__ = [
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
    "RETRYABLE_MARKERS",
    "as_generation_error",
]
