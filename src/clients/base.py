"""
Generation backend contract and the shared HTTP plumbing.

Backends are synchronous clients guarded by a circuit breaker; the async
`generate` wrapper runs them in the loop's default executor.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

import httpx
import pybreaker
from pydantic import BaseModel, Field

from core.errors import (
    BackendUnavailable,
    GenerationError,
    InvocationTimeout,
    RateLimited,
    TerminalGenerationError,
)
from core.logging_config import get_logger
from planner.models import UnitSpec

logger = get_logger(__name__)

# Circuit breaker defaults shared by every backend
BREAKER_FAIL_MAX = 5
BREAKER_RESET_TIMEOUT = 30


class GeneratedContent(BaseModel):
    """Raw backend output for one unit."""

    content: str
    backend: str
    metadata: dict[str, Any] = Field(default_factory=dict)


@runtime_checkable
class GenerationBackend(Protocol):
    """Anything that can produce content for a unit."""

    name: str

    async def generate(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent: ...


class BreakerListener(pybreaker.CircuitBreakerListener):
    """Logs circuit breaker state changes."""

    def state_change(self, cb, old_state, new_state):
        logger.warning(
            "breaker_state_change",
            breaker=cb.name,
            from_state=str(old_state),
            to_state=str(new_state),
        )


def build_breaker(name: str) -> pybreaker.CircuitBreaker:
    # Terminal errors are the caller's fault, not the backend's health
    return pybreaker.CircuitBreaker(
        fail_max=BREAKER_FAIL_MAX,
        reset_timeout=BREAKER_RESET_TIMEOUT,
        exclude=[TerminalGenerationError],
        name=name,
        listeners=[BreakerListener()],
    )


def error_message(response: httpx.Response) -> str:
    """Best-effort error text from a JSON or plain error body."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error)
        if error:
            return str(error)
        if data.get("message"):
            return str(data["message"])
    return f"HTTP {response.status_code}"


def raise_for_status(response: httpx.Response, backend: str) -> None:
    """Map an HTTP failure status onto the generation error taxonomy."""
    status = response.status_code
    if status < 400:
        return

    message = f"{backend}: {error_message(response)}"
    if status == 429:
        retry_after = response.headers.get("retry-after")
        raise RateLimited(
            f"{backend} rate limit: {error_message(response)}",
            retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
        )
    if status == 408 or status >= 500:
        raise BackendUnavailable(message, backend=backend, details={"status_code": status})
    raise TerminalGenerationError(message, backend=backend, status_code=status)


def map_transport_error(exc: httpx.HTTPError, backend: str) -> GenerationError:
    """Map httpx transport failures (no response) onto the taxonomy."""
    if isinstance(exc, httpx.TimeoutException):
        return InvocationTimeout(f"{backend} request timeout: {exc}")
    return BackendUnavailable(f"{backend} unreachable: {exc}", backend=backend)


class SyncBackend(ABC):
    """Blocking backend behind a circuit breaker with an async facade."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._breaker = build_breaker(f"{name}-backend")

    @abstractmethod
    def _request(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        """Perform one blocking generation call."""

    def complete(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        """Blocking generation with circuit breaker protection."""
        try:
            return self._breaker.call(self._request, unit, context)
        except pybreaker.CircuitBreakerError as e:
            logger.error("backend_circuit_open", backend=self.name)
            raise BackendUnavailable(f"{self.name} circuit breaker open", backend=self.name) from e

    async def generate(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        """Async generation (runs the sync client in the default executor)."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, self.complete, unit, context)

    def close(self) -> None:
        pass


class HttpBackend(SyncBackend):
    """SyncBackend owning an httpx client."""

    def __init__(self, name: str, base_url: str, timeout: float) -> None:
        super().__init__(name)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout)
        logger.info("client_init", backend=name, url=self.base_url)

    def _post(self, path: str, payload: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
        """POST JSON and return the decoded object, mapping failures."""
        try:
            response = self._client.post(f"{self.base_url}{path}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("http_error", backend=self.name, error=str(e))
            raise map_transport_error(e, self.name) from e

        raise_for_status(response, self.name)

        try:
            data = response.json()
        except ValueError as e:
            raise TerminalGenerationError(
                f"{self.name} returned non-JSON response: {response.text[:100]}",
                backend=self.name,
                status_code=response.status_code,
            ) from e
        if not isinstance(data, dict):
            raise TerminalGenerationError(f"{self.name} returned unexpected payload", backend=self.name)
        return data

    def close(self) -> None:
        """Close HTTP client"""
        self._client.close()

    def __enter__(self) -> "HttpBackend":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


__all__ = [
    "GeneratedContent",
    "GenerationBackend",
    "SyncBackend",
    "HttpBackend",
    "build_breaker",
    "raise_for_status",
    "map_transport_error",
]
