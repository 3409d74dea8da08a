"""
Retrying Invoker
Wraps one "generate this unit" call with timeout racing, bounded retries
with exponential backoff and jitter, and local/hosted path selection.
"""

import asyncio
import random
import time
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field

from clients.base import GeneratedContent, GenerationBackend
from clients.chain import create_chain, create_hosted
from clients.hosted import hosted_guidance
from clients.providers import BackendConfig
from core.config import Settings
from core.errors import (
    GenerationError,
    HostedGenerationError,
    InvocationTimeout,
    RetriesExhausted,
    TerminalGenerationError,
    as_generation_error,
)
from core.logging_config import get_logger
from monitoring import MetricsCollector, metrics_collector
from planner.models import UnitSpec

logger = get_logger(__name__)

RETRYABLE = "retryable"
TERMINAL = "terminal"


class RetryPolicy(BaseModel):
    """Attempt budget and backoff shape for one invocation."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=4, ge=1)
    base_delay_ms: int = Field(default=2000, ge=0)
    jitter_ms: int = Field(default=1000, ge=0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.max_attempts,
            base_delay_ms=settings.base_delay_ms,
            jitter_ms=settings.jitter_ms,
        )

    def base_delay(self, attempt: int) -> int:
        """Backoff without jitter: base * 2^(attempt-1)."""
        return self.base_delay_ms * 2 ** (attempt - 1)

    def delay_ms(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        return self.base_delay(attempt) + rng() * self.jitter_ms


class RetryAttempt(BaseModel):
    """Bookkeeping for one failed attempt."""

    attempt_number: int = Field(ge=1)
    max_attempts: int
    delay_ms: float = 0.0
    classification: str = Field(pattern=f"^({RETRYABLE}|{TERMINAL})$")
    error: str = ""


def classify(error: BaseException) -> str:
    return RETRYABLE if as_generation_error(error).retryable else TERMINAL


class RetryingInvoker:
    """
    Produces content for a unit or raises. Never writes files.

    The local path (any credential configured) races each attempt against
    a timer and retries retryable failures. The hosted path makes a single
    attempt and reports failures with guidance.
    """

    def __init__(
        self,
        config: BackendConfig,
        policy: RetryPolicy | None = None,
        local: GenerationBackend | None = None,
        hosted: GenerationBackend | None = None,
        timeout_ms: int = 60_000,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self.config = config
        self.policy = policy or RetryPolicy()
        self.timeout_ms = timeout_ms
        self._local = local
        self._hosted = hosted
        self._sleep = sleep
        self._rng = rng
        self._metrics = metrics or metrics_collector
        self.history: list[RetryAttempt] = []

    @property
    def path(self) -> str:
        if self._local is not None or self.config.has_local_credentials:
            return "local"
        return "hosted"

    @property
    def local(self) -> GenerationBackend:
        if self._local is None:
            self._local = create_chain(self.config)
        return self._local

    @property
    def hosted(self) -> GenerationBackend:
        if self._hosted is None:
            self._hosted = create_hosted(self.config)
        return self._hosted

    async def invoke(
        self,
        unit: UnitSpec,
        context: dict[str, Any] | None = None,
        timeout_ms: int | None = None,
    ) -> GeneratedContent:
        """
        Generate content for one unit.

        Raises:
            TerminalGenerationError: Non-retryable failure (after one attempt)
            RetriesExhausted: Retryable failures used up the attempt budget
            HostedGenerationError: Hosted path failure
        """
        context = context or {}
        self.history = []
        if self.path == "local":
            return await self._invoke_local(unit, context, timeout_ms or self.timeout_ms)
        return await self._invoke_hosted(unit, context)

    async def _attempt(self, unit: UnitSpec, context: dict[str, Any], timeout_ms: int) -> GeneratedContent:
        backend = self.local
        try:
            # The abandoned call keeps running in its executor thread
            return await asyncio.wait_for(backend.generate(unit, context), timeout=timeout_ms / 1000)
        except asyncio.TimeoutError as e:
            raise InvocationTimeout(f"Generation timeout after {timeout_ms}ms") from e

    async def _invoke_local(self, unit: UnitSpec, context: dict[str, Any], timeout_ms: int) -> GeneratedContent:
        max_attempts = self.policy.max_attempts
        backend_name = getattr(self.local, "name", "local")

        for attempt in range(1, max_attempts + 1):
            start = time.perf_counter()
            try:
                result = await self._attempt(unit, context, timeout_ms)
            except Exception as e:
                error = as_generation_error(e)
                self._metrics.record_attempt(backend_name, type(error).__name__, time.perf_counter() - start)
                error.for_unit(unit.name, unit.group, unit.description)

                if not error.retryable:
                    error.attempts = attempt
                    self.history.append(self._record(attempt, 0.0, TERMINAL, error))
                    logger.error("generation_terminal", unit=unit.name, attempt=attempt, error=str(error))
                    if error is e:
                        raise
                    raise error from e

                if attempt == max_attempts:
                    self.history.append(self._record(attempt, 0.0, RETRYABLE, error))
                    logger.error("generation_retries_exhausted", unit=unit.name, attempts=attempt, error=str(error))
                    raise RetriesExhausted(
                        f"Retries exhausted: {error}",
                        last_error=error,
                        unit=unit.name,
                        group=unit.group,
                        description=unit.description,
                        attempts=attempt,
                    ) from e

                delay = self.policy.delay_ms(attempt, self._rng)
                self.history.append(self._record(attempt, delay, RETRYABLE, error))
                self._metrics.record_retry(type(error).__name__)
                logger.warning(
                    "generation_retry",
                    unit=unit.name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay_ms=round(delay),
                    error=str(error),
                )
                await self._sleep(delay / 1000)
                continue

            self._metrics.record_attempt(result.backend, "success", time.perf_counter() - start)
            logger.info("unit_generated", unit=unit.name, backend=result.backend, attempt=attempt)
            return result

        # range() always runs at least once and every branch returns or raises
        raise AssertionError("unreachable")

    async def _invoke_hosted(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        backend = self.hosted
        start = time.perf_counter()
        try:
            result = await backend.generate(unit, context)
        except Exception as e:
            self._metrics.record_attempt("hosted", type(e).__name__, time.perf_counter() - start)
            if isinstance(e, HostedGenerationError):
                error = e
            else:
                error = HostedGenerationError(
                    str(e),
                    guidance=hosted_guidance(getattr(e, "status_code", None), bool(self.config.hosted_token)),
                    backend="hosted",
                )
            error.for_unit(unit.name, unit.group, unit.description)
            error.attempts = 1
            self.history.append(self._record(1, 0.0, TERMINAL, error))
            logger.error("hosted_generation_failed", unit=unit.name, error=str(error), guidance=error.guidance)
            if error is e:
                raise
            raise error from e

        self._metrics.record_attempt("hosted", "success", time.perf_counter() - start)
        logger.info("unit_generated", unit=unit.name, backend="hosted", attempt=1)
        return result

    def _record(self, attempt: int, delay: float, classification: str, error: Exception) -> RetryAttempt:
        return RetryAttempt(
            attempt_number=attempt,
            max_attempts=self.policy.max_attempts,
            delay_ms=delay,
            classification=classification,
            error=str(error),
        )


__all__ = [
    "RetryPolicy",
    "RetryAttempt",
    "RetryingInvoker",
    "RETRYABLE",
    "TERMINAL",
    "classify",
]
