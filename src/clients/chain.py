"""
Provider Chain
Tries local providers in priority order until one produces content.
"""

from typing import Any, Sequence

from core.errors import AllBackendsFailed, GenerationError, as_generation_error
from core.logging_config import get_logger
from planner.models import UnitSpec
from .anthropic import AnthropicBackend
from .base import GeneratedContent, GenerationBackend
from .gemini import GeminiBackend
from .hosted import HostedBackend
from .openai_compatible import OpenAICompatibleBackend
from .providers import SPECS_BY_NAME, BackendConfig

logger = get_logger(__name__)


class ProviderChain:
    """
    Fallback across local backends for a single attempt.

    Unmapped exceptions from a backend are normalised into the taxonomy
    and the chain moves on. If every backend fails and at least one failure
    was retryable, the attempt fails with AllBackendsFailed (retryable).
    If every failure was terminal, the first terminal error is raised.
    """

    name = "chain"

    def __init__(self, backends: Sequence[GenerationBackend]) -> None:
        if not backends:
            raise ValueError("ProviderChain needs at least one backend")
        self.backends = list(backends)

    @property
    def names(self) -> list[str]:
        return [b.name for b in self.backends]

    async def generate(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        failures: dict[str, GenerationError] = {}

        for backend in self.backends:
            try:
                result = await backend.generate(unit, context)
            except Exception as e:
                error = as_generation_error(e)
                if error is not e:
                    error.__cause__ = e
                logger.warning(
                    "provider_failed",
                    provider=backend.name,
                    unit=unit.name,
                    error=str(error),
                    error_type=type(e).__name__,
                    retryable=error.retryable,
                )
                failures[backend.name] = error
                continue

            if failures:
                logger.info("provider_fallback_succeeded", provider=backend.name, skipped=list(failures))
            return result

        if any(e.retryable for e in failures.values()):
            raise AllBackendsFailed(
                "All AI providers failed: " + "; ".join(f"{n}: {e}" for n, e in failures.items()),
                failures={n: str(e) for n, e in failures.items()},
            )
        raise next(iter(failures.values()))

    def close(self) -> None:
        for backend in self.backends:
            close = getattr(backend, "close", None)
            if close:
                close()


def create_local_backend(provider: str, config: BackendConfig) -> GenerationBackend:
    """Instantiate the backend for a configured provider."""
    spec = SPECS_BY_NAME[provider]
    api_key = config.credentials[provider]
    model = config.model_for(provider)

    if spec.protocol == "gemini":
        return GeminiBackend(
            api_key=api_key,
            model_name=model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )
    if spec.protocol == "anthropic":
        return AnthropicBackend(
            api_key=api_key,
            model_name=model,
            base_url=spec.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )
    return OpenAICompatibleBackend(
        name=provider,
        base_url=spec.base_url,
        api_key=api_key,
        model_name=model,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


def create_chain(config: BackendConfig) -> ProviderChain:
    return ProviderChain([create_local_backend(name, config) for name in config.provider_order()])


def create_hosted(config: BackendConfig) -> HostedBackend:
    return HostedBackend(
        base_url=config.hosted_url,
        token=config.hosted_token,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.timeout,
    )


__all__ = ["ProviderChain", "create_local_backend", "create_chain", "create_hosted"]
