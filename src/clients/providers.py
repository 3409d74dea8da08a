"""
Backend configuration.
Credentials are read once from an environment mapping into an explicit,
immutable config object handed to the invoker.
"""

import os
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from core.config import Settings, get_settings


class ProviderSpec(BaseModel):
    """A local text-generation provider and where its credential lives."""

    model_config = ConfigDict(frozen=True)

    name: str
    protocol: str = Field(pattern="^(gemini|openai|anthropic)$")
    env_vars: tuple[str, ...]
    base_url: str = ""


# Priority order: earlier providers are tried first
PROVIDER_SPECS: tuple[ProviderSpec, ...] = (
    ProviderSpec(
        name="gemini",
        protocol="gemini",
        env_vars=("FORGE_GEMINI_API_KEY", "GEMINI_API_KEY", "GOOGLE_API_KEY"),
    ),
    ProviderSpec(
        name="anthropic",
        protocol="anthropic",
        env_vars=("FORGE_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
        base_url="https://api.anthropic.com/v1",
    ),
    ProviderSpec(
        name="openai",
        protocol="openai",
        env_vars=("FORGE_OPENAI_API_KEY", "OPENAI_API_KEY"),
        base_url="https://api.openai.com/v1",
    ),
    ProviderSpec(
        name="xai",
        protocol="openai",
        env_vars=("FORGE_XAI_API_KEY", "XAI_API_KEY"),
        base_url="https://api.x.ai/v1",
    ),
    ProviderSpec(
        name="openrouter",
        protocol="openai",
        env_vars=("FORGE_OPENROUTER_API_KEY", "OPENROUTER_API_KEY"),
        base_url="https://openrouter.ai/api/v1",
    ),
    ProviderSpec(
        name="github",
        protocol="openai",
        env_vars=("FORGE_GITHUB_TOKEN", "GITHUB_TOKEN"),
        base_url="https://models.inference.ai.azure.com",
    ),
)

SPECS_BY_NAME = {spec.name: spec for spec in PROVIDER_SPECS}


def recognised_env_names() -> list[str]:
    """Every credential variable name, in priority order."""
    return [name for spec in PROVIDER_SPECS for name in spec.env_vars]


class BackendConfig(BaseModel):
    """Explicit backend configuration passed into the invoker."""

    model_config = ConfigDict(frozen=True)

    # provider name -> credential, only for providers that have one
    credentials: dict[str, str] = Field(default_factory=dict)
    preferred: str | None = None
    models: dict[str, str] = Field(default_factory=dict)

    hosted_url: str = "https://api.component-forge.dev/v1"
    hosted_token: str = ""

    timeout: float = 90.0
    temperature: float = 0.2
    max_tokens: int = 4096

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        settings: Settings | None = None,
    ) -> "BackendConfig":
        """
        Read recognised credential variables from a mapping.

        Args:
            environ: Variable mapping (defaults to os.environ)
            settings: Non-secret knobs (defaults to get_settings())
        """
        environ = os.environ if environ is None else environ
        settings = settings or get_settings()

        credentials = {}
        for spec in PROVIDER_SPECS:
            for var in spec.env_vars:
                value = (environ.get(var) or "").strip()
                if value:
                    credentials[spec.name] = value
                    break

        preferred = (settings.provider or "").strip().lower() or None
        if preferred is not None and preferred not in SPECS_BY_NAME:
            preferred = None

        return cls(
            credentials=credentials,
            preferred=preferred,
            models=settings.model_names(),
            hosted_url=settings.hosted_api_url,
            hosted_token=settings.hosted_api_token,
            timeout=settings.backend_timeout,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
        )

    @property
    def has_local_credentials(self) -> bool:
        return bool(self.credentials)

    def provider_order(self) -> list[str]:
        """Configured providers in try order, preferred first."""
        names = [spec.name for spec in PROVIDER_SPECS if spec.name in self.credentials]
        if self.preferred in names:
            names.remove(self.preferred)
            names.insert(0, self.preferred)
        return names

    def model_for(self, provider: str) -> str:
        return self.models.get(provider, "")


__all__ = [
    "ProviderSpec",
    "PROVIDER_SPECS",
    "SPECS_BY_NAME",
    "BackendConfig",
    "recognised_env_names",
]
