"""
Hosted generation API backend.
Used only when no local credential is configured. Every failure is
reported as a HostedGenerationError with guidance for the user.
"""

from typing import Any

from core.errors import GenerationError, HostedGenerationError, RateLimited, TerminalGenerationError
from core.logging_config import get_logger
from planner.models import UnitSpec
from .base import GeneratedContent, HttpBackend
from .providers import recognised_env_names

logger = get_logger(__name__)

HOSTED_MODEL = "component-forge"


def hosted_guidance(status_code: int | None, has_token: bool) -> list[str]:
    """User-facing next steps for a hosted failure."""
    guidance = []
    if status_code in (401, 403) or not has_token:
        guidance.append("Obtain an API key for the hosted service and set FORGE_HOSTED_API_TOKEN")
    if status_code == 402:
        guidance.append("Check the billing status of your hosted account")
    if status_code == 429:
        guidance.append("Wait for the rate limit window to reset and run again")
    guidance.append(
        "Or configure a local provider by setting one of: " + ", ".join(recognised_env_names())
    )
    return guidance


class HostedBackend(HttpBackend):
    def __init__(
        self,
        base_url: str,
        token: str = "",
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: float = 90.0,
    ) -> None:
        super().__init__("hosted", base_url, timeout)
        self.token = token
        self.temperature = temperature
        self.max_tokens = max_tokens

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        payload = {
            "component": {"name": unit.name, "description": unit.description},
            "group": unit.group or "general",
            "context": context,
            "model": HOSTED_MODEL,
            "temperature": self.temperature,
            "maxTokens": self.max_tokens,
        }
        data = self._post("/components", payload, self._headers())

        if data.get("success") is False:
            raise TerminalGenerationError(
                f"hosted: {data.get('error') or 'generation failed'}",
                backend=self.name,
            )

        code = ((data.get("data") or {}).get("component") or {}).get("code")
        if not code:
            raise TerminalGenerationError("hosted response has no component code", backend=self.name)

        return GeneratedContent(
            content=code,
            backend=self.name,
            metadata={"usage": (data.get("data") or {}).get("usage", {})},
        )

    def complete(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        try:
            return super().complete(unit, context)
        except HostedGenerationError:
            raise
        except GenerationError as e:
            status_code = getattr(e, "status_code", None) or e.details.get("status_code")
            if isinstance(e, RateLimited):
                status_code = 429
            logger.error("hosted_generation_failed", error=str(e), status_code=status_code)
            raise HostedGenerationError(
                str(e),
                guidance=hosted_guidance(status_code, bool(self.token)),
                backend=self.name,
                status_code=status_code,
            ) from e
