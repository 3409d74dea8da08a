"""Anthropic Messages API backend."""

from typing import Any

from core.errors import TerminalGenerationError
from planner.models import UnitSpec
from .base import GeneratedContent, HttpBackend
from .prompts import SYSTEM_PROMPT, build_prompt

API_VERSION = "2023-06-01"


class AnthropicBackend(HttpBackend):
    def __init__(
        self,
        api_key: str,
        model_name: str,
        base_url: str = "https://api.anthropic.com/v1",
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: float = 90.0,
    ) -> None:
        super().__init__("anthropic", base_url, timeout)
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._headers = {"x-api-key": api_key, "anthropic-version": API_VERSION}

    def _request(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        payload = {
            "model": self.model_name,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": build_prompt(unit, context)}],
        }
        data = self._post("/messages", payload, self._headers)

        blocks = data.get("content") or []
        text = "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")
        if not text:
            raise TerminalGenerationError("anthropic returned empty content", backend=self.name)

        return GeneratedContent(
            content=text,
            backend=self.name,
            metadata={"model": data.get("model", self.model_name), "usage": data.get("usage", {})},
        )
