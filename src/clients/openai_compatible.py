"""Chat-completions backend for OpenAI, xAI, OpenRouter and GitHub Models."""

from typing import Any

from core.errors import TerminalGenerationError
from planner.models import UnitSpec
from .base import GeneratedContent, HttpBackend
from .prompts import SYSTEM_PROMPT, build_prompt


class OpenAICompatibleBackend(HttpBackend):
    """Any provider speaking the `/chat/completions` protocol."""

    def __init__(
        self,
        name: str,
        base_url: str,
        api_key: str,
        model_name: str,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: float = 90.0,
    ) -> None:
        super().__init__(name, base_url, timeout)
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._headers = {"Authorization": f"Bearer {api_key}"}

    def _request(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        payload = {
            "model": self.model_name,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(unit, context)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        data = self._post("/chat/completions", payload, self._headers)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise TerminalGenerationError(f"{self.name} response has no content", backend=self.name) from e
        if not content:
            raise TerminalGenerationError(f"{self.name} returned empty content", backend=self.name)

        return GeneratedContent(
            content=content,
            backend=self.name,
            metadata={"model": data.get("model", self.model_name), "usage": data.get("usage", {})},
        )
