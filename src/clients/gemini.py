"""Gemini backend - google-generativeai SDK."""

from typing import Any

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from core.errors import (
    BackendUnavailable,
    InvocationTimeout,
    RateLimited,
    TerminalGenerationError,
)
from core.logging_config import get_logger
from planner.models import UnitSpec
from .base import GeneratedContent, SyncBackend
from .prompts import SYSTEM_PROMPT, build_prompt

logger = get_logger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"


class GeminiBackend(SyncBackend):
    """Gemini API wrapper."""

    def __init__(
        self,
        api_key: str,
        model_name: str = DEFAULT_MODEL,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: float = 90.0,
    ) -> None:
        super().__init__("gemini")
        self.model_name = model_name or DEFAULT_MODEL
        self.timeout = timeout
        genai.configure(api_key=api_key)

        generation_config = genai.GenerationConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
        )
        self.model = genai.GenerativeModel(
            model_name=self.model_name,
            generation_config=generation_config,
            system_instruction=SYSTEM_PROMPT,
        )
        logger.info("model_loaded", backend=self.name, model=self.model_name)

    def _request(self, unit: UnitSpec, context: dict[str, Any]) -> GeneratedContent:
        prompt = build_prompt(unit, context)
        try:
            response = self.model.generate_content(prompt, request_options={"timeout": self.timeout})
            text = response.text
        except (google_exceptions.TooManyRequests, google_exceptions.ResourceExhausted) as e:
            raise RateLimited(f"gemini rate limit: {e}") from e
        except google_exceptions.DeadlineExceeded as e:
            raise InvocationTimeout(f"gemini timeout: {e}") from e
        except (google_exceptions.ServerError, google_exceptions.ServiceUnavailable) as e:
            raise BackendUnavailable(f"gemini unavailable: {e}", backend=self.name) from e
        except google_exceptions.GoogleAPICallError as e:
            raise TerminalGenerationError(f"gemini: {e}", backend=self.name, status_code=e.code) from e
        except ValueError as e:
            # response.text raises when the candidate was blocked
            raise TerminalGenerationError(f"gemini returned no text: {e}", backend=self.name) from e

        return GeneratedContent(content=text, backend=self.name, metadata={"model": self.model_name})
