"""Google Gemini text generation implementing the LLM port."""

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from google import genai

from ....common.rate_limiter import RateLimiter
from ....core.domain.exceptions import (
    CarFinderError,
    LLMConnectionError,
    LLMGenerationError,
    LLMRateLimitError,
)
from ....core.domain.utils import normalize_text
from ....core.ports.llm_port import LLMPort
from ..gemini_client import create_genai_client, is_rate_limited, is_timeout

logger = logging.getLogger(__name__)

ROLE_MAP = {"user": "user", "assistant": "model"}


class GeminiLLMAdapter(LLMPort):
    """Gemini client for the requirement analyzer, classifier and assistant.

    The adapter does not retry; callers decide retry policy per call site.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        timeout_seconds: float = 60.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.api_key = api_key
        self.model_name = model
        self.timeout_seconds = timeout_seconds
        self.rate_limiter = rate_limiter or RateLimiter(None)
        self._client: genai.Client | None = None

    def _get_client(self) -> "genai.Client":
        if self._client is None:
            self._client = create_genai_client(self.api_key, self.timeout_seconds)
        return self._client

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
    ) -> str:
        return self._generate(normalize_text(prompt), system_prompt, temperature, max_tokens)

    def chat(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> str:
        from google.genai import types

        contents = [
            types.Content(
                role=ROLE_MAP.get(message["role"], "user"),
                parts=[types.Part(text=normalize_text(message["content"]))],
            )
            for message in messages
        ]
        return self._generate(contents, system_prompt, temperature, max_tokens)

    def _generate(
        self,
        contents: Any,
        system_prompt: str | None,
        temperature: float,
        max_tokens: int,
    ) -> str:
        from google.genai.types import GenerateContentConfig

        client = self._get_client()
        self.rate_limiter.acquire()
        try:
            response = client.models.generate_content(
                model=self.model_name,
                contents=contents,
                config=GenerateContentConfig(
                    system_instruction=system_prompt,
                    temperature=temperature,
                    max_output_tokens=max_tokens,
                ),
            )
        except CarFinderError:
            raise
        except Exception as e:
            context = {"model": self.model_name}
            if is_rate_limited(e):
                raise LLMRateLimitError(
                    "LLM provider is rate limiting requests", cause=e, context=context
                ) from e
            if is_timeout(e):
                raise LLMConnectionError("LLM request timed out", cause=e, context=context) from e
            raise LLMGenerationError("LLM request failed", cause=e, context=context) from e

        # Safety filters return no candidates
        if not response.candidates or not response.text:
            raise LLMGenerationError(
                "LLM returned an empty completion",
                context={"model": self.model_name},
            )
        return normalize_text(response.text)
