"""LLM Port Interface."""

from abc import ABC, abstractmethod


class LLMPort(ABC):
    """Abstract interface for LLM providers."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float = 0.2,
        max_tokens: int = 4096,
    ) -> str:
        """Generate a response from the LLM."""
        ...

    @abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> str:
        """Generate the next assistant turn for a role/content message list."""
        ...
