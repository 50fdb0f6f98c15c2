"""Provider interface shared by every LLM backend the arena can generate with."""

from abc import ABC, abstractmethod

from colosseum.models import ModelResponse


class ProviderError(Exception):
    """A generation call failed: missing key, SDK error, timeout or empty reply."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """One configured model. Implementations wrap an async SDK client."""

    @abstractmethod
    def name(self) -> str:
        """Settings key of this provider (e.g. 'gemini')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        ...

    @abstractmethod
    async def generate(self, prompt: str, purpose: str = "generate") -> ModelResponse:
        """Send one prompt and return the raw text reply.

        `purpose` ("create", "continue", "ping") only labels logs and lets
        providers skip JSON mode for pings.

        Raises:
            ProviderError: On API failure, timeout, or an empty reply.
        """
        ...

    def label(self) -> str:
        return f"{self.name()}/{self.model_string()}"
