"""Abstract base for language-model providers that speak for participants."""

from abc import ABC, abstractmethod

from governance.models import ModelReply


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class AIProvider(ABC):
    """Abstract base for all AI model providers."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'claude', 'grok')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(self, prompt: str, system: str = "", timeout_sec: float | None = None) -> ModelReply:
        """Generate a reply for the given prompt.

        Args:
            prompt: The user-turn prompt text.
            system: Persona instructions sent as the system prompt.
            timeout_sec: Overrides the configured timeout for this call only.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...
