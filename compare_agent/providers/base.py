"""Abstract base for all response providers."""

import asyncio
from abc import ABC, abstractmethod

from compare_agent.models import Response


class ProviderError(Exception):
    """Raised when a provider call fails or returns unusable data."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


class ResponseProvider(ABC):
    """A model backend that turns a prompt into a Response."""

    @abstractmethod
    def name(self) -> str:
        """Return the short provider name (e.g. 'openai', 'claude')."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    @abstractmethod
    async def generate(self, prompt: str, cancel: asyncio.Event) -> Response:
        """Generate a response for the given prompt.

        Args:
            prompt: The full prompt text to send.
            cancel: Shared shutdown signal. Implementations should not start a
                request once it is set; the pipeline abandons in-flight calls
                when it fires.

        Returns:
            Response with text, token count and estimated cost.

        Raises:
            ProviderError: On API failure, timeout, or invalid response.
        """
        ...
