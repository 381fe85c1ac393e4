"""Abstract base classes and errors for embedding and chat providers.

Why this exists:
- Tagging, routing and dedup only depend on these two small contracts
- Enables testing with mock providers
- Keeps the HTTP details (endpoints, payload shapes) in one place

How to extend:
1. Subclass EmbeddingProvider or LLMProvider
2. Implement all abstract methods
3. Wire it up in artaka.providers.create_* factories
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel


class ProviderConfig(BaseModel):
    """Base configuration for all providers."""

    provider_type: str
    model_name: str
    endpoint: str
    api_key: Optional[str] = None
    timeout: Optional[float] = None
    extra_params: dict[str, Any] = {}


class EmbeddingProvider(ABC):
    """Abstract interface for embedding providers.

    embed() never raises. A None result means the embedding is unavailable
    and the caller must skip or abort the write that depended on it.
    """

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize provider with configuration."""
        self.config = config

    @abstractmethod
    async def embed(self, text: str) -> Optional[list[float]]:
        """Generate an embedding for a single text.

        Args:
            text: Input text to embed

        Returns:
            Embedding vector, or None if it could not be produced
        """
        pass


class LLMProvider(ABC):
    """Abstract interface for chat-completion providers."""

    def __init__(self, config: ProviderConfig) -> None:
        """Initialize provider with configuration."""
        self.config = config

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        image_data_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Optional[str]:
        """Generate a completion.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt
            temperature: Sampling temperature (server default when None)
            image_data_url: Optional base64 data URL sent as an image part
            model: Override the configured model for this call

        Returns:
            Completion text, or None when the model returned no content

        Raises:
            ProviderError: If the request failed or the endpoint reported an error
        """
        pass


class ProviderError(Exception):
    """Base exception for provider errors."""

    def __init__(self, message: str, provider: str, original_error: Optional[Exception] = None):
        self.message = message
        self.provider = provider
        self.original_error = original_error
        super().__init__(self.message)


class RequestError(ProviderError):
    """A failed outbound HTTP request.

    Subclasses with retryable = True are retried by the resilient client.
    """

    retryable = False

    def __init__(
        self,
        message: str,
        provider: str = "http",
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, provider, original_error)
        self.status_code = status_code


class NetworkError(RequestError):
    """Connection, transport or timeout failure."""

    retryable = True


class RateLimitedError(RequestError):
    """HTTP 429."""

    retryable = True


class ServerError(RequestError):
    """HTTP 5xx."""

    retryable = True


class ClientRequestError(RequestError):
    """HTTP 4xx other than 429, surfaced with the response body verbatim."""


class UndecodableResponseError(RequestError):
    """The response body could not be decoded; not retried."""


class RetryExhaustedError(RequestError):
    """Every attempt failed; carries the last failure."""

    def __init__(self, message: str, attempts: int, last_error: Optional[Exception] = None):
        super().__init__(message, original_error=last_error)
        self.attempts = attempts
        self.last_error = last_error


class EmbeddingUnavailableError(ProviderError):
    """The embedding endpoint answered without a usable vector."""
