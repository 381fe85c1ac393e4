"""OpenAI-compatible embedding provider.

Talks to any server exposing the embeddings contract
(POST {model, input} -> {data: [{embedding: [...]}]}), such as LM Studio,
Ollama or OpenAI itself.

Failures never escape embed(): retry exhaustion, error responses,
malformed JSON and empty result sets are logged and reported as None.
"""

from typing import Optional

import httpx

from artaka.observability.logging import get_logger
from artaka.providers.base import (
    EmbeddingProvider,
    EmbeddingUnavailableError,
    ProviderConfig,
    ProviderError,
)
from artaka.providers.http import ResilientClient

logger = get_logger(__name__)


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embedding adapter issuing one request per embed() call.

    Example:
        config = ProviderConfig(
            provider_type="openai",
            model_name="text-embedding-nomic-embed-text-v1.5",
            endpoint="http://localhost:1234/v1/embeddings",
        )
        provider = OpenAIEmbeddingProvider(config, client)
        vector = await provider.embed("Hello world")
    """

    def __init__(self, config: ProviderConfig, client: ResilientClient) -> None:
        super().__init__(config)
        self.client = client
        self.model_name = config.model_name
        self.endpoint = config.endpoint

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def _request_embedding(self, text: str) -> list[float]:
        response = await self.client.post_json(
            self.endpoint,
            {"model": self.model_name, "input": text},
            headers=self._headers(),
            timeout=self.config.timeout,
        )
        if response.status_code >= 400:
            raise EmbeddingUnavailableError(
                f"Embedding endpoint returned {response.status_code}: {response.text}",
                provider="openai",
            )

        try:
            data = response.json()
        except ValueError as e:
            raise EmbeddingUnavailableError(
                "Embedding response is not valid JSON", provider="openai", original_error=e
            )

        items = data.get("data") if isinstance(data, dict) else None
        if not items:
            raise EmbeddingUnavailableError("Embedding response contained no data", provider="openai")

        embedding = items[0].get("embedding") if isinstance(items[0], dict) else None
        if not embedding:
            raise EmbeddingUnavailableError("Embedding response contained an empty vector", provider="openai")
        return [float(x) for x in embedding]

    async def embed(self, text: str) -> Optional[list[float]]:
        """Embed text, returning None on any failure."""
        if not text or not text.strip():
            logger.error("embedding_skipped_empty_text")
            return None

        logger.debug("calling_embeddings_api", text_length=len(text), model=self.model_name)
        try:
            vector = await self._request_embedding(text)
        except ProviderError as e:
            logger.error("embedding_failed", model=self.model_name, error=e.message)
            return None
        except (ValueError, TypeError) as e:
            logger.error("embedding_failed", model=self.model_name, error=str(e))
            return None
        except httpx.HTTPError as e:
            logger.error("embedding_failed", model=self.model_name, error=f"{type(e).__name__}: {e}")
            return None

        logger.debug("embedding_generated", model=self.model_name, dimension=len(vector))
        return vector
