"""OpenAI-compatible chat-completion provider.

This module provides the chat provider used by the router and the tagger.
Works with local servers (LM Studio, Ollama) and OpenRouter-style endpoints.
"""

from typing import Any, Optional

import httpx

from artaka.observability.logging import get_logger
from artaka.providers.base import ClientRequestError, LLMProvider, ProviderConfig, ProviderError
from artaka.providers.http import ResilientClient

logger = get_logger(__name__)


class OpenAILLMProvider(LLMProvider):
    """LLM provider speaking the /chat/completions contract."""

    def __init__(self, config: ProviderConfig, client: ResilientClient) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration; endpoint is the full completions URL
            client: Shared resilient client
        """
        super().__init__(config)
        self.client = client
        self.model_name = config.model_name
        self.endpoint = config.endpoint

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        image_data_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Optional[str]:
        """Generate a completion using the chat-completions endpoint.

        Raises:
            ProviderError: On retry exhaustion, 4xx responses, malformed JSON
                or an error object in the response body
        """
        messages: list[dict[str, Any]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        if image_data_url:
            messages.append({
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": image_data_url}},
                ],
            })
        else:
            messages.append({"role": "user", "content": prompt})

        payload: dict[str, Any] = {
            **self.config.extra_params,
            "model": model or self.model_name,
            "messages": messages,
        }
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            response = await self.client.post_json(self.endpoint, payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise ProviderError(
                message=f"Chat completion request failed: {type(e).__name__}: {e}",
                provider="openai",
                original_error=e,
            )

        if response.status_code >= 400:
            raise ClientRequestError(
                f"Chat completion error: {response.status_code} - {response.text}",
                provider="openai",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                message=f"Chat completion response is not valid JSON: {e}",
                provider="openai",
                original_error=e,
            )

        if not isinstance(data, dict):
            raise ProviderError(message="Chat completion response is not an object", provider="openai")

        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderError(message=f"Chat completion error: {message}", provider="openai")

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None

        if not content or not str(content).strip():
            logger.warning("no_content_returned", model=payload["model"])
            return None

        return str(content).strip()
