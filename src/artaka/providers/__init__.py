"""Provider abstractions: resilient HTTP, embeddings and chat completions."""

from artaka.config.schema import AppConfig
from artaka.providers.base import (
    ClientRequestError,
    EmbeddingProvider,
    LLMProvider,
    ProviderConfig,
    ProviderError,
    RetryExhaustedError,
)
from artaka.providers.http import ResilientClient


def create_embedding_provider(config: AppConfig, client: ResilientClient) -> EmbeddingProvider:
    """Build the embedding adapter from application configuration."""
    from artaka.providers.openai import OpenAIEmbeddingProvider

    return OpenAIEmbeddingProvider(
        ProviderConfig(
            provider_type="openai",
            model_name=config.embedding.model_name or "",
            endpoint=config.embedding.url or "",
            api_key=config.embedding.api_key,
            timeout=config.embedding.timeout,
        ),
        client,
    )


def create_router_llm(config: AppConfig, client: ResilientClient) -> LLMProvider:
    """Chat provider used for command routing (always the local endpoint)."""
    from artaka.providers.openai_llm import OpenAILLMProvider

    return OpenAILLMProvider(
        ProviderConfig(
            provider_type="openai",
            model_name=config.llm.router_model,
            endpoint=config.llm.completion_url or "",
            api_key=config.llm.api_key,
            extra_params=config.llm.extra_params,
        ),
        client,
    )


def create_tagger_llm(config: AppConfig, client: ResilientClient) -> LLMProvider:
    """Chat provider used for tagging, local or remote depending on use_local."""
    from artaka.providers.openai_llm import OpenAILLMProvider

    return OpenAILLMProvider(
        ProviderConfig(
            provider_type="openai",
            model_name=config.tagger_model or "",
            endpoint=config.tagger_url or "",
            api_key=config.tagger_api_key,
            extra_params=config.llm.extra_params,
        ),
        client,
    )


__all__ = [
    "ClientRequestError",
    "EmbeddingProvider",
    "LLMProvider",
    "ProviderConfig",
    "ProviderError",
    "ResilientClient",
    "RetryExhaustedError",
    "create_embedding_provider",
    "create_router_llm",
    "create_tagger_llm",
]
