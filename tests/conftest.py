"""Shared fixtures: scripted providers and stores."""

import os
import tempfile
from typing import Callable, Optional

import pytest

from artaka.config.schema import StoreConfig
from artaka.providers.base import EmbeddingProvider, LLMProvider, ProviderConfig
from artaka.storage.memory import InMemoryKnowledgeStore
from artaka.storage.sqlite import SQLiteKnowledgeStore


class ScriptedLLM(LLMProvider):
    """LLM provider returning queued outputs and recording every call.

    A queued exception is raised instead of returned.
    """

    def __init__(self, outputs=None):
        super().__init__(ProviderConfig(provider_type="fake", model_name="fake-llm", endpoint=""))
        self.outputs = list(outputs or [])
        self.calls: list[dict] = []

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        image_data_url: Optional[str] = None,
        model: Optional[str] = None,
    ) -> Optional[str]:
        self.calls.append(
            {
                "prompt": prompt,
                "system_prompt": system_prompt,
                "temperature": temperature,
                "image_data_url": image_data_url,
                "model": model,
            }
        )
        if not self.outputs:
            return None
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return output


class FakeEmbeddingProvider(EmbeddingProvider):
    """Deterministic embeddings.

    Texts found in `vectors` (matched by prefix) get that vector; everything
    else gets `default`. Set `fail` to make embed() return None.
    """

    def __init__(self, vectors: Optional[dict[str, list[float]]] = None, default=None):
        super().__init__(ProviderConfig(provider_type="fake", model_name="fake-embed", endpoint=""))
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0, 0.0]
        self.fail: bool | Callable[[str], bool] = False
        self.texts: list[str] = []

    async def embed(self, text: str) -> Optional[list[float]]:
        self.texts.append(text)
        if self.fail is True or (callable(self.fail) and self.fail(text)):
            return None
        for prefix, vector in self.vectors.items():
            if text.startswith(prefix):
                return list(vector)
        return list(self.default)


@pytest.fixture
def embedder():
    return FakeEmbeddingProvider()


@pytest.fixture
def memory_store():
    return InMemoryKnowledgeStore()


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as path:
        yield path


@pytest.fixture
async def sqlite_store(temp_dir):
    store = SQLiteKnowledgeStore(
        StoreConfig(store_type="sqlite", connection_string=f"sqlite:///{os.path.join(temp_dir, 'test.db')}")
    )
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def make_llm():
    """Factory for ScriptedLLM instances."""
    return ScriptedLLM
