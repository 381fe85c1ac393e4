"""Unit tests for InMemoryKnowledgeStore."""

import pytest

from artaka.entities import ItemType, KnowledgeItem, Reason
from artaka.storage import create_knowledge_store
from artaka.config.schema import StoreConfig
from artaka.storage.memory import InMemoryKnowledgeStore


@pytest.mark.asyncio
class TestInMemoryKnowledgeStore:
    """Test InMemoryKnowledgeStore functionality."""

    async def test_factory_builds_memory_store(self):
        store = create_knowledge_store(StoreConfig(store_type="memory"))

        assert isinstance(store, InMemoryKnowledgeStore)

    async def test_stored_items_are_copies(self, memory_store):
        item = KnowledgeItem(title="Note", type=ItemType.DOC, tags=["x"])
        item_id = await memory_store.add_item(item)

        item.tags.append("mutated")
        fetched = await memory_store.get_by_id(item_id)
        fetched.tags.append("mutated again")

        assert (await memory_store.get_by_id(item_id)).tags == ["x"]

    async def test_lookup_by_path_and_title(self, memory_store):
        await memory_store.add_item(KnowledgeItem(title="a.txt", type=ItemType.FILE, path="/a.txt"))
        await memory_store.add_item(KnowledgeItem(title="Recipe", type=ItemType.DOC))

        assert (await memory_store.get_by_path("/a.txt")).title == "a.txt"
        assert (await memory_store.get_by_title("RECIPE")).type == ItemType.DOC
        assert await memory_store.get_by_title("recipe", ItemType.FILE) is None

    async def test_list_with_embeddings(self, memory_store):
        await memory_store.add_item(KnowledgeItem(title="with", embedding=[1.0]))
        await memory_store.add_item(KnowledgeItem(title="without"))

        assert [i.title for i in await memory_store.list_with_embeddings()] == ["with"]

    async def test_delete_all(self, memory_store):
        await memory_store.add_item(KnowledgeItem(title="one"))
        await memory_store.add_item(KnowledgeItem(title="two"))

        refused = await memory_store.delete_all(confirm=False)
        done = await memory_store.delete_all(confirm=True)

        assert refused.reason == Reason.NOT_CONFIRMED
        assert done.success is True
        assert done.count == 2
        assert await memory_store.count() == 0
