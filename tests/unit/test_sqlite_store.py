"""Unit tests for SQLiteKnowledgeStore."""

import os

import pytest

from artaka.entities import ItemType, KnowledgeItem, Reason
from artaka.storage.base import StorageError


def _file_item(path, embedding=None):
    return KnowledgeItem(
        title=os.path.basename(path),
        type=ItemType.FILE,
        path=path,
        tags=["a", "b"],
        description=f"About {path}",
        embedding=embedding,
    )


@pytest.mark.asyncio
class TestSQLiteKnowledgeStore:
    """Test SQLiteKnowledgeStore functionality."""

    async def test_add_and_get_round_trip(self, sqlite_store):
        item_id = await sqlite_store.add_item(
            KnowledgeItem(
                title="Wifi",
                type=ItemType.DOC,
                tags=["network", "home"],
                description="Home wifi details",
                content="SSID artaka",
                embedding=[0.5, -0.25, 1.0],
            )
        )

        stored = await sqlite_store.get_by_id(item_id)

        assert stored.id == item_id
        assert stored.title == "Wifi"
        assert stored.type == ItemType.DOC
        assert stored.path is None
        assert stored.tags == ["network", "home"]
        assert stored.content == "SSID artaka"
        assert stored.embedding == [0.5, -0.25, 1.0]

    async def test_ids_are_assigned_incrementally(self, sqlite_store):
        first = await sqlite_store.add_item(_file_item("/a.txt"))
        second = await sqlite_store.add_item(_file_item("/b.txt"))

        assert second > first

    async def test_get_by_id_filters_type(self, sqlite_store):
        item_id = await sqlite_store.add_item(_file_item("/a.txt"))

        assert await sqlite_store.get_by_id(item_id, ItemType.DOC) is None
        assert (await sqlite_store.get_by_id(item_id, ItemType.FILE)).path == "/a.txt"

    async def test_get_by_path_is_exact(self, sqlite_store):
        await sqlite_store.add_item(_file_item("/notes/Todo.md"))

        assert (await sqlite_store.get_by_path("/notes/Todo.md")).title == "Todo.md"
        assert await sqlite_store.get_by_path("/notes/todo.md") is None

    async def test_get_by_title_ignores_case(self, sqlite_store):
        await sqlite_store.add_item(KnowledgeItem(title="Wifi Password", type=ItemType.DOC))

        found = await sqlite_store.get_by_title("WIFI password", ItemType.DOC)

        assert found is not None
        assert found.title == "Wifi Password"
        assert await sqlite_store.get_by_title("wifi password", ItemType.FILE) is None

    async def test_list_with_embeddings_skips_missing_and_corrupt(self, sqlite_store):
        await sqlite_store.add_item(_file_item("/ok.txt", embedding=[1.0, 0.0]))
        await sqlite_store.add_item(_file_item("/none.txt"))
        corrupt_id = await sqlite_store.add_item(_file_item("/corrupt.txt", embedding=[1.0, 0.0]))

        await sqlite_store.connection.execute(
            "UPDATE knowledge_items SET embedding = ? WHERE id = ?", (b"\x01\x02\x03", corrupt_id)
        )
        await sqlite_store.connection.commit()

        items = await sqlite_store.list_with_embeddings()

        assert [item.path for item in items] == ["/ok.txt"]
        assert len(await sqlite_store.list_items()) == 3

    async def test_update_item(self, sqlite_store):
        item_id = await sqlite_store.add_item(
            KnowledgeItem(title="Old", type=ItemType.DOC, content="old", embedding=[1.0])
        )
        item = await sqlite_store.get_by_id(item_id)

        updated = await sqlite_store.update_item(
            item.model_copy(update={"title": "New", "content": "new", "embedding": [0.0, 2.0]})
        )

        stored = await sqlite_store.get_by_id(item_id)
        assert updated is True
        assert stored.title == "New"
        assert stored.content == "new"
        assert stored.embedding == [0.0, 2.0]

    async def test_update_missing_item(self, sqlite_store):
        assert await sqlite_store.update_item(KnowledgeItem(id=999, title="Ghost")) is False

    async def test_delete_by_id(self, sqlite_store):
        item_id = await sqlite_store.add_item(_file_item("/a.txt"))

        assert await sqlite_store.delete_by_id(item_id) is True
        assert await sqlite_store.delete_by_id(item_id) is False
        assert await sqlite_store.count() == 0

    async def test_duplicate_paths_are_not_rejected(self, sqlite_store):
        await sqlite_store.add_item(_file_item("/a.txt"))
        await sqlite_store.add_item(_file_item("/a.txt"))

        assert await sqlite_store.count() == 2

    async def test_delete_all_requires_confirmation(self, sqlite_store):
        await sqlite_store.add_item(_file_item("/a.txt"))

        result = await sqlite_store.delete_all()

        assert result.success is False
        assert result.reason == Reason.NOT_CONFIRMED
        assert await sqlite_store.count() == 1

    async def test_delete_all_reports_prior_count(self, sqlite_store):
        for name in ("a", "b", "c"):
            await sqlite_store.add_item(_file_item(f"/{name}.txt"))

        result = await sqlite_store.delete_all(confirm=True)

        assert result.success is True
        assert result.count == 3
        assert await sqlite_store.count() == 0

    async def test_cleanup_orphaned(self, sqlite_store, temp_dir):
        existing = []
        for name in ("one.txt", "two.txt"):
            path = os.path.join(temp_dir, name)
            with open(path, "w") as f:
                f.write(name)
            existing.append(path)
            await sqlite_store.add_item(_file_item(path))
        missing = os.path.join(temp_dir, "gone.txt")
        await sqlite_store.add_item(_file_item(missing))
        await sqlite_store.add_item(KnowledgeItem(title="A note", type=ItemType.DOC))

        result = await sqlite_store.cleanup_orphaned()

        assert result.checked == 3
        assert result.deleted == [missing]
        assert sorted(result.kept) == sorted(existing)
        assert result.errors == []
        assert await sqlite_store.count() == 3

    async def test_operations_before_initialize_raise(self, temp_dir):
        from artaka.config.schema import StoreConfig
        from artaka.storage.sqlite import SQLiteKnowledgeStore

        store = SQLiteKnowledgeStore(
            StoreConfig(connection_string=f"sqlite:///{os.path.join(temp_dir, 'x.db')}")
        )

        with pytest.raises(StorageError):
            await store.count()

    async def test_data_survives_reopen(self, temp_dir):
        from artaka.config.schema import StoreConfig
        from artaka.storage.sqlite import SQLiteKnowledgeStore

        config = StoreConfig(connection_string=f"sqlite:///{os.path.join(temp_dir, 'nested', 'kb.db')}")
        async with SQLiteKnowledgeStore(config) as store:
            await store.add_item(_file_item("/a.txt", embedding=[0.25, 0.75]))

        async with SQLiteKnowledgeStore(config) as store:
            item = await store.get_by_path("/a.txt")

        assert item.embedding == [0.25, 0.75]
