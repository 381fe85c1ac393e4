"""In-memory knowledge store for testing and development.

Keeps items in a dict keyed by an incrementing id. Items are copied on the
way in and out so callers cannot mutate stored state by accident.
"""

from typing import Optional

from artaka.config.schema import StoreConfig
from artaka.entities import ItemType, KnowledgeItem
from artaka.storage.base import KnowledgeStore


class InMemoryKnowledgeStore(KnowledgeStore):
    """In-memory knowledge store implementation."""

    storage_type = "memory"

    def __init__(self, config: Optional[StoreConfig] = None) -> None:
        """Initialize in-memory knowledge store."""
        super().__init__(config or StoreConfig(store_type="memory"))
        self.items: dict[int, KnowledgeItem] = {}
        self._next_id = 1

    async def initialize(self) -> None:
        """Initialize the store."""
        pass

    def _matches(self, item: KnowledgeItem, item_type: Optional[ItemType]) -> bool:
        return item_type is None or item.type == item_type

    async def add_item(self, item: KnowledgeItem) -> int:
        item_id = self._next_id
        self._next_id += 1
        self.items[item_id] = item.model_copy(update={"id": item_id}, deep=True)
        return item_id

    async def get_by_id(self, item_id: int, item_type: Optional[ItemType] = None) -> Optional[KnowledgeItem]:
        item = self.items.get(item_id)
        if item is None or not self._matches(item, item_type):
            return None
        return item.model_copy(deep=True)

    async def get_by_path(self, path: str) -> Optional[KnowledgeItem]:
        for item in self.items.values():
            if item.type == ItemType.FILE and item.path == path:
                return item.model_copy(deep=True)
        return None

    async def get_by_title(self, title: str, item_type: Optional[ItemType] = None) -> Optional[KnowledgeItem]:
        wanted = title.lower()
        for item in self.items.values():
            if self._matches(item, item_type) and item.title.lower() == wanted:
                return item.model_copy(deep=True)
        return None

    async def list_items(self, item_type: Optional[ItemType] = None) -> list[KnowledgeItem]:
        return [item.model_copy(deep=True) for item in self.items.values() if self._matches(item, item_type)]

    async def list_with_embeddings(self, item_type: Optional[ItemType] = None) -> list[KnowledgeItem]:
        return [item for item in await self.list_items(item_type) if item.embedding]

    async def update_item(self, item: KnowledgeItem) -> bool:
        if item.id not in self.items:
            return False
        self.items[item.id] = item.model_copy(deep=True)
        return True

    async def delete_by_id(self, item_id: int) -> bool:
        return self.items.pop(item_id, None) is not None

    async def count(self) -> int:
        return len(self.items)

    async def clear(self) -> int:
        count = len(self.items)
        self.items.clear()
        return count

    async def close(self) -> None:
        """Close connections and cleanup resources."""
        pass
