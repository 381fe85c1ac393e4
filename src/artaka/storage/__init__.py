"""Storage layer: knowledge item stores."""

from artaka.config.schema import StoreConfig, StoreType
from artaka.storage.base import KnowledgeStore, StorageError


def create_knowledge_store(config: StoreConfig) -> KnowledgeStore:
    """Factory function to create knowledge stores based on configuration.

    Args:
        config: Store configuration with store_type

    Returns:
        Store instance; call initialize() before use

    Raises:
        ValueError: If store_type is unknown

    Example:
        store = create_knowledge_store(StoreConfig(store_type="memory"))
        await store.initialize()
    """
    store_type = StoreType(config.store_type)

    if store_type == StoreType.MEMORY:
        from artaka.storage.memory import InMemoryKnowledgeStore

        return InMemoryKnowledgeStore(config)

    elif store_type == StoreType.SQLITE:
        from artaka.storage.sqlite import SQLiteKnowledgeStore

        return SQLiteKnowledgeStore(config)

    raise ValueError(
        f"Unknown knowledge store type: '{config.store_type}'. Supported types: memory, sqlite"
    )


__all__ = [
    "KnowledgeStore",
    "StorageError",
    "create_knowledge_store",
]
