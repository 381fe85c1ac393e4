"""Abstract base class for knowledge stores.

Why this exists:
- Handlers depend on one small storage contract, not on SQLite
- Enables testing with the in-memory implementation
- delete_all() and cleanup_orphaned() are written once on top of the
  primitive operations

The store does not enforce path or title uniqueness. Handlers check before
inserting, and that check is not atomic with the insert.
"""

import os
from abc import ABC, abstractmethod
from typing import Optional

from artaka.config.schema import StoreConfig
from artaka.entities import CleanupResult, DeleteAllResult, ItemType, KnowledgeItem, Reason
from artaka.observability.logging import get_logger

logger = get_logger(__name__)


class KnowledgeStore(ABC):
    """Abstract interface for knowledge item storage.

    Lifecycle: initialize() opens the connection, close() releases it. The
    owner (see artaka.service.context) calls both; handlers only receive an
    already initialized store.
    """

    storage_type = "abstract"

    def __init__(self, config: StoreConfig) -> None:
        """Initialize storage with configuration."""
        self.config = config

    @abstractmethod
    async def initialize(self) -> None:
        """Open the connection and create the schema if needed."""
        pass

    @abstractmethod
    async def add_item(self, item: KnowledgeItem) -> int:
        """Insert an item.

        Args:
            item: Item to store (its id is ignored)

        Returns:
            The new item id
        """
        pass

    @abstractmethod
    async def get_by_id(self, item_id: int, item_type: Optional[ItemType] = None) -> Optional[KnowledgeItem]:
        """Retrieve an item by id, optionally restricted to one type."""
        pass

    @abstractmethod
    async def get_by_path(self, path: str) -> Optional[KnowledgeItem]:
        """Retrieve the file item stored for an exact path."""
        pass

    @abstractmethod
    async def get_by_title(self, title: str, item_type: Optional[ItemType] = None) -> Optional[KnowledgeItem]:
        """Retrieve an item by case-insensitive title."""
        pass

    @abstractmethod
    async def list_items(self, item_type: Optional[ItemType] = None) -> list[KnowledgeItem]:
        """List every item, optionally restricted to one type."""
        pass

    @abstractmethod
    async def list_with_embeddings(self, item_type: Optional[ItemType] = None) -> list[KnowledgeItem]:
        """List items that have a readable embedding."""
        pass

    @abstractmethod
    async def update_item(self, item: KnowledgeItem) -> bool:
        """Overwrite title, tags, description, content and embedding by id.

        Returns:
            True if a row was updated
        """
        pass

    @abstractmethod
    async def delete_by_id(self, item_id: int) -> bool:
        """Delete one item.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    async def count(self) -> int:
        """Number of stored items."""
        pass

    @abstractmethod
    async def clear(self) -> int:
        """Delete every item unconditionally.

        Returns:
            Number of items deleted
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connections and cleanup resources."""
        pass

    async def delete_all(self, confirm: bool = False) -> DeleteAllResult:
        """Delete every item, but only when explicitly confirmed.

        Args:
            confirm: Must be True to proceed

        Returns:
            DeleteAllResult with the prior row count, or reason not_confirmed
        """
        if not confirm:
            logger.error("delete_all_not_confirmed")
            return DeleteAllResult(
                success=False,
                reason=Reason.NOT_CONFIRMED,
                message="Confirmation required to delete all entries",
            )

        try:
            count = await self.count()
            await self.clear()
        except StorageError as e:
            logger.error("delete_all_failed", error=e.message)
            return DeleteAllResult(success=False, reason=Reason.DB_ERROR, error=e.message)

        logger.info("deleted_all_entries", count=count)
        return DeleteAllResult(success=True, count=count, message=f"Deleted {count} entries")

    async def cleanup_orphaned(self) -> CleanupResult:
        """Delete file items whose path no longer exists on disk."""
        files = [item for item in await self.list_items(ItemType.FILE) if item.path]
        result = CleanupResult(checked=len(files))

        logger.info("orphan_check_started", file_count=len(files))

        for item in files:
            try:
                if os.path.exists(item.path):
                    result.kept.append(item.path)
                    continue
                await self.delete_by_id(item.id)
                result.deleted.append(item.path)
                logger.info("removed_orphaned_item", title=item.title, path=item.path)
            except (StorageError, OSError) as e:
                result.errors.append({"path": item.path, "error": str(e)})
                logger.error("orphan_check_failed", path=item.path, error=str(e))

        logger.info(
            "orphan_check_completed",
            deleted=len(result.deleted),
            kept=len(result.kept),
            errors=len(result.errors),
        )
        return result

    async def __aenter__(self) -> "KnowledgeStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


class StorageError(Exception):
    """Base exception for storage errors."""

    def __init__(self, message: str, storage_type: str, original_error: Exception | None = None):
        self.message = message
        self.storage_type = storage_type
        self.original_error = original_error
        super().__init__(self.message)
