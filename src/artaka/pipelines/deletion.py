"""Deletion pipeline: remove files and notes from the index."""

from artaka.entities import (
    BatchResult,
    CleanupResult,
    DeleteAllResult,
    ItemType,
    KnowledgeItem,
    OperationResult,
    Reason,
)
from artaka.observability.logging import get_logger
from artaka.storage.base import KnowledgeStore, StorageError

logger = get_logger(__name__)


class DeletionPipeline:
    """Pipeline for deleting stored items.

    Nothing here touches the filesystem; deleting a file item only removes
    it from the index.
    """

    def __init__(self, store: KnowledgeStore):
        self.store = store

    async def _delete(self, item: KnowledgeItem | None, label: str) -> OperationResult:
        if not item:
            logger.warning("delete_target_not_found", target=label)
            return OperationResult.fail(Reason.NOT_FOUND, message=f"Not found: {label}")

        try:
            deleted = await self.store.delete_by_id(item.id)
        except StorageError as e:
            logger.error("delete_failed", target=label, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)

        if not deleted:
            return OperationResult.fail(Reason.NOT_FOUND, message=f"Not found: {label}")

        logger.info("item_deleted", target=label, item_id=item.id)
        return OperationResult.ok(f"Deleted {label}", item_id=item.id)

    async def delete_file(self, path: str) -> OperationResult:
        """Delete the file item stored for a path."""
        try:
            item = await self.store.get_by_path(path)
        except StorageError as e:
            logger.error("delete_failed", target=path, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)
        return await self._delete(item, path)

    async def delete_knowledge(self, item_id: int) -> OperationResult:
        """Delete a note by id."""
        try:
            item = await self.store.get_by_id(item_id, ItemType.DOC)
        except StorageError as e:
            logger.error("delete_failed", target=item_id, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)
        return await self._delete(item, f"knowledge #{item_id}")

    async def delete_knowledge_by_title(self, title: str) -> OperationResult:
        """Delete a note by case-insensitive title."""
        try:
            item = await self.store.get_by_title(title, ItemType.DOC)
        except StorageError as e:
            logger.error("delete_failed", target=title, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)
        return await self._delete(item, f'"{title}"')

    async def batch_delete_files(self, paths: list[str]) -> BatchResult:
        """Delete each path in order; one failure never stops the batch."""
        result = BatchResult()
        for path in paths:
            result.record(path, await self.delete_file(path))

        logger.info(
            "batch_delete_completed",
            succeeded=len(result.succeeded),
            not_found=len(result.not_found),
            failed=len(result.failed),
        )
        return result

    async def delete_all(self, confirm: bool = False) -> DeleteAllResult:
        return await self.store.delete_all(confirm=confirm)

    async def cleanup_orphaned(self) -> CleanupResult:
        try:
            return await self.store.cleanup_orphaned()
        except StorageError as e:
            logger.error("orphan_cleanup_failed", error=e.message)
            return CleanupResult(errors=[{"path": None, "error": e.message}])
