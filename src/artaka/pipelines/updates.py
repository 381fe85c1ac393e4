"""Update pipeline: re-tag files and edit saved notes.

Why this exists:
- A file that changed on disk is re-tagged by deleting its item and
  tagging it again (the two steps are not atomic)
- A note is edited in place; only title, description and content changes
  trigger a new embedding

How to use:
    pipeline = UpdatePipeline(store, tagging_pipeline, embedding_provider)
    result = await pipeline.update_knowledge_by_title("Wifi password", {"content": "hunter2"})
"""

from typing import Any, Optional, Union

from artaka.entities import BatchResult, ItemType, KnowledgeItem, KnowledgeUpdates, OperationResult, Reason
from artaka.observability.logging import get_logger
from artaka.pipelines.knowledge import embedding_text
from artaka.pipelines.tagging import TaggingPipeline, TagStatus
from artaka.providers.base import EmbeddingProvider
from artaka.storage.base import KnowledgeStore, StorageError

logger = get_logger(__name__)

Updates = Union[KnowledgeUpdates, dict[str, Any]]


class UpdatePipeline:
    """Pipeline for updating stored files and notes."""

    def __init__(
        self,
        store: KnowledgeStore,
        tagging: TaggingPipeline,
        embedding_provider: EmbeddingProvider,
    ):
        self.store = store
        self.tagging = tagging
        self.embedding_provider = embedding_provider

    async def update_file(self, path: str, description: Optional[str] = None) -> OperationResult:
        """Delete the stored item for a path and tag the file again."""
        try:
            existing = await self.store.get_by_path(path)
            if not existing:
                logger.warning("file_not_indexed", path=path)
                return OperationResult.fail(Reason.NOT_FOUND, message=f"File not indexed: {path}")
            await self.store.delete_by_id(existing.id)
        except StorageError as e:
            logger.error("update_file_failed", path=path, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)

        status = await self.tagging.tag_single_file(path, description)
        if status != TagStatus.TAGGED:
            logger.error("retag_failed", path=path, status=status.value)
            return OperationResult.fail(Reason.TAG_FAILED, message=f"Re-tagging failed: {path}")

        logger.info("file_updated", path=path)
        return OperationResult.ok(f"Updated {path}")

    async def batch_update_files(self, paths: list[str]) -> BatchResult:
        """Update each path in order; one failure never stops the batch."""
        result = BatchResult()
        for path in paths:
            result.record(path, await self.update_file(path))

        logger.info(
            "batch_update_completed",
            succeeded=len(result.succeeded),
            not_found=len(result.not_found),
            failed=len(result.failed),
        )
        return result

    async def update_knowledge(self, item_id: int, updates: Updates) -> OperationResult:
        """Merge partial updates into the note with the given id."""
        try:
            existing = await self.store.get_by_id(item_id, ItemType.DOC)
        except StorageError as e:
            logger.error("update_knowledge_failed", item_id=item_id, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)

        if not existing:
            logger.warning("knowledge_not_found", item_id=item_id)
            return OperationResult.fail(Reason.NOT_FOUND, message=f"No knowledge entry with id {item_id}")
        return await self._apply(existing, updates)

    async def update_knowledge_by_title(self, title: str, updates: Updates) -> OperationResult:
        """Merge partial updates into the note whose title matches, ignoring case."""
        try:
            existing = await self.store.get_by_title(title, ItemType.DOC)
        except StorageError as e:
            logger.error("update_knowledge_failed", title=title, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)

        if not existing:
            logger.warning("knowledge_not_found", title=title)
            return OperationResult.fail(Reason.NOT_FOUND, message=f'No knowledge entry titled "{title}"')
        return await self._apply(existing, updates)

    async def _apply(self, existing: KnowledgeItem, updates: Updates) -> OperationResult:
        try:
            if not isinstance(updates, KnowledgeUpdates):
                updates = KnowledgeUpdates.model_validate(updates)
        except ValueError as e:
            return OperationResult.fail(Reason.INVALID_MODEL_OUTPUT, error=str(e))

        merged = existing.model_copy(
            update={
                "title": updates.title or existing.title,
                "description": updates.description or existing.description,
                "tags": updates.tags or existing.tags,
                "content": updates.content or existing.content,
            }
        )

        if updates.changes_embedding:
            embedding = await self.embedding_provider.embed(
                embedding_text(merged.title, merged.description, merged.content)
            )
            if embedding is None:
                logger.warning("reembedding_failed_keeping_old", item_id=existing.id)
            else:
                merged.embedding = embedding

        try:
            updated = await self.store.update_item(merged)
        except StorageError as e:
            logger.error("update_knowledge_failed", item_id=existing.id, error=e.message)
            return OperationResult.fail(Reason.DB_ERROR, error=e.message)

        if not updated:
            return OperationResult.fail(Reason.NOT_FOUND, message=f"No knowledge entry with id {existing.id}")

        logger.info("knowledge_updated", item_id=existing.id, title=merged.title)
        return OperationResult.ok(f'Updated "{merged.title}"', item_id=existing.id)
