"""Knowledge pipeline: save free-form notes with dedup.

Flow for save_entry():
1. Ask the tagging model for any missing title, description or tags
2. Embed title, description and content together
3. Skip the insert if the entry duplicates a stored note
4. Insert a doc item
"""

import json
from typing import Any, Union

from artaka.core.dedup import DuplicateChecker
from artaka.core.prompts import NO_THINK, TAGGER_PROMPT
from artaka.core.text import parse_json_object
from artaka.entities import ItemType, KnowledgeEntry, KnowledgeItem, Reason, SaveResult
from artaka.observability.logging import get_logger
from artaka.providers.base import EmbeddingProvider, LLMProvider, ProviderError
from artaka.storage.base import KnowledgeStore, StorageError

logger = get_logger(__name__)


def embedding_text(title: str, description: str, content: str | None) -> str:
    """Text embedded for a note; shared by save and update."""
    return f"{title}\n{description}\n{content or ''}"


class KnowledgePipeline:
    """Pipeline for saving knowledge entries."""

    def __init__(
        self,
        store: KnowledgeStore,
        llm: LLMProvider,
        embedding_provider: EmbeddingProvider,
        duplicate_checker: DuplicateChecker,
    ):
        self.store = store
        self.llm = llm
        self.embedding_provider = embedding_provider
        self.duplicate_checker = duplicate_checker

    async def _fill_missing(self, entry: KnowledgeEntry, missing: list[str]) -> KnowledgeEntry:
        """One corrective model call filling exactly the missing fields.

        Raises:
            ProviderError: If the model call failed or returned nothing
            ValueError: If the model output is not a usable JSON object
        """
        prompt = (
            "Fill in the missing fields for this knowledge entry.\n\n"
            f"User's content: {entry.content or ''}\n"
            "Provide JSON with keys: title, description, tags.\n"
            f"Currently missing keys: {json.dumps(missing)}"
        )
        output = await self.llm.generate(f"{prompt}\n{NO_THINK}", system_prompt=TAGGER_PROMPT)
        if not output:
            raise ProviderError("No content returned by the model", provider="tagger")

        generated = parse_json_object(output)
        filled = {name: generated[name] for name in missing if generated.get(name)}
        return KnowledgeEntry.model_validate({**entry.model_dump(), **filled})

    async def save_entry(self, entry: Union[KnowledgeEntry, dict[str, Any]]) -> SaveResult:
        """Save a knowledge entry unless it duplicates an existing one.

        Args:
            entry: Entry or raw dict with title, description, tags, content

        Returns:
            SaveResult; on duplicate, reason is duplicate and the report says why
        """
        try:
            if not isinstance(entry, KnowledgeEntry):
                entry = KnowledgeEntry.model_validate(entry)
        except ValueError as e:
            logger.error("invalid_knowledge_entry", error=str(e))
            return SaveResult(success=False, reason=Reason.INVALID_MODEL_OUTPUT, error=str(e))

        missing = entry.missing_fields()
        if missing:
            logger.info("filling_missing_fields", missing=missing)
            try:
                entry = await self._fill_missing(entry, missing)
            except ProviderError as e:
                logger.error("fill_missing_failed", error=e.message)
                return SaveResult(success=False, reason=Reason.MODEL_ERROR, error=e.message)
            except ValueError as e:
                logger.error("fill_missing_invalid_output", error=str(e))
                return SaveResult(success=False, reason=Reason.INVALID_MODEL_OUTPUT, error=str(e))

        if not entry.title:
            return SaveResult(
                success=False, reason=Reason.INVALID_MODEL_OUTPUT, error="Entry has no title"
            )

        embedding = await self.embedding_provider.embed(
            embedding_text(entry.title, entry.description or "", entry.content)
        )
        if embedding is None:
            logger.error("embedding_failed", title=entry.title)
            return SaveResult(success=False, reason=Reason.EMBEDDING_FAILED)

        try:
            duplicate = await self.duplicate_checker.check(entry.title, embedding)
        except StorageError as e:
            logger.error("duplicate_check_failed", error=e.message)
            return SaveResult(success=False, reason=Reason.DB_ERROR, error=e.message)

        if duplicate:
            logger.warning(
                "duplicate_entry_skipped",
                reason=duplicate.reason,
                score=round(duplicate.score, 3),
                existing=duplicate.existing.title,
                new=entry.title,
            )
            return SaveResult(
                success=False,
                reason=Reason.DUPLICATE,
                message=f'Duplicate of "{duplicate.existing.title}"',
                duplicate=duplicate,
            )

        item = KnowledgeItem(
            title=entry.title,
            type=ItemType.DOC,
            tags=entry.tags or [],
            description=entry.description or "",
            content=entry.content or "",
            embedding=embedding,
        )
        try:
            item_id = await self.store.add_item(item)
        except StorageError as e:
            logger.error("knowledge_insert_failed", error=e.message)
            return SaveResult(success=False, reason=Reason.DB_ERROR, error=e.message)

        logger.info("knowledge_saved", title=item.title, item_id=item_id)
        return SaveResult(success=True, message="Knowledge saved successfully", item_id=item_id)
