"""Two-stage duplicate detection for saved knowledge entries.

Stage 1 compares titles case-insensitively and is cheap. Stage 2 compares
the candidate embedding against every stored doc embedding by cosine
similarity and stops at the first match at or above the threshold.
"""

import math
from typing import Optional, Sequence

from artaka.core.similarity import cosine_similarity
from artaka.entities import DuplicateReport, ItemType
from artaka.observability.logging import get_logger
from artaka.storage.base import KnowledgeStore

logger = get_logger(__name__)

DEFAULT_DEDUP_THRESHOLD = 0.9


class DuplicateChecker:
    """Detects doc entries that already exist in the store."""

    def __init__(self, store: KnowledgeStore, threshold: float = DEFAULT_DEDUP_THRESHOLD):
        self.store = store
        self.threshold = threshold

    async def check(self, title: str, embedding: Sequence[float]) -> Optional[DuplicateReport]:
        """Return a report if the candidate duplicates a stored doc, else None."""
        exact = await self.store.get_by_title(title, ItemType.DOC)
        if exact:
            logger.info("exact_title_match_found", title=title, existing_id=exact.id)
            return DuplicateReport(reason="exact_title", score=1.0, existing=exact)

        for doc in await self.store.list_with_embeddings(ItemType.DOC):
            try:
                similarity = cosine_similarity(embedding, doc.embedding)
            except ValueError as e:
                logger.warning("skipping_invalid_embedding", title=doc.title, error=str(e))
                continue

            if not math.isnan(similarity) and similarity >= self.threshold:
                logger.info(
                    "semantic_match_found",
                    title=title,
                    existing_id=doc.id,
                    similarity=round(similarity, 3),
                )
                return DuplicateReport(reason="semantic_similarity", score=similarity, existing=doc)

        return None
