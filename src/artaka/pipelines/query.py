"""Query pipeline: semantic search over every indexed item.

Flow:
1. Embed the query
2. Rank all items that have an embedding by cosine similarity
3. Return the top_k results, best first

The display floor only filters what is logged and printed. The returned
list always holds the full top_k.
"""

from typing import Optional

from artaka.core.similarity import rank_by_similarity
from artaka.entities import SearchResult
from artaka.observability.logging import get_logger
from artaka.providers.base import EmbeddingProvider
from artaka.storage.base import KnowledgeStore

logger = get_logger(__name__)


class QueryPipeline:
    """Pipeline for querying the knowledge store."""

    def __init__(
        self,
        store: KnowledgeStore,
        embedding_provider: EmbeddingProvider,
        top_k: int = 5,
        display_min_score: float = 0.4,
    ):
        """Initialize the query pipeline.

        Args:
            store: Knowledge store
            embedding_provider: Provider for query embeddings
            top_k: Default number of results
            display_min_score: Results at or below this score are not shown
        """
        self.store = store
        self.embedding_provider = embedding_provider
        self.top_k = top_k
        self.display_min_score = display_min_score

    def visible(self, results: list[SearchResult]) -> list[SearchResult]:
        """Results worth showing to the user."""
        return [r for r in results if r.score > self.display_min_score]

    async def search(self, query: str, top_k: Optional[int] = None) -> list[SearchResult]:
        """Search for items semantically similar to the query.

        Args:
            query: Free-text query
            top_k: Number of results (defaults to the pipeline's top_k)

        Returns:
            Up to top_k results sorted by score, empty if the query could
            not be embedded
        """
        top_k = self.top_k if top_k is None else top_k

        query_vector = await self.embedding_provider.embed(query)
        if query_vector is None:
            logger.error("query_embedding_failed", query=query)
            return []

        items = await self.store.list_with_embeddings()
        results = rank_by_similarity(query_vector, items, top_k)

        shown = self.visible(results)
        logger.info("search_completed", query=query, candidates=len(items), results=len(results))
        for result in shown:
            logger.info(
                "search_result",
                title=result.item.title,
                path=result.item.path,
                score=round(result.score, 3),
            )
        return results
