"""Application context: builds and owns every long-lived component.

One AppContext per process. It opens the store connection on enter and
closes it (and the HTTP client) on exit; nothing else opens or closes
them.

How to use:
    async with AppContext(config) as ctx:
        outcome = await ctx.router.route("tag ~/notes/todo.md")
"""

from typing import Optional

from artaka.config.schema import AppConfig
from artaka.core.dedup import DuplicateChecker
from artaka.observability.logging import get_logger
from artaka.pipelines import (
    DeletionPipeline,
    KnowledgePipeline,
    QueryPipeline,
    TaggingPipeline,
    UpdatePipeline,
)
from artaka.providers import (
    EmbeddingProvider,
    LLMProvider,
    ResilientClient,
    create_embedding_provider,
    create_router_llm,
    create_tagger_llm,
)
from artaka.router import ActionRouter, HandlerRegistry, build_registry
from artaka.storage import KnowledgeStore, create_knowledge_store

logger = get_logger(__name__)


class AppContext:
    """Wires config, store, providers, pipelines and the router together.

    Providers and the store can be injected, which is how tests run the
    whole stack without a server or a database file.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[KnowledgeStore] = None,
        client: Optional[ResilientClient] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        router_llm: Optional[LLMProvider] = None,
        tagger_llm: Optional[LLMProvider] = None,
    ):
        self.config = config
        self.client = client or ResilientClient(config.retry, timeout=config.llm.timeout)
        self.store = store or create_knowledge_store(config.store)
        self.embedding_provider = embedding_provider or create_embedding_provider(config, self.client)
        self.router_llm = router_llm or create_router_llm(config, self.client)
        self.tagger_llm = tagger_llm or create_tagger_llm(config, self.client)

        knowledge = config.knowledge
        self.tagging = TaggingPipeline(
            knowledge,
            self.store,
            self.tagger_llm,
            self.embedding_provider,
            vision_model=config.llm.vision_tagger_model,
        )
        self.query = QueryPipeline(
            self.store,
            self.embedding_provider,
            top_k=knowledge.search_top_k,
            display_min_score=knowledge.display_min_score,
        )
        self.knowledge = KnowledgePipeline(
            self.store,
            self.tagger_llm,
            self.embedding_provider,
            DuplicateChecker(self.store, knowledge.dedup_threshold),
        )
        self.updates = UpdatePipeline(self.store, self.tagging, self.embedding_provider)
        self.deletion = DeletionPipeline(self.store)

        self.registry: HandlerRegistry = build_registry(
            self.tagging, self.query, self.knowledge, self.updates
        )
        self.router = ActionRouter(self.router_llm, self.registry, config.llm.router_model)

    async def open(self) -> None:
        await self.store.initialize()
        logger.info("app_context_opened", store_type=self.store.storage_type)

    async def close(self) -> None:
        try:
            await self.store.close()
        finally:
            await self.client.close()
        logger.debug("app_context_closed")

    async def __aenter__(self) -> "AppContext":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
