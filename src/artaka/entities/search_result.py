"""SearchResult entity - a stored item with its similarity to a query."""

from pydantic import BaseModel, Field

from artaka.entities.knowledge_item import KnowledgeItem


class SearchResult(BaseModel):
    """A retrieved knowledge item with relevance score.

    The score is a raw cosine similarity in [-1, 1] and is not clamped.
    """

    item: KnowledgeItem
    score: float = Field(..., description="Cosine similarity to the query")
