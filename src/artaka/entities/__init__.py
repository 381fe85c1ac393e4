"""Entities - Domain models for the knowledge index.

This module contains pure domain entities without business logic:
- KnowledgeItem: an indexed file or a saved note
- SearchResult: a retrieved item with similarity score
- Outcomes: structured results returned by mutation handlers
"""

from artaka.entities.knowledge_item import ItemType, KnowledgeEntry, KnowledgeItem, KnowledgeUpdates
from artaka.entities.outcomes import (
    BatchResult,
    CleanupResult,
    DeleteAllResult,
    DuplicateReport,
    OperationResult,
    Reason,
    SaveResult,
    TagResult,
)
from artaka.entities.search_result import SearchResult

__all__ = [
    "BatchResult",
    "CleanupResult",
    "DeleteAllResult",
    "DuplicateReport",
    "ItemType",
    "KnowledgeEntry",
    "KnowledgeItem",
    "KnowledgeUpdates",
    "OperationResult",
    "Reason",
    "SaveResult",
    "SearchResult",
    "TagResult",
]
