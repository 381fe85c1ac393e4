"""Pipelines - the mutation and query handlers.

Each pipeline receives an initialized store and the providers it needs,
and returns structured outcomes instead of raising for expected failures.
"""

from artaka.pipelines.deletion import DeletionPipeline
from artaka.pipelines.knowledge import KnowledgePipeline
from artaka.pipelines.query import QueryPipeline
from artaka.pipelines.tagging import TaggingPipeline, TagStatus
from artaka.pipelines.updates import UpdatePipeline

__all__ = [
    "DeletionPipeline",
    "KnowledgePipeline",
    "QueryPipeline",
    "TagStatus",
    "TaggingPipeline",
    "UpdatePipeline",
]
