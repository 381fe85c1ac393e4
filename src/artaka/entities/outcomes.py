"""Structured outcomes returned by every mutation handler.

Handlers never raise for expected failures (missing items, duplicates,
storage errors). They return one of these models instead, with a reason
code the caller can branch on.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from artaka.entities.knowledge_item import KnowledgeItem


class Reason(str, Enum):
    """Reason codes carried by outcomes."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    DB_ERROR = "db_error"
    DUPLICATE = "duplicate"
    EMBEDDING_FAILED = "embedding_failed"
    INVALID_MODEL_OUTPUT = "invalid_model_output"
    MODEL_ERROR = "model_error"
    NOT_CONFIRMED = "not_confirmed"
    TAG_FAILED = "tag_failed"


class OperationResult(BaseModel):
    """Outcome of a single-item mutation."""

    success: bool
    reason: Reason = Reason.SUCCESS
    message: str = ""
    error: Optional[str] = None
    item_id: Optional[int] = None

    @classmethod
    def ok(cls, message: str, item_id: Optional[int] = None) -> "OperationResult":
        return cls(success=True, reason=Reason.SUCCESS, message=message, item_id=item_id)

    @classmethod
    def fail(cls, reason: Reason, error: Optional[str] = None, message: str = "") -> "OperationResult":
        return cls(success=False, reason=reason, error=error, message=message)


class DuplicateReport(BaseModel):
    """Why a candidate entry was considered a duplicate."""

    reason: Literal["exact_title", "semantic_similarity"]
    score: float
    existing: KnowledgeItem


class SaveResult(OperationResult):
    """Outcome of saving a knowledge entry."""

    duplicate: Optional[DuplicateReport] = None


class TagResult(BaseModel):
    """Outcome of tagging a file or a directory."""

    success: bool = True
    reason: Reason = Reason.SUCCESS
    tagged: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class BatchResult(BaseModel):
    """Per-item buckets of a sequential batch run."""

    succeeded: list[str] = Field(default_factory=list)
    not_found: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    def record(self, key: str, result: OperationResult) -> None:
        if result.success:
            self.succeeded.append(key)
        elif result.reason == Reason.NOT_FOUND:
            self.not_found.append(key)
        else:
            self.failed.append(key)


class CleanupResult(BaseModel):
    """Outcome of an orphan sweep."""

    checked: int = 0
    deleted: list[str] = Field(default_factory=list)
    kept: list[str] = Field(default_factory=list)
    errors: list[dict[str, Any]] = Field(default_factory=list)


class DeleteAllResult(BaseModel):
    """Outcome of deleting every item."""

    success: bool
    reason: Reason = Reason.SUCCESS
    count: int = 0
    message: str = ""
    error: Optional[str] = None
