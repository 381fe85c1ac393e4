"""KnowledgeItem entity - the single persisted record."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ItemType(str, Enum):
    """Kinds of knowledge items."""

    FILE = "file"
    DOC = "doc"


def _split_tags(v):
    if isinstance(v, str):
        return [tag.strip() for tag in v.split(",") if tag.strip()]
    if isinstance(v, (list, tuple)):
        return [str(tag) for tag in v]
    return v


class KnowledgeItem(BaseModel):
    """An indexed file or a free-form note.

    File items carry the path they were tagged from; doc items are notes
    saved through the router. Items without an embedding are stored but
    never returned by similarity search.
    """

    id: Optional[int] = Field(None, description="Assigned by the store on insert")
    title: str
    type: ItemType = ItemType.DOC
    path: Optional[str] = Field(None, description="Filesystem path, file items only")
    tags: list[str] = Field(default_factory=list)
    description: str = ""
    content: Optional[str] = None
    embedding: Optional[list[float]] = None

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        # Models sometimes answer with a comma separated string
        if v is None:
            return []
        return _split_tags(v)

    @model_validator(mode="after")
    def path_matches_type(self) -> "KnowledgeItem":
        if self.type == ItemType.FILE and not self.path:
            raise ValueError("File items require a path")
        if self.type == ItemType.DOC and self.path:
            raise ValueError("Doc items cannot have a path")
        return self

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class KnowledgeEntry(BaseModel):
    """A note to save, as produced by the router or typed by the user.

    Any of title, description and tags may be missing; the save handler
    asks the tagging model to fill them in from the content.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    content: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        return _split_tags(v)

    def missing_fields(self) -> list[str]:
        return [name for name in ("title", "description", "tags") if not getattr(self, name)]


class KnowledgeUpdates(BaseModel):
    """Partial update for a saved note. Empty fields keep their old value."""

    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    content: Optional[str] = None

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v):
        return _split_tags(v)

    @property
    def changes_embedding(self) -> bool:
        return bool(self.title or self.description or self.content)
