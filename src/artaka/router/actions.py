"""Actions the router model may ask for, validated at the boundary.

The router model answers with one JSON object. parse_action() turns it
into exactly one of the Action variants below or raises; nothing
downstream ever sees an unvalidated dict.
"""

import json
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from artaka.entities import KnowledgeEntry, KnowledgeUpdates


class MalformedModelOutputError(ValueError):
    """Router output is not a JSON object with an action field."""

    def __init__(self, message: str, raw_output: str):
        self.raw_output = raw_output
        super().__init__(message)


class UnknownActionError(ValueError):
    """Router output names an action that is not supported."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"Unknown action: {action}")


class TagFilesAction(BaseModel):
    action: Literal["tag_files"] = "tag_files"
    target: Union[str, list[str]]
    description: Optional[str] = None


class SearchKnowledgeAction(BaseModel):
    action: Literal["search_knowledge"] = "search_knowledge"
    query: str


class SaveKnowledgeAction(BaseModel):
    action: Literal["save_knowledge"] = "save_knowledge"
    entry: KnowledgeEntry


class UpdateFileAction(BaseModel):
    action: Literal["update_file"] = "update_file"
    target: str
    description: Optional[str] = None


class UpdateKnowledgeAction(BaseModel):
    action: Literal["update_knowledge"] = "update_knowledge"
    title: str
    updates: KnowledgeUpdates


Action = Annotated[
    Union[
        TagFilesAction,
        SearchKnowledgeAction,
        SaveKnowledgeAction,
        UpdateFileAction,
        UpdateKnowledgeAction,
    ],
    Field(discriminator="action"),
]

ACTION_NAMES = frozenset(
    {"tag_files", "search_knowledge", "save_knowledge", "update_file", "update_knowledge"}
)

_action_adapter = TypeAdapter(Action)


def parse_action(raw: str) -> Action:
    """Parse sanitized router output into an Action.

    Raises:
        MalformedModelOutputError: Invalid JSON, not an object, no action,
            or fields that do not fit the named action
        UnknownActionError: A well-formed object naming an unsupported action
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedModelOutputError(f"Router output is not valid JSON: {e}", raw) from e

    if not isinstance(data, dict):
        raise MalformedModelOutputError("Router output is not a JSON object", raw)

    name = data.get("action")
    if not name or not isinstance(name, str):
        raise MalformedModelOutputError("Router output has no action", raw)
    if name not in ACTION_NAMES:
        raise UnknownActionError(name)

    try:
        return _action_adapter.validate_python(data)
    except ValidationError as e:
        raise MalformedModelOutputError(f"Invalid {name} action: {e}", raw) from e
