"""Handler registry: one handler per action, wired once at startup.

How to extend:
1. Add an Action variant in artaka.router.actions
2. Subclass ActionHandler and implement execute()
3. Register it in build_registry()
"""

from abc import ABC, abstractmethod
from typing import Any

from artaka.observability.logging import get_logger
from artaka.pipelines import (
    KnowledgePipeline,
    QueryPipeline,
    TaggingPipeline,
    UpdatePipeline,
)
from artaka.router.actions import (
    Action,
    SaveKnowledgeAction,
    SearchKnowledgeAction,
    TagFilesAction,
    UpdateFileAction,
    UpdateKnowledgeAction,
    UnknownActionError,
)

logger = get_logger(__name__)


class ActionHandler(ABC):
    """Executes one kind of action."""

    action_name = "abstract"

    @abstractmethod
    async def execute(self, action: Action) -> Any:
        """Run the action and return its structured outcome."""
        pass


class TagFilesHandler(ActionHandler):
    action_name = "tag_files"

    def __init__(self, tagging: TaggingPipeline):
        self.tagging = tagging

    async def execute(self, action: TagFilesAction):
        return await self.tagging.tag_item(action.target, action.description)


class SearchKnowledgeHandler(ActionHandler):
    action_name = "search_knowledge"

    def __init__(self, query: QueryPipeline):
        self.query = query

    async def execute(self, action: SearchKnowledgeAction):
        return await self.query.search(action.query)


class SaveKnowledgeHandler(ActionHandler):
    action_name = "save_knowledge"

    def __init__(self, knowledge: KnowledgePipeline):
        self.knowledge = knowledge

    async def execute(self, action: SaveKnowledgeAction):
        return await self.knowledge.save_entry(action.entry)


class UpdateFileHandler(ActionHandler):
    action_name = "update_file"

    def __init__(self, updates: UpdatePipeline):
        self.updates = updates

    async def execute(self, action: UpdateFileAction):
        return await self.updates.update_file(action.target, action.description)


class UpdateKnowledgeHandler(ActionHandler):
    action_name = "update_knowledge"

    def __init__(self, updates: UpdatePipeline):
        self.updates = updates

    async def execute(self, action: UpdateKnowledgeAction):
        return await self.updates.update_knowledge_by_title(action.title, action.updates)


class HandlerRegistry:
    """Static mapping from action name to handler."""

    def __init__(self, handlers: list[ActionHandler]):
        self._handlers = {handler.action_name: handler for handler in handlers}

    def __contains__(self, action_name: str) -> bool:
        return action_name in self._handlers

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def get(self, action_name: str) -> ActionHandler:
        """Look up a handler.

        Raises:
            UnknownActionError: If no handler is registered for the name
        """
        try:
            return self._handlers[action_name]
        except KeyError:
            raise UnknownActionError(action_name) from None

    async def dispatch(self, action: Action) -> Any:
        handler = self.get(action.action)
        logger.info("dispatching_action", action=action.action)
        return await handler.execute(action)


def build_registry(
    tagging: TaggingPipeline,
    query: QueryPipeline,
    knowledge: KnowledgePipeline,
    updates: UpdatePipeline,
) -> HandlerRegistry:
    """Wire every action to its pipeline."""
    return HandlerRegistry(
        [
            TagFilesHandler(tagging),
            SearchKnowledgeHandler(query),
            SaveKnowledgeHandler(knowledge),
            UpdateFileHandler(updates),
            UpdateKnowledgeHandler(updates),
        ]
    )
