"""Action router: free-text command -> router model -> one handler.

State machine for route():

    IDLE -> AWAITING_ROUTER_RESPONSE -> DISPATCHING -> HANDLER_RUNNING -> DONE
    IDLE -> AWAITING_ROUTER_RESPONSE -> PARSE_FAILED -> DONE

A command that cannot be turned into a valid action never reaches a
handler, so it can never mutate the store.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from artaka.core.prompts import NO_CODE_FENCE, ROUTER_PROMPT
from artaka.core.text import remove_no_think, sanitize
from artaka.observability.logging import get_logger
from artaka.providers.base import LLMProvider, ProviderError
from artaka.router.actions import MalformedModelOutputError, UnknownActionError, parse_action
from artaka.router.handlers import HandlerRegistry

logger = get_logger(__name__)


class RouterState(str, Enum):
    IDLE = "idle"
    AWAITING_ROUTER_RESPONSE = "awaiting_router_response"
    DISPATCHING = "dispatching"
    HANDLER_RUNNING = "handler_running"
    PARSE_FAILED = "parse_failed"
    DONE = "done"


class RouteOutcome(BaseModel):
    """What happened to one routed command."""

    command: str
    states: list[RouterState] = Field(default_factory=lambda: [RouterState.IDLE])
    raw_output: Optional[str] = None
    action: Optional[str] = None
    result: Any = None
    error: Optional[str] = None

    @property
    def state(self) -> RouterState:
        return self.states[-1]

    @property
    def dispatched(self) -> bool:
        return RouterState.HANDLER_RUNNING in self.states

    def advance(self, state: RouterState) -> None:
        self.states.append(state)


class ActionRouter:
    """Routes commands to handlers through the router model."""

    def __init__(self, llm: LLMProvider, registry: HandlerRegistry, router_model: str):
        self.llm = llm
        self.registry = registry
        self.router_model = router_model

    async def ask(self, command: str) -> Optional[str]:
        """Ask the router model which action to take.

        Returns:
            Sanitized model output, or None if the model produced nothing usable
        """
        if "qwen" not in self.router_model.lower():
            command = remove_no_think(command)

        logger.debug("router_prompt", command=command, model=self.router_model)
        try:
            output = await self.llm.generate(
                f"{command}\n\n{NO_CODE_FENCE}",
                system_prompt=ROUTER_PROMPT,
                temperature=0,
            )
        except ProviderError as e:
            logger.error("router_request_failed", error=e.message)
            return None

        if not output:
            return None
        return sanitize(output) or None

    async def route(self, command: str) -> RouteOutcome:
        """Route one command and run at most one handler."""
        outcome = RouteOutcome(command=command)

        outcome.advance(RouterState.AWAITING_ROUTER_RESPONSE)
        raw = await self.ask(command)
        outcome.raw_output = raw

        if raw is None:
            outcome.error = "No output from router model"
            logger.error("router_no_output", command=command)
            return self._finish(outcome, RouterState.PARSE_FAILED)

        try:
            action = parse_action(raw)
        except MalformedModelOutputError as e:
            outcome.error = str(e)
            logger.error("router_output_malformed", error=str(e), raw_output=raw)
            return self._finish(outcome, RouterState.PARSE_FAILED)
        except UnknownActionError as e:
            outcome.action = e.action
            outcome.error = str(e)
            logger.warning("unknown_action", action=e.action)
            return self._finish(outcome, RouterState.PARSE_FAILED)

        outcome.action = action.action
        outcome.advance(RouterState.DISPATCHING)
        if action.action not in self.registry:
            outcome.error = f"No handler for action: {action.action}"
            logger.warning("no_handler_registered", action=action.action)
            return self._finish(outcome)

        outcome.advance(RouterState.HANDLER_RUNNING)
        try:
            outcome.result = await self.registry.dispatch(action)
        except Exception as e:
            outcome.error = str(e)
            logger.exception("action_failed", action=action.action, error=str(e))

        return self._finish(outcome)

    @staticmethod
    def _finish(outcome: RouteOutcome, state: Optional[RouterState] = None) -> RouteOutcome:
        if state:
            outcome.advance(state)
        outcome.advance(RouterState.DONE)
        return outcome
