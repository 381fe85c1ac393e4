"""Router - turns a free-text command into exactly one handler call."""

from artaka.router.actions import (
    Action,
    MalformedModelOutputError,
    UnknownActionError,
    parse_action,
)
from artaka.router.handlers import ActionHandler, HandlerRegistry, build_registry
from artaka.router.router import ActionRouter, RouteOutcome, RouterState

__all__ = [
    "Action",
    "ActionHandler",
    "ActionRouter",
    "HandlerRegistry",
    "MalformedModelOutputError",
    "RouteOutcome",
    "RouterState",
    "UnknownActionError",
    "build_registry",
    "parse_action",
]
