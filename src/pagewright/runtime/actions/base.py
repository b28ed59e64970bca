"""Shared types for action handlers.

Every action kind is implemented by an async function with the
``ActionHandler`` signature. It receives an ``ActionInvocation`` describing
the action (with its config already template-resolved), the event payload,
the render context and the injected services, and returns the action's
result (or None).
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from pagewright.exceptions import ActionConfigError
from pagewright.logging import get_logger
from pagewright.runtime.context import RenderContext
from pagewright.runtime.expressions import ExpressionEvaluator
from pagewright.runtime.paths import set_path
from pagewright.runtime.registry import FunctionRegistry
from pagewright.runtime.schema import Action

if TYPE_CHECKING:
    from pagewright.runtime.actions.api import ApiClient
    from pagewright.runtime.results import EventDispatchResult

__all__ = [
    "UiIntent",
    "IntentHandler",
    "Dispatcher",
    "ActionServices",
    "ActionInvocation",
    "ActionHandler",
    "log_intent",
    "maybe_await",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class UiIntent:
    """A request for the host UI to do something (navigate, show a modal, ...).

    Fields:
        kind: The action kind that produced it, e.g. "navigate".
        payload: Resolved parameters, e.g. {"url": "/checkout"}.
    """

    kind: str
    payload: dict[str, Any] = field(default_factory=dict)


IntentHandler = Callable[[UiIntent], Awaitable[None] | None]

#: Re-dispatch hook used by triggerEvent: (event, data, context, depth).
Dispatcher = Callable[[str, Any, RenderContext, int], Awaitable["EventDispatchResult"]]


def log_intent(intent: UiIntent) -> None:
    """Default intent handler: record the intent in the log."""
    logger.info("ui_intent", kind=intent.kind, **intent.payload)


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(slots=True)
class ActionServices:
    """Collaborators an executor hands to action handlers."""

    expressions: ExpressionEvaluator
    functions: FunctionRegistry
    api_client: ApiClient
    intent_handler: IntentHandler
    dispatch: Dispatcher


@dataclass(frozen=True, slots=True)
class ActionInvocation:
    """Everything a handler needs to run one action.

    Fields:
        action: The action as written in the schema.
        config: The action's config with ``{{ }}`` templates resolved.
        event_data: Payload of the triggering event (or of onError).
        context: Render context; handlers may mutate ``state``.
        depth: Chain depth of this action, root actions at 0.
        services: Injected collaborators.
    """

    action: Action
    config: Mapping[str, Any]
    event_data: Any
    context: RenderContext
    depth: int
    services: ActionServices

    def require(self, key: str) -> Any:
        """Return config[key], failing if it is missing or empty.

        Raises:
            ActionConfigError: If the key is absent, None or an empty string.
        """
        value = self.config.get(key)
        if value is None or value == "":
            raise ActionConfigError(self.action.type, key)
        return value

    def store_result(self, value: Any) -> None:
        """Write ``value`` to state[resultKey] when the config names one."""
        key = self.config.get("resultKey")
        if key:
            set_path(self.context.state, str(key), value)

    def scope(self) -> dict[str, Any]:
        """Expression scope for this action: namespaces plus eventData."""
        return self.context.scope(eventData=self.event_data)


class ActionHandler(Protocol):
    async def __call__(self, invocation: ActionInvocation) -> Any: ...
