"""Action handlers for event execution.

This package contains one module per family of action kinds. All handlers
conform to the ActionHandler protocol and are looked up through
``ACTION_HANDLERS``. Reserved kinds have no entry; the executor treats them
as logged no-ops.
"""

from __future__ import annotations

from pagewright.runtime.actions import api, code, state, trigger, ui
from pagewright.runtime.actions.api import AiohttpApiClient, ApiClient
from pagewright.runtime.actions.base import (
    ActionHandler,
    ActionInvocation,
    ActionServices,
    Dispatcher,
    IntentHandler,
    UiIntent,
    log_intent,
)
from pagewright.runtime.types import ActionType

# Handler registry: maps action kinds to their execution handlers
ACTION_HANDLERS: dict[ActionType, ActionHandler] = {
    ActionType.SET_STATE: state.execute_set_state,
    ActionType.CALL_API: api.execute_call_api,
    ActionType.NAVIGATE: ui.execute_navigate,
    ActionType.SHOW_MESSAGE: ui.execute_show_message,
    ActionType.OPEN_MODAL: ui.execute_open_modal,
    ActionType.CLOSE_MODAL: ui.execute_close_modal,
    ActionType.EXECUTE_CODE: code.execute_execute_code,
    ActionType.TRIGGER_EVENT: trigger.execute_trigger_event,
    ActionType.CALL_FUNCTION: code.execute_call_function,
}


def get_handler(action_type: ActionType) -> ActionHandler:
    """Get the handler for a given action kind.

    Raises:
        ValueError: If no handler exists for the kind (reserved kinds).

    Example:
        ```python
        handler = get_handler(ActionType.SET_STATE)
        await handler(invocation)
        ```
    """
    if action_type not in ACTION_HANDLERS:
        raise ValueError(
            f"No handler registered for action type: {action_type.value}. "
            f"Available types: {[kind.value for kind in ACTION_HANDLERS]}"
        )
    return ACTION_HANDLERS[action_type]


__all__ = [
    "ACTION_HANDLERS",
    "get_handler",
    "ActionHandler",
    "ActionInvocation",
    "ActionServices",
    "AiohttpApiClient",
    "ApiClient",
    "Dispatcher",
    "IntentHandler",
    "UiIntent",
    "log_intent",
]
