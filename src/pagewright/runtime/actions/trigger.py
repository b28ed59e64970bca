"""triggerEvent action."""

from __future__ import annotations

from pagewright.exceptions import ActionExecutionError
from pagewright.runtime.actions.base import ActionInvocation
from pagewright.runtime.results import EventDispatchResult

__all__ = ["execute_trigger_event"]


async def execute_trigger_event(invocation: ActionInvocation) -> EventDispatchResult:
    """Dispatch another event one level deeper in the chain.

    The new event carries ``config.data`` when present, otherwise the
    current event data. Failures inside the re-dispatched handlers surface
    as a failed action here, so an onError on this action can absorb them.
    """
    event = str(invocation.require("event"))
    data = invocation.config.get("data", invocation.event_data)
    result = await invocation.services.dispatch(
        event, data, invocation.context, invocation.depth + 1
    )
    if not result.success:
        first = result.failures[0].error
        if isinstance(first, ActionExecutionError) and len(result.failures) == 1:
            raise first
        raise ActionExecutionError(
            f"Triggered event '{event}' had {len(result.failures)} failing "
            f"handler(s): {first}",
            action_type=invocation.action.type,
        ) from first
    return result
