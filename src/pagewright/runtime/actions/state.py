"""setState action."""

from __future__ import annotations

from typing import Any

from pagewright.logging import get_logger
from pagewright.runtime.actions.base import ActionInvocation
from pagewright.runtime.paths import set_path

__all__ = ["execute_set_state"]

logger = get_logger(__name__)


async def execute_set_state(invocation: ActionInvocation) -> Any:
    """Write ``config.value`` into ``context.state`` at ``config.key``.

    Dotted keys create intermediate maps: ``form.email`` sets
    ``state["form"]["email"]``.
    """
    key = str(invocation.require("key"))
    value = invocation.config.get("value")
    set_path(invocation.context.state, key, value)
    logger.debug("state_updated", key=key)
    return value
