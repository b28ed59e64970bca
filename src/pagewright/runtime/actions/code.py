"""executeCode and callFunction actions.

executeCode never runs host-language code: the ``code`` string is evaluated
by the restricted expression evaluator with the context namespaces and
``eventData`` in scope. Anything richer goes through callFunction, which can
only reach functions the host registered explicitly.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pagewright.logging import get_logger
from pagewright.runtime.actions.base import ActionInvocation, maybe_await

__all__ = ["execute_execute_code", "execute_call_function"]

logger = get_logger(__name__)


async def execute_execute_code(invocation: ActionInvocation) -> Any:
    code = str(invocation.require("code"))
    result = invocation.services.expressions.execute(code, invocation.scope())
    invocation.store_result(result)
    return result


async def execute_call_function(invocation: ActionInvocation) -> Any:
    """Call a registered function with ``config.args``.

    ``args`` may be a list (positional) or a map (keyword). Coroutine
    functions are awaited.

    Raises:
        FunctionNotFoundError: If the name is not registered.
    """
    name = str(invocation.require("function"))
    function = invocation.services.functions.lookup(name)

    args = invocation.config.get("args")
    if args is None:
        result = function()
    elif isinstance(args, Mapping):
        result = function(**args)
    elif isinstance(args, Sequence) and not isinstance(args, str):
        result = function(*args)
    else:
        result = function(args)

    result = await maybe_await(result)
    invocation.store_result(result)
    logger.debug("function_called", function=name)
    return result
