"""Event executor: runs the action chains registered for UI events.

An event fans out to every handler registered under its name. Each handler
goes through three stages:

1. Gate: the handler's condition, with ``eventData`` in scope. False skips it.
2. Timing: ``debounce`` defers the call and keeps only the last one in a
   burst; ``throttle`` runs the first call of a window and drops the rest.
3. Actions: run strictly in order. An action's own condition can skip it.
   A failing action runs its ``onError`` list instead of propagating; a
   succeeding one runs its ``onSuccess`` list before the next sibling.

Handlers of one event run concurrently and never affect each other: a
failure aborts only its own chain and is reported in the dispatch result.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

import anyio

from pagewright.constants import DEFAULTS
from pagewright.exceptions import ActionChainTooDeepError, ActionExecutionError
from pagewright.logging import get_logger, log_context
from pagewright.runtime.actions import (
    ActionInvocation,
    ActionServices,
    AiohttpApiClient,
    ApiClient,
    IntentHandler,
    get_handler,
    log_intent,
)
from pagewright.runtime.conditions import ConditionEvaluator
from pagewright.runtime.context import RenderContext
from pagewright.runtime.events import EventTriggered, HandlerFailed, NotificationBus
from pagewright.runtime.expressions import ExpressionEvaluator
from pagewright.runtime.registry import FunctionRegistry
from pagewright.runtime.results import EventDispatchResult, HandlerFailure, HandlerRef
from pagewright.runtime.schema import Action, EventHandler, Schema
from pagewright.runtime.tree import iter_nodes
from pagewright.runtime.types import RESERVED_ACTION_TYPES, ActionType, parse_kind

__all__ = ["EventExecutor"]

logger = get_logger(__name__)

# Config keys copied verbatim instead of template-resolved.
_UNRESOLVED_KEYS = frozenset({"code"})

HandlerKey = tuple[str, str, int]


class _Outcome(str, Enum):
    EXECUTED = "executed"
    SKIPPED = "skipped"
    SCHEDULED = "scheduled"
    SUPPRESSED = "suppressed"


class EventExecutor:
    """Dispatches events to registered handlers and interprets their actions.

    Args:
        expressions: Evaluator for templates, conditions and executeCode.
        conditions: Condition evaluator; built on ``expressions`` if omitted.
        functions: Functions reachable from callFunction actions.
        api_client: Transport for callApi actions.
        intent_handler: Receives navigate/showMessage/modal intents.
        notifications: Bus for EventTriggered and HandlerFailed.
        max_action_depth: Deepest continuation or triggerEvent nesting.
        clock: Monotonic clock in seconds, used for throttle windows.

    Example:
        ```python
        executor = EventExecutor()
        executor.register_schema(schema)
        result = await executor.execute("click", {"id": 7}, context)
        if not result.success:
            for failure in result.failures:
                print(failure.node_id, failure.message)
        ```
    """

    def __init__(
        self,
        *,
        expressions: ExpressionEvaluator | None = None,
        conditions: ConditionEvaluator | None = None,
        functions: FunctionRegistry | None = None,
        api_client: ApiClient | None = None,
        intent_handler: IntentHandler | None = None,
        notifications: NotificationBus | None = None,
        max_action_depth: int = DEFAULTS.MAX_ACTION_DEPTH,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.expressions = expressions or ExpressionEvaluator()
        self.conditions = conditions or ConditionEvaluator(self.expressions)
        self.functions = functions if functions is not None else FunctionRegistry()
        self.notifications = notifications or NotificationBus()
        self.max_action_depth = max_action_depth
        self._clock = clock
        self._services = ActionServices(
            expressions=self.expressions,
            functions=self.functions,
            api_client=api_client or AiohttpApiClient(),
            intent_handler=intent_handler or log_intent,
            dispatch=self._dispatch,
        )

        self._handlers: dict[str, list[HandlerRef]] = {}
        self._lock = threading.Lock()
        # Timers are keyed by HandlerRef.key so they survive re-registration
        self._pending: dict[HandlerKey, asyncio.Task[None]] = {}
        self._windows: dict[HandlerKey, float] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, node_id: str, event: str, handler: EventHandler) -> HandlerRef:
        """Register ``handler`` to run when ``event`` fires on ``node_id``."""
        with self._lock:
            position = sum(
                1 for r in self._handlers.get(event, ()) if r.node_id == node_id
            )
            ref = HandlerRef(
                node_id=node_id, event=event, handler=handler, position=position
            )
            self._handlers.setdefault(event, []).append(ref)
        return ref

    def unregister(self, node_id: str, event: str | None = None) -> int:
        """Remove a node's handlers (for one event, or all). Returns the count."""
        with self._lock:
            removed = self._remove_locked(
                lambda ref: ref.node_id == node_id
                and (event is None or ref.event == event)
            )
        self._forget(removed)
        return len(removed)

    def register_schema(self, schema: Schema) -> int:
        """Register every handler in ``schema``.

        Existing registrations for the schema's node ids are replaced, so
        re-rendering the same schema does not duplicate handlers.

        Returns:
            Number of handlers registered.
        """
        if schema.root is None:
            return 0
        nodes = [visit.node for visit in iter_nodes(schema.root)]
        node_ids = {node.id for node in nodes}
        added: list[HandlerRef] = []
        for node in nodes:
            seen: dict[str, int] = {}
            for handler in node.events:
                position = seen.get(handler.event, 0)
                seen[handler.event] = position + 1
                added.append(
                    HandlerRef(
                        node_id=node.id,
                        event=handler.event,
                        handler=handler,
                        position=position,
                    )
                )
        kept_keys = {ref.key for ref in added}
        with self._lock:
            removed = self._remove_locked(lambda ref: ref.node_id in node_ids)
            for ref in added:
                self._handlers.setdefault(ref.event, []).append(ref)
        self._forget([ref for ref in removed if ref.key not in kept_keys])
        logger.debug("schema_handlers_registered", schema_id=schema.id, count=len(added))
        return len(added)

    def handlers_for(self, event: str) -> list[HandlerRef]:
        """Snapshot of the handlers registered for ``event``."""
        with self._lock:
            return list(self._handlers.get(event, ()))

    def clear(self) -> int:
        """Remove every registration. Returns the count removed."""
        with self._lock:
            removed = self._remove_locked(lambda ref: True)
        self._forget(removed)
        return len(removed)

    def _remove_locked(self, predicate: Callable[[HandlerRef], bool]) -> list[HandlerRef]:
        removed: list[HandlerRef] = []
        for event in list(self._handlers):
            kept = []
            for ref in self._handlers[event]:
                (removed if predicate(ref) else kept).append(ref)
            if kept:
                self._handlers[event] = kept
            else:
                del self._handlers[event]
        return removed

    def _forget(self, refs: Sequence[HandlerRef]) -> None:
        for ref in refs:
            task = self._pending.pop(ref.key, None)
            if task is not None:
                task.cancel()
            self._windows.pop(ref.key, None)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait until every pending debounced invocation has run."""
        while True:
            tasks = [task for task in self._pending.values() if not task.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    def reset(self) -> None:
        """Cancel pending debounced calls, forget throttle windows and
        remove all registrations."""
        for task in self._pending.values():
            task.cancel()
        self._pending.clear()
        self._windows.clear()
        with self._lock:
            self._handlers.clear()

    @property
    def pending_count(self) -> int:
        return sum(1 for task in self._pending.values() if not task.done())

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def execute(
        self,
        event: str,
        data: Any = None,
        context: RenderContext | None = None,
    ) -> EventDispatchResult:
        """Dispatch ``event`` to every handler registered for it.

        Args:
            event: Event name.
            data: Event payload, visible to actions as ``eventData``.
            context: Render context; actions may write to its state.

        Returns:
            Per-outcome handler counts and any handler failures.
        """
        return await self._dispatch(event, data, context or RenderContext(), 0)

    async def _dispatch(
        self, event: str, data: Any, context: RenderContext, depth: int
    ) -> EventDispatchResult:
        if depth > self.max_action_depth:
            raise ActionChainTooDeepError(depth, self.max_action_depth)

        refs = self.handlers_for(event)
        self.notifications.emit(
            EventTriggered(event=event, data=data, handler_count=len(refs))
        )
        if not refs:
            logger.debug("event_has_no_handlers", event=event)
            return EventDispatchResult(event=event)

        # Pre-allocate outcomes to keep registration order
        outcomes: list[_Outcome | HandlerFailure | None] = [None] * len(refs)

        async def run_handler(index: int, ref: HandlerRef) -> None:
            outcomes[index] = await self._handle(ref, data, context, depth)

        with log_context(event=event):
            async with anyio.create_task_group() as tg:
                for idx, ref in enumerate(refs):
                    tg.start_soon(run_handler, idx, ref)

        failures = tuple(o for o in outcomes if isinstance(o, HandlerFailure))
        return EventDispatchResult(
            event=event,
            executed=outcomes.count(_Outcome.EXECUTED),
            skipped=outcomes.count(_Outcome.SKIPPED),
            scheduled=outcomes.count(_Outcome.SCHEDULED),
            suppressed=outcomes.count(_Outcome.SUPPRESSED),
            failures=failures,
        )

    async def _handle(
        self, ref: HandlerRef, data: Any, context: RenderContext, depth: int
    ) -> _Outcome | HandlerFailure:
        handler = ref.handler
        if not self.conditions.evaluate(handler.condition, context, eventData=data):
            logger.debug("handler_skipped", node_id=ref.node_id)
            return _Outcome.SKIPPED

        if handler.debounce:
            self._schedule(ref, data, context, depth, handler.debounce / 1000.0)
            return _Outcome.SCHEDULED

        if handler.throttle and not self._take_window(ref, handler.throttle / 1000.0):
            logger.debug("handler_throttled", node_id=ref.node_id)
            return _Outcome.SUPPRESSED

        failure = await self._invoke(ref, data, context, depth)
        return failure if failure is not None else _Outcome.EXECUTED

    def _take_window(self, ref: HandlerRef, window: float) -> bool:
        now = self._clock()
        opened = self._windows.get(ref.key)
        if opened is not None and now - opened < window:
            return False
        self._windows[ref.key] = now
        return True

    def _schedule(
        self,
        ref: HandlerRef,
        data: Any,
        context: RenderContext,
        depth: int,
        delay: float,
    ) -> None:
        previous = self._pending.get(ref.key)
        if previous is not None and not previous.done():
            previous.cancel()

        async def fire_later() -> None:
            await asyncio.sleep(delay)
            if self._pending.get(ref.key) is asyncio.current_task():
                del self._pending[ref.key]
            await self._invoke(ref, data, context, depth)

        self._pending[ref.key] = asyncio.get_running_loop().create_task(fire_later())
        logger.debug("handler_debounced", node_id=ref.node_id, delay=delay)

    async def _invoke(
        self, ref: HandlerRef, data: Any, context: RenderContext, depth: int
    ) -> HandlerFailure | None:
        try:
            await self._run_actions(ref.handler.actions, data, context, depth)
        except Exception as e:
            logger.warning(
                "handler_failed",
                node_id=ref.node_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            action_type = e.action_type if isinstance(e, ActionExecutionError) else None
            self.notifications.emit(
                HandlerFailed(
                    event=ref.event,
                    node_id=ref.node_id,
                    error=str(e),
                    action_type=action_type,
                )
            )
            return HandlerFailure(node_id=ref.node_id, event=ref.event, error=e)
        return None

    # ------------------------------------------------------------------
    # Action interpretation
    # ------------------------------------------------------------------

    async def _run_actions(
        self,
        actions: Sequence[Action],
        data: Any,
        context: RenderContext,
        depth: int,
    ) -> None:
        if depth > self.max_action_depth:
            raise ActionChainTooDeepError(depth, self.max_action_depth)
        for action in actions:
            await self._run_action(action, data, context, depth)

    async def _run_action(
        self, action: Action, data: Any, context: RenderContext, depth: int
    ) -> None:
        if not self.conditions.evaluate(action.condition, context, eventData=data):
            logger.debug("action_skipped", action_type=action.type)
            return

        kind = parse_kind(ActionType, action.type)
        if kind is None:
            logger.warning("unknown_action_type", action_type=action.type)
            return
        if kind in RESERVED_ACTION_TYPES:
            logger.info("reserved_action_ignored", action_type=action.type)
            return

        try:
            config = self.expressions.resolve_structure(
                action.config, context.scope(eventData=data), _UNRESOLVED_KEYS
            )
            invocation = ActionInvocation(
                action=action,
                config=config,
                event_data=data,
                context=context,
                depth=depth,
                services=self._services,
            )
            await get_handler(kind)(invocation)
            if action.on_success:
                await self._run_actions(action.on_success, data, context, depth + 1)
        except ActionChainTooDeepError:
            raise
        except Exception as e:
            if not action.on_error:
                if isinstance(e, ActionExecutionError):
                    raise
                raise ActionExecutionError(
                    f"Action '{action.type}' failed: {e}", action_type=action.type
                ) from e

            logger.info(
                "action_failed_running_on_error",
                action_type=action.type,
                error=str(e),
            )
            payload = {
                "error": {"message": str(e), "type": type(e).__name__},
                "originalEventData": data,
            }
            await self._run_actions(action.on_error, payload, context, depth + 1)
