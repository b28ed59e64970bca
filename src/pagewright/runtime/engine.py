"""Render engine: turns a schema plus a context into a tree of RenderNodes.

A render call runs these phases:

1. Validate the schema; any issue aborts with SchemaValidationError.
2. Answer from the cache when caching is on and debug is off.
3. Analyze the schema and enforce the depth and node limits.
4. Render the tree. Per node: condition false drops it; a loop expands it
   once per item; otherwise bindings are overlaid on props and children and
   slots are rendered concurrently.
5. Record performance metrics, cache the result and register the schema's
   event handlers on the engine's executor.
"""

from __future__ import annotations

import functools
import threading
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

import anyio

from pagewright.config import EngineConfig, RenderDefaults
from pagewright.exceptions import (
    RenderCancelledError,
    ResourceLimitError,
    SchemaValidationError,
)
from pagewright.logging import get_logger, log_context
from pagewright.runtime.actions import AiohttpApiClient, ApiClient, IntentHandler
from pagewright.runtime.analyzer import (
    analyze_schema,
    extract_data_dependencies,
    validate_schema,
)
from pagewright.runtime.bindings import DataBindingResolver
from pagewright.runtime.cache import CacheStats, RenderCache
from pagewright.runtime.conditions import ConditionEvaluator
from pagewright.runtime.context import RenderContext
from pagewright.runtime.events import (
    CacheCleared,
    NotificationBus,
    RenderCached,
    RenderCompleted,
    RenderFailed,
    RenderStarted,
)
from pagewright.runtime.executor import EventExecutor
from pagewright.runtime.expressions import ExpressionEvaluator
from pagewright.runtime.paths import resolve_path, split_path
from pagewright.runtime.registry import ComponentRegistry, FunctionRegistry
from pagewright.runtime.results import (
    EventDispatchResult,
    PerformanceMetrics,
    RenderNode,
    RenderOutput,
    RenderResult,
)
from pagewright.runtime.schema import Loop, Node, Schema

__all__ = ["RenderEngine", "RenderOptions", "ErrorHandler", "log_render_error"]

logger = get_logger(__name__)

T = TypeVar("T")

ErrorHandler = Callable[[Exception, dict[str, Any]], None]

# Loop sources may start with one of these roots; anything else reads data.
_LOOP_ROOTS = ("data", "state", "variables")


class CancelSignal(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Per-call render options.

    Attributes:
        debug: Bypass the cache lookup (results are still stored).
        enable_performance_tracking: Attach PerformanceMetrics to the result.
        register_handlers: Register the schema's handlers on the engine's
            executor after a fresh render.
        timeout: Upper bound for the render in seconds.
        ssr, ssg, isr, lazy_load, error_boundary: Hints for the host
            renderer. Carried through untouched.
    """

    debug: bool = False
    enable_performance_tracking: bool = False
    register_handlers: bool = True
    timeout: float | None = None
    ssr: bool = False
    ssg: bool = False
    isr: bool = False
    lazy_load: bool = False
    error_boundary: bool = False

    @classmethod
    def from_defaults(cls, defaults: RenderDefaults) -> RenderOptions:
        return cls(
            debug=defaults.debug,
            enable_performance_tracking=defaults.enable_performance_tracking,
            register_handlers=defaults.register_handlers,
            timeout=defaults.timeout,
        )


@dataclass(frozen=True, slots=True)
class _RenderPass:
    schema_id: str
    cancel_event: CancelSignal | None

    def check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise RenderCancelledError(self.schema_id)


def log_render_error(error: Exception, info: dict[str, Any]) -> None:
    """Default error handler: one structured log line per failed render."""
    schema = info.get("schema")
    logger.error(
        "render_failed",
        schema_id=getattr(schema, "id", None),
        error=str(error),
        error_type=type(error).__name__,
    )


class RenderEngine:
    """Renders schemas and owns the event executor for their handlers.

    Each engine has its own evaluator, resolver, cache, executor and
    notification bus; nothing is shared between engines.

    Args:
        config: Engine configuration. Loaded from the environment and YAML
            files when omitted.
        components: Registry resolving node types to host renderables.
        expressions: Shared expression evaluator.
        conditions: Condition evaluator; built on ``expressions`` if omitted.
        bindings: Binding resolver; built on ``expressions`` if omitted.
        error_handler: Called with (error, {"schema", "context"}) before a
            failed render re-raises.
        notifications: Bus receiving render and event notifications.
        api_client: Transport for callApi actions.
        functions: Functions reachable from callFunction actions.
        intent_handler: Receives UI intents from navigate/modal actions.

    Example:
        ```python
        engine = RenderEngine(EngineConfig(cache=CacheConfig(enabled=True)))
        result = await engine.render(schema, RenderContext(state={"count": 5}))
        await engine.dispatch("click", {"id": 1}, context)
        ```
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        *,
        components: ComponentRegistry | None = None,
        expressions: ExpressionEvaluator | None = None,
        conditions: ConditionEvaluator | None = None,
        bindings: DataBindingResolver | None = None,
        error_handler: ErrorHandler | None = None,
        notifications: NotificationBus | None = None,
        api_client: ApiClient | None = None,
        functions: FunctionRegistry | None = None,
        intent_handler: IntentHandler | None = None,
    ) -> None:
        self.config = config if config is not None else EngineConfig()
        self.components = components
        self.expressions = expressions or ExpressionEvaluator()
        self.conditions = conditions or ConditionEvaluator(self.expressions)
        self.bindings = bindings or DataBindingResolver(self.expressions)
        self.error_handler = error_handler or log_render_error
        self.notifications = notifications or NotificationBus()
        self.cache: RenderCache[RenderResult] = RenderCache(
            max_size=self.config.cache.max_size,
            ttl_ms=self.config.cache.ttl,
        )
        self.events = EventExecutor(
            expressions=self.expressions,
            conditions=self.conditions,
            functions=functions,
            api_client=api_client or AiohttpApiClient(self.config.api),
            intent_handler=intent_handler,
            notifications=self.notifications,
            max_action_depth=self.config.max_action_depth,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def render(
        self,
        schema: Schema,
        context: RenderContext | None = None,
        options: RenderOptions | None = None,
        *,
        cancel_event: CancelSignal | anyio.Event | threading.Event | None = None,
    ) -> RenderResult:
        """Render ``schema`` against ``context``.

        Raises:
            SchemaValidationError: If the schema fails validation.
            ResourceLimitError: If the schema exceeds max_depth or max_nodes.
            RenderCancelledError: If ``cancel_event`` is set mid-render.
            TimeoutError: If ``options.timeout`` elapses.
            BindingResolutionError: If a strict binding fails.
        """
        context = context if context is not None else RenderContext()
        options = options or RenderOptions.from_defaults(self.config.default_options)
        started = time.perf_counter()

        with log_context(schema_id=schema.id):
            try:
                return await self._render(schema, context, options, cancel_event, started)
            except Exception as e:
                self.notifications.emit(
                    RenderFailed(
                        schema_id=schema.id, error=str(e), error_type=type(e).__name__
                    )
                )
                self.error_handler(e, {"schema": schema, "context": context})
                raise

    async def dispatch(
        self,
        event: str,
        data: Any = None,
        context: RenderContext | None = None,
    ) -> EventDispatchResult:
        """Dispatch an event to the handlers registered by previous renders."""
        return await self.events.execute(event, data, context)

    def clear_cache(self) -> int:
        """Drop every cached render result. Returns the number removed."""
        removed = self.cache.clear()
        self.notifications.emit(CacheCleared(entries_removed=removed))
        logger.debug("render_cache_cleared", entries_removed=removed)
        return removed

    def cache_stats(self) -> CacheStats:
        return self.cache.stats()

    # ------------------------------------------------------------------
    # Render phases
    # ------------------------------------------------------------------

    async def _render(
        self,
        schema: Schema,
        context: RenderContext,
        options: RenderOptions,
        cancel_event: CancelSignal | None,
        started: float,
    ) -> RenderResult:
        validation = validate_schema(schema)
        if not validation.valid:
            raise SchemaValidationError(validation.errors)

        if self.config.cache.enabled and not options.debug:
            cached = self.cache.get(schema.id)
            if cached is not None:
                self.notifications.emit(RenderCached(schema_id=schema.id))
                logger.debug("render_cache_hit")
                return cached

        analysis = analyze_schema(schema)
        if analysis.max_depth > self.config.max_depth:
            raise ResourceLimitError("max_depth", analysis.max_depth, self.config.max_depth)
        if analysis.total_nodes > self.config.max_nodes:
            raise ResourceLimitError("max_nodes", analysis.total_nodes, self.config.max_nodes)

        self.notifications.emit(RenderStarted(schema_id=schema.id))
        assert schema.root is not None
        render_pass = _RenderPass(schema_id=schema.id, cancel_event=cancel_event)

        if options.timeout is not None:
            with anyio.fail_after(options.timeout):
                content = await self._render_node(schema.root, context, render_pass)
        else:
            content = await self._render_node(schema.root, context, render_pass)

        duration_ms = (time.perf_counter() - started) * 1000.0
        performance = None
        if options.enable_performance_tracking:
            performance = PerformanceMetrics(
                render_time_ms=duration_ms,
                component_count=analysis.total_nodes,
                data_binding_count=len(analysis.data_bindings),
                event_handler_count=len(analysis.event_handlers),
            )

        result = RenderResult(
            content=content,
            components=analysis.component_dependencies,
            data_dependencies=tuple(extract_data_dependencies(schema)),
            performance=performance,
        )

        if self.config.cache.enabled:
            self.cache.set(schema.id, result)
        if options.register_handlers and analysis.event_handlers:
            self.events.register_schema(schema)

        self.notifications.emit(
            RenderCompleted(
                schema_id=schema.id,
                duration_ms=duration_ms,
                node_count=analysis.total_nodes,
            )
        )
        logger.debug("render_completed", duration_ms=round(duration_ms, 3))
        return result

    async def _render_node(
        self, node: Node, context: RenderContext, render_pass: _RenderPass
    ) -> RenderOutput:
        render_pass.check_cancelled()

        if node.condition is not None and not self.conditions.evaluate(
            node.condition, context
        ):
            return None

        if node.loop is not None:
            return await self._render_loop(node, node.loop, context, render_pass)

        props = dict(node.props)
        values = self.bindings.resolve_all(node.bindings, context)
        # Later bindings win when targets repeat
        for binding, value in zip(node.bindings, values, strict=True):
            props[binding.target] = value

        lists = node.child_lists()
        rendered = await self._gather(
            [
                functools.partial(self._render_many, nodes, context, render_pass)
                for _, nodes in lists
            ]
        )
        children = rendered[0]
        slots = {
            label.removeprefix("slots."): nodes
            for (label, _), nodes in zip(lists[1:], rendered[1:], strict=True)
        }

        component = None
        placeholder = False
        if self.components is not None:
            component = self.components.resolve(node.type)
            if component is None:
                placeholder = True
                logger.debug("component_not_registered", node_type=node.type, node_id=node.id)

        return RenderNode(
            type=node.type,
            id=node.id,
            props=props,
            children=children,
            slots=slots,
            meta=dict(node.meta),
            component=component,
            placeholder=placeholder,
        )

    async def _render_loop(
        self,
        node: Node,
        loop: Loop,
        context: RenderContext,
        render_pass: _RenderPass,
    ) -> list[RenderNode]:
        items = self._loop_items(loop, context)
        if not items:
            return []

        template = node.model_copy(update={"loop": None})
        outputs = await self._gather(
            [
                functools.partial(
                    self._render_node,
                    template,
                    context.with_variables(**{loop.item_key: item, loop.index_key: index}),
                    render_pass,
                )
                for index, item in enumerate(items)
            ]
        )
        return _flatten(outputs)

    def _loop_items(self, loop: Loop, context: RenderContext) -> list[Any]:
        source = loop.data_source
        if isinstance(source, list):
            return source

        parts = split_path(source)
        if parts and parts[0] in _LOOP_ROOTS:
            root: Mapping[str, Any] | None = context.namespace(str(parts[0]))
            parts = parts[1:]
        else:
            root = context.data
        items = resolve_path(root, parts)

        if not isinstance(items, (list, tuple)):
            logger.warning(
                "loop_source_not_a_list",
                data_source=source,
                actual_type=type(items).__name__,
            )
            return []
        return list(items)

    async def _render_many(
        self, nodes: Sequence[Node], context: RenderContext, render_pass: _RenderPass
    ) -> list[RenderNode]:
        if not nodes:
            return []
        outputs = await self._gather(
            [
                functools.partial(self._render_node, child, context, render_pass)
                for child in nodes
            ]
        )
        return _flatten(outputs)

    @staticmethod
    async def _gather(jobs: Sequence[Callable[[], Awaitable[T]]]) -> list[T]:
        """Run jobs concurrently; results keep job order.

        The first failure in job order is re-raised once all jobs finish.
        """
        if len(jobs) == 1:
            return [await jobs[0]()]

        # Pre-allocate results to maintain order
        results: list[Any] = [None] * len(jobs)

        async def run_job(index: int, job: Callable[[], Awaitable[T]]) -> None:
            try:
                results[index] = await job()
            except Exception as exc:
                results[index] = exc

        async with anyio.create_task_group() as tg:
            for idx, job in enumerate(jobs):
                tg.start_soon(run_job, idx, job)

        for result in results:
            if isinstance(result, Exception):
                raise result
        return results


def _flatten(outputs: Sequence[RenderOutput]) -> list[RenderNode]:
    """Drop absent nodes and splice loop output lists in place."""
    flat: list[RenderNode] = []
    for output in outputs:
        if output is None:
            continue
        if isinstance(output, list):
            flat.extend(output)
        else:
            flat.append(output)
    return flat
