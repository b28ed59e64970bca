"""Pagewright runtime: schema models, evaluation, rendering and events.

Typical use:

    from pagewright.runtime import RenderContext, RenderEngine, Schema

    engine = RenderEngine()
    schema = Schema.from_dict(document)
    result = await engine.render(schema, RenderContext(data={...}))
    await engine.dispatch("click", {"id": 1}, context)
"""

from __future__ import annotations

from pagewright.runtime.actions import (
    ACTION_HANDLERS,
    AiohttpApiClient,
    ApiClient,
    UiIntent,
    get_handler,
)
from pagewright.runtime.analyzer import (
    analyze_schema,
    compute_schema_hash,
    extract_data_dependencies,
    validate_schema,
)
from pagewright.runtime.bindings import DataBindingResolver
from pagewright.runtime.cache import CacheStats, RenderCache
from pagewright.runtime.conditions import ConditionEvaluator
from pagewright.runtime.context import RenderContext
from pagewright.runtime.engine import RenderEngine, RenderOptions
from pagewright.runtime.events import (
    CacheCleared,
    EventTriggered,
    HandlerFailed,
    Notification,
    NotificationBus,
    RenderCached,
    RenderCompleted,
    RenderFailed,
    RenderStarted,
)
from pagewright.runtime.executor import EventExecutor
from pagewright.runtime.expressions import ExpressionEvaluator
from pagewright.runtime.registry import ComponentRegistry, FunctionRegistry
from pagewright.runtime.results import (
    EventDispatchResult,
    HandlerFailure,
    HandlerRef,
    PerformanceMetrics,
    RenderNode,
    RenderResult,
    SchemaAnalysis,
    ValidationIssue,
    ValidationResult,
)
from pagewright.runtime.schema import (
    Action,
    Binding,
    Condition,
    EventHandler,
    Loop,
    Node,
    Schema,
    load_schema,
)
from pagewright.runtime.types import (
    ActionType,
    BindingMode,
    BindingType,
    ConditionLogic,
    ConditionType,
    Operator,
)

__all__ = [
    # Schema
    "Schema",
    "Node",
    "Binding",
    "Condition",
    "Loop",
    "Action",
    "EventHandler",
    "load_schema",
    # Kinds
    "ActionType",
    "BindingMode",
    "BindingType",
    "ConditionLogic",
    "ConditionType",
    "Operator",
    # Evaluation
    "RenderContext",
    "ExpressionEvaluator",
    "ConditionEvaluator",
    "DataBindingResolver",
    # Analysis
    "analyze_schema",
    "validate_schema",
    "extract_data_dependencies",
    "compute_schema_hash",
    "SchemaAnalysis",
    "ValidationIssue",
    "ValidationResult",
    # Rendering
    "RenderEngine",
    "RenderOptions",
    "RenderNode",
    "RenderResult",
    "PerformanceMetrics",
    "RenderCache",
    "CacheStats",
    "ComponentRegistry",
    # Events
    "EventExecutor",
    "EventDispatchResult",
    "HandlerFailure",
    "HandlerRef",
    "FunctionRegistry",
    "ACTION_HANDLERS",
    "get_handler",
    "ApiClient",
    "AiohttpApiClient",
    "UiIntent",
    # Notifications
    "NotificationBus",
    "Notification",
    "RenderStarted",
    "RenderCompleted",
    "RenderCached",
    "RenderFailed",
    "CacheCleared",
    "EventTriggered",
    "HandlerFailed",
]
