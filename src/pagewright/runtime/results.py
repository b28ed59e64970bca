"""Result types produced by analysis, rendering and event dispatch."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pagewright.runtime.schema import Action, Binding, EventHandler

__all__ = [
    "ValidationIssue",
    "ValidationResult",
    "HandlerRef",
    "SchemaAnalysis",
    "RenderNode",
    "RenderOutput",
    "RenderContent",
    "PerformanceMetrics",
    "RenderResult",
    "HandlerFailure",
    "EventDispatchResult",
]


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A structural problem found in a schema.

    Fields:
        code: Stable identifier, e.g. "missing_root" or "duplicate_id".
        message: Human-readable explanation.
        path: Location in the tree, e.g. "root.children[1].slots.header[0]".
    """

    code: str
    message: str
    path: str = ""

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass(frozen=True, slots=True)
class ValidationResult:
    valid: bool
    errors: tuple[ValidationIssue, ...] = ()


@dataclass(frozen=True, slots=True)
class HandlerRef:
    """An event handler located in a schema.

    ``position`` counts earlier handlers for the same node and event, so
    ``key`` stays stable when a schema is registered again.
    """

    node_id: str
    event: str
    handler: EventHandler
    position: int = 0

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.node_id, self.event, self.position)

    @property
    def actions(self) -> list[Action]:
        return self.handler.actions


@dataclass(frozen=True, slots=True)
class SchemaAnalysis:
    """Summary of a schema gathered in one depth-first traversal.

    Fields:
        component_dependencies: Distinct node type tags, first-seen order.
        data_bindings: Every binding in the tree, flattened in traversal order.
        event_handlers: Every event handler with its owning node id.
        conditional_nodes: Ids of nodes that declare a condition.
        loop_nodes: Ids of nodes that declare a loop.
        max_depth: Deepest node depth, with the root at 0.
        total_nodes: Number of nodes, slot contents included.
    """

    component_dependencies: tuple[str, ...]
    data_bindings: tuple[Binding, ...]
    event_handlers: tuple[HandlerRef, ...]
    conditional_nodes: tuple[str, ...]
    loop_nodes: tuple[str, ...]
    max_depth: int
    total_nodes: int


@dataclass(frozen=True, slots=True)
class RenderNode:
    """A resolved node ready for a host renderer.

    Nodes are read-only once built: mappings are wrapped in
    ``MappingProxyType`` and node lists stored as tuples, so a cached result
    can be handed out again unchanged. Bound values inside ``props`` are
    shared with the render context, not copied.

    Fields:
        type: The node's type tag.
        id: The node id.
        props: Static props overlaid with resolved binding values.
        children: Rendered children; absent (condition false) ones removed
            and loop outputs spliced in place.
        slots: Rendered slot lists by name.
        meta: Pass-through metadata from the schema node.
        component: Renderable resolved from the component registry, if any.
        placeholder: True when a registry is attached and has no entry for
            ``type``.
    """

    type: str
    id: str
    props: Mapping[str, Any] = field(default_factory=dict)
    children: tuple[RenderNode, ...] = ()
    slots: Mapping[str, tuple[RenderNode, ...]] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)
    component: Any = None
    placeholder: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "props", MappingProxyType(dict(self.props)))
        object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(
            self,
            "slots",
            MappingProxyType({name: tuple(nodes) for name, nodes in self.slots.items()}),
        )
        object.__setattr__(self, "meta", MappingProxyType(dict(self.meta)))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type,
            "id": self.id,
            "props": dict(self.props),
            "children": [child.to_dict() for child in self.children],
        }
        if self.slots:
            data["slots"] = {
                name: [node.to_dict() for node in nodes]
                for name, nodes in self.slots.items()
            }
        if self.meta:
            data["meta"] = dict(self.meta)
        if self.placeholder:
            data["placeholder"] = True
        return data

    def iter_nodes(self) -> list[RenderNode]:
        """This node and all descendants (children, then slots), depth first."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.iter_nodes())
        for slot_nodes in self.slots.values():
            for child in slot_nodes:
                nodes.extend(child.iter_nodes())
        return nodes


#: What rendering one schema node yields: nothing, a node, or loop output.
RenderOutput = RenderNode | list[RenderNode] | None

#: Root content of a RenderResult; loop output is frozen into a tuple.
RenderContent = RenderNode | tuple[RenderNode, ...] | None


@dataclass(frozen=True, slots=True)
class PerformanceMetrics:
    render_time_ms: float
    component_count: int
    data_binding_count: int
    event_handler_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "renderTime": self.render_time_ms,
            "componentCount": self.component_count,
            "dataBindingCount": self.data_binding_count,
            "eventHandlerCount": self.event_handler_count,
        }


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Outcome of one render call.

    Fields:
        content: Rendered root: a node, a tuple of nodes when the root itself
            loops, or None when the root's condition is false.
        components: Distinct component type tags referenced by the schema.
        data_dependencies: Data dependency keys (see extract_data_dependencies).
        performance: Timing and counts, when performance tracking is enabled.
    """

    content: RenderContent
    components: tuple[str, ...]
    data_dependencies: tuple[str, ...]
    performance: PerformanceMetrics | None = None

    def __post_init__(self) -> None:
        if isinstance(self.content, list):
            object.__setattr__(self, "content", tuple(self.content))

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.content, tuple):
            content: Any = [node.to_dict() for node in self.content]
        elif self.content is not None:
            content = self.content.to_dict()
        else:
            content = None
        data: dict[str, Any] = {
            "content": content,
            "components": list(self.components),
            "dataDependencies": list(self.data_dependencies),
        }
        if self.performance is not None:
            data["performance"] = self.performance.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class HandlerFailure:
    """A handler whose action chain raised without an onError to absorb it."""

    node_id: str
    event: str
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(frozen=True, slots=True)
class EventDispatchResult:
    """Outcome of dispatching one event to its registered handlers.

    Fields:
        event: Event name.
        executed: Handlers whose action chain ran to completion.
        skipped: Handlers whose gating condition was false.
        scheduled: Handlers deferred by debounce.
        suppressed: Handlers dropped by throttle.
        failures: Handlers whose chain aborted, with the error.
    """

    event: str
    executed: int = 0
    skipped: int = 0
    scheduled: int = 0
    suppressed: int = 0
    failures: tuple[HandlerFailure, ...] = ()

    @property
    def success(self) -> bool:
        return not self.failures
