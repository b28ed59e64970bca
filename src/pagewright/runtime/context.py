"""Render context: the data namespaces visible to bindings and expressions."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

__all__ = ["RenderContext", "NAMESPACES", "CONTEXT_ROOTS"]

#: Namespaces a simple condition field may start with.
NAMESPACES: tuple[str, ...] = (
    "data",
    "state",
    "variables",
    "params",
    "query",
    "user",
    "tenant",
)

#: Roots accepted by ``context`` bindings.
CONTEXT_ROOTS: tuple[str, ...] = ("user", "tenant", "params", "query")

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(slots=True)
class RenderContext:
    """Mutable, externally owned state a schema is rendered against.

    ``data``, ``state``, ``variables``, ``params`` and ``query`` are plain
    dicts shared with the host; actions such as setState write into
    ``state`` in place. ``user`` and ``tenant`` are exposed read-only.

    Example:
        ```python
        ctx = RenderContext(
            data={"products": [...]},
            state={"count": 5},
            user={"id": "u-1", "roles": ["admin"]},
        )
        ```
    """

    data: dict[str, Any] = field(default_factory=dict)
    state: dict[str, Any] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    query: dict[str, Any] = field(default_factory=dict)
    user: Mapping[str, Any] | None = None
    tenant: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.user is not None and not isinstance(self.user, MappingProxyType):
            self.user = MappingProxyType(dict(self.user))
        if self.tenant is not None and not isinstance(self.tenant, MappingProxyType):
            self.tenant = MappingProxyType(dict(self.tenant))

    def with_variables(self, **variables: Any) -> RenderContext:
        """Derive a child context that overrides only ``variables``.

        The other namespaces are shared with the parent, so state written by
        one loop iteration is visible to the next.
        """
        return replace(self, variables={**self.variables, **variables})

    def namespace(self, name: str) -> Mapping[str, Any] | None:
        """Return the namespace called ``name``, or None if unknown."""
        if name not in NAMESPACES:
            return None
        value: Mapping[str, Any] | None = getattr(self, name)
        return value if value is not None else _EMPTY

    def scope(self, **extra: Any) -> dict[str, Any]:
        """Return the variable scope seen by expressions.

        Every namespace is available by name; ``extra`` adds values such as
        ``eventData`` or a binding's ``value``.
        """
        scope: dict[str, Any] = {name: self.namespace(name) for name in NAMESPACES}
        scope.update(extra)
        return scope

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> RenderContext:
        """Build a context from a mapping with namespace keys; others ignored."""
        if not data:
            return cls()
        return cls(**{name: data[name] for name in NAMESPACES if name in data})
