"""Registries the host fills in: renderable components and callable functions.

- ComponentRegistry maps node type tags to whatever the host renders with
  (classes, template names, factories). The engine never inspects them.
- FunctionRegistry maps names to Python callables for callFunction actions.

Both support decorator and direct registration:

    functions = FunctionRegistry()

    @functions.register("track")
    async def track(event_name: str) -> None:
        ...

    components.register("Button", ButtonWidget)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar, overload

from pagewright.exceptions import DuplicateRegistrationError, FunctionNotFoundError

__all__ = ["ComponentRegistry", "FunctionRegistry"]

T = TypeVar("T")


class _Registry(Generic[T]):
    kind = "entry"

    def __init__(self) -> None:
        self._entries: dict[str, T] = {}
        self._lock = threading.Lock()

    @overload
    def register(self, name: str) -> Callable[[T], T]: ...

    @overload
    def register(self, name: str, entry: T, *, replace: bool = False) -> T: ...

    def register(
        self, name: str, entry: T | None = None, *, replace: bool = False
    ) -> T | Callable[[T], T]:
        """Register ``entry`` under ``name``; usable as a decorator.

        Raises:
            DuplicateRegistrationError: If ``name`` is taken and ``replace``
                is False.
        """
        if entry is None:

            def decorator(target: T) -> T:
                self._store(name, target, replace)
                return target

            return decorator
        self._store(name, entry, replace)
        return entry

    def _store(self, name: str, entry: T, replace: bool) -> None:
        with self._lock:
            if name in self._entries and not replace:
                raise DuplicateRegistrationError(self.kind, name)
            self._entries[name] = entry

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._entries.pop(name, None) is not None

    def get(self, name: str) -> T | None:
        return self._entries.get(name)

    def has(self, name: str) -> bool:
        return name in self._entries

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ComponentRegistry(_Registry[Any]):
    """Maps node type tags to host renderables.

    Unknown tags are not an error: ``resolve`` returns None and the engine
    emits a placeholder node.
    """

    kind = "component"

    def resolve(self, type_tag: str) -> Any | None:
        return self.get(type_tag)


class FunctionRegistry(_Registry[Callable[..., Any]]):
    """Named Python callables available to callFunction actions."""

    kind = "function"

    def lookup(self, name: str) -> Callable[..., Any]:
        """Return the function registered as ``name``.

        Raises:
            FunctionNotFoundError: If nothing is registered under ``name``.
        """
        function = self.get(name)
        if function is None:
            raise FunctionNotFoundError(name, tuple(self.names()))
        return function
