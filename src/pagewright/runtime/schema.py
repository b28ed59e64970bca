"""Pydantic models for page schema documents.

This module defines the declarative tree the engine renders:
- Schema: top-level document (id, version, root node, metadata)
- Node: one element of the UI tree, with children and named slots
- Binding: how a single property obtains its value
- Condition: visibility/gating rule (simple, complex or raw)
- Loop: repetition of a node over a sequence
- EventHandler / Action: event-triggered action chains

Documents use camelCase keys (``defaultValue``, ``onError``); models expose
snake_case attributes and accept either spelling. Kind tags are kept as plain
strings so that unknown kinds reach the runtime's explicit fallback branches
instead of failing at load time.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pagewright.constants import DEFAULTS
from pagewright.exceptions import SchemaParseError

__all__ = [
    "SchemaModel",
    "Binding",
    "Condition",
    "Loop",
    "Action",
    "EventHandler",
    "Node",
    "Schema",
    "load_schema",
]


class SchemaModel(BaseModel):
    """Base configuration shared by all schema models."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="allow",
    )


class Binding(SchemaModel):
    """Binding of one node property to a value source.

    Attributes:
        target: Property name the resolved value is written to.
        type: Binding kind (see ``BindingType``).
        source: Literal value (static) or expression/dotted path.
        transform: Optional expression applied to the resolved value, which is
            available to it as ``value``.
        default_value: Fallback used on failure or when nothing resolves.
        mode: ``strict`` makes failures fatal; anything else degrades.
    """

    target: str
    type: str
    source: Any = None
    transform: str | None = None
    default_value: Any = Field(default=None, alias="defaultValue")
    mode: str = "one-way"

    @property
    def has_default(self) -> bool:
        """True when the document declared a defaultValue (even null)."""
        return "default_value" in self.model_fields_set


class Condition(SchemaModel):
    """Boolean rule gating a node, a handler or an action.

    ``simple`` uses field/operator/value, ``complex`` combines nested
    conditions with and/or, ``raw`` evaluates a free-form expression.
    """

    type: str
    field: str | None = None
    operator: str | None = None
    value: Any = None
    logic: str = "and"
    conditions: list[Condition] = Field(default_factory=list)
    expression: str | None = None


class Loop(SchemaModel):
    """Repeats a node once per item of ``data_source``."""

    data_source: str | list[Any] = Field(alias="dataSource")
    item_key: str = Field(default=DEFAULTS.LOOP_ITEM_KEY, alias="itemKey")
    index_key: str = Field(default=DEFAULTS.LOOP_INDEX_KEY, alias="indexKey")


class Action(SchemaModel):
    """One step of an event handler chain.

    ``on_error`` runs instead of propagating when the action fails;
    ``on_success`` runs after it succeeds, before the next sibling action.
    """

    type: str
    config: dict[str, Any] = Field(default_factory=dict)
    condition: Condition | None = None
    on_error: list[Action] | None = Field(default=None, alias="onError")
    on_success: list[Action] | None = Field(default=None, alias="onSuccess")


class EventHandler(SchemaModel):
    """Actions run when ``event`` fires on a node.

    Attributes:
        event: Event name, e.g. "click" or "submit".
        actions: Ordered action chain.
        condition: Optional gate evaluated when the event fires.
        debounce: Trailing-edge debounce window in milliseconds.
        throttle: Leading-edge throttle window in milliseconds.
    """

    event: str
    actions: list[Action] = Field(default_factory=list)
    condition: Condition | None = None
    debounce: float | None = Field(default=None, ge=0)
    throttle: float | None = Field(default=None, ge=0)


class Node(SchemaModel):
    """An element of the UI tree."""

    id: str
    type: str
    props: dict[str, Any] = Field(default_factory=dict)
    style: dict[str, Any] | None = None
    layout: dict[str, Any] | None = None
    bindings: list[Binding] = Field(default_factory=list)
    events: list[EventHandler] = Field(default_factory=list)
    condition: Condition | None = None
    loop: Loop | None = None
    children: list[Node] = Field(default_factory=list)
    slots: dict[str, list[Node]] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)

    def child_lists(self) -> list[tuple[str, list[Node]]]:
        """Return ``children`` followed by every slot list, with path labels.

        Example:
            >>> [label for label, _ in node.child_lists()]
            ['children', 'slots.header', 'slots.footer']
        """
        lists: list[tuple[str, list[Node]]] = [("children", self.children)]
        lists.extend((f"slots.{name}", nodes) for name, nodes in self.slots.items())
        return lists


class Schema(SchemaModel):
    """A complete page schema document.

    ``id``, ``version`` and ``root`` are optional at model level so that
    ``validate_schema`` can report every missing piece at once.
    """

    id: str = ""
    version: str = ""
    name: str | None = None
    title: str | None = None
    root: Node | None = None
    meta: dict[str, Any] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize using document (camelCase) keys, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str | None = None) -> Schema:
        """Create a schema from a parsed document.

        Raises:
            SchemaParseError: If the document does not match the models.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            raise SchemaParseError(
                f"Invalid schema at '{location}': {first['msg']}", source=source
            ) from e

    @classmethod
    def from_yaml(cls, content: str, source: str | None = None) -> Schema:
        """Create a schema from YAML (or JSON, which is valid YAML)."""
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise SchemaParseError(f"Invalid YAML: {e}", source=source) from e
        if not isinstance(data, dict):
            raise SchemaParseError("Schema document must be a mapping", source=source)
        return cls.from_dict(data, source=source)


def load_schema(path: Path | str) -> Schema:
    """Read a schema document from a .yaml, .yml or .json file."""
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaParseError(f"Cannot read file: {e}", source=str(path)) from e
    return Schema.from_yaml(content, source=str(path))


Condition.model_rebuild()
Action.model_rebuild()
Node.model_rebuild()
