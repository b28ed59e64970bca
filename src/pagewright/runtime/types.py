"""Closed vocabularies used by schemas.

Every kind tag that drives a dispatch table (bindings, conditions, condition
operators, actions) is an ``Enum`` here. Schema models keep the raw string so
documents from newer editors still load; dispatchers convert with
``parse_kind`` and take their unknown-kind branch when it returns ``None``.
"""

from __future__ import annotations

from enum import Enum
from typing import TypeVar

__all__ = [
    "BindingType",
    "BindingMode",
    "ConditionType",
    "ConditionLogic",
    "Operator",
    "ActionType",
    "RESERVED_ACTION_TYPES",
    "parse_kind",
]

_E = TypeVar("_E", bound=Enum)


class BindingType(str, Enum):
    """Where a binding takes its value from."""

    STATIC = "static"
    EXPRESSION = "expression"
    DATASOURCE = "datasource"
    STATE = "state"
    VARIABLE = "variable"
    CONTEXT = "context"
    COMPUTED = "computed"


class BindingMode(str, Enum):
    """Failure policy of a binding. Any mode other than strict degrades."""

    ONE_WAY = "one-way"
    TWO_WAY = "two-way"
    STRICT = "strict"


class ConditionType(str, Enum):
    SIMPLE = "simple"
    COMPLEX = "complex"
    RAW = "raw"


class ConditionLogic(str, Enum):
    AND = "and"
    OR = "or"


class Operator(str, Enum):
    """Comparison operators of simple conditions."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    NOT_CONTAINS = "notContains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    GREATER_THAN_OR_EQUAL = "greaterThanOrEqual"
    LESS_THAN_OR_EQUAL = "lessThanOrEqual"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    IN = "in"
    NOT_IN = "notIn"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    MATCHES = "matches"


class ActionType(str, Enum):
    """Action kinds an event handler may run."""

    SET_STATE = "setState"
    CALL_API = "callApi"
    NAVIGATE = "navigate"
    SHOW_MESSAGE = "showMessage"
    OPEN_MODAL = "openModal"
    CLOSE_MODAL = "closeModal"
    EXECUTE_CODE = "executeCode"
    TRIGGER_EVENT = "triggerEvent"
    CALL_FUNCTION = "callFunction"

    # Reserved: accepted by the schema, no executor behavior yet.
    CONDITION = "condition"
    LOOP = "loop"
    PARALLEL = "parallel"
    SEQUENCE = "sequence"
    UPDATE_COMPONENT = "updateComponent"
    SHOW_COMPONENT = "showComponent"
    HIDE_COMPONENT = "hideComponent"
    SHOW_NOTIFICATION = "showNotification"
    CALL_WORKFLOW = "callWorkflow"


RESERVED_ACTION_TYPES: frozenset[ActionType] = frozenset(
    {
        ActionType.CONDITION,
        ActionType.LOOP,
        ActionType.PARALLEL,
        ActionType.SEQUENCE,
        ActionType.UPDATE_COMPONENT,
        ActionType.SHOW_COMPONENT,
        ActionType.HIDE_COMPONENT,
        ActionType.SHOW_NOTIFICATION,
        ActionType.CALL_WORKFLOW,
    }
)


def parse_kind(enum_cls: type[_E], value: str | None) -> _E | None:
    """Convert a raw kind tag to ``enum_cls``, or None when it is not a member.

    Example:
        >>> parse_kind(BindingType, "state")
        <BindingType.STATE: 'state'>
        >>> parse_kind(BindingType, "telepathy") is None
        True
    """
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None
