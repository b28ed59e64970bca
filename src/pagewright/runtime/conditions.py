"""Condition evaluation for node visibility, handler gates and action gates.

Conditions fail closed: any error while evaluating one is logged and the
condition is treated as false. A missing condition is true.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from typing import Any

from pagewright.logging import get_logger
from pagewright.runtime.context import NAMESPACES, RenderContext
from pagewright.runtime.expressions import (
    ExpressionEvaluator,
    describe_error,
    is_empty,
    is_truthy,
    to_text,
)
from pagewright.runtime.paths import resolve_path, split_path
from pagewright.runtime.schema import Condition
from pagewright.runtime.types import ConditionLogic, ConditionType, Operator, parse_kind

__all__ = ["ConditionEvaluator", "resolve_field"]

logger = get_logger(__name__)


def resolve_field(field: str, context: RenderContext) -> Any:
    """Resolve a condition field such as ``state.user.age``.

    The first segment selects a namespace (data, state, variables, params,
    query, user, tenant). Any other first segment resolves the whole path
    inside ``data``.
    """
    parts = split_path(field)
    if not parts:
        return None
    root = parts[0]
    if isinstance(root, str) and root in NAMESPACES:
        return resolve_path(context.namespace(root), parts[1:])
    return resolve_path(context.data, parts)


def _as_number(value: Any) -> float:
    """Numeric coercion for ordering operators. Non-numbers become NaN."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return float("nan")
    return float("nan")


def _equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def _contains(container: Any, item: Any) -> bool:
    if isinstance(container, (list, tuple, set, frozenset)):
        return item in container
    return to_text(item) in to_text(container)


def _in(value: Any, options: Any) -> bool:
    return isinstance(options, (list, tuple, set, frozenset)) and value in options


def _not_in(value: Any, options: Any) -> bool:
    return isinstance(options, (list, tuple, set, frozenset)) and value not in options


def _matches(value: Any, pattern: Any) -> bool:
    try:
        return re.search(to_text(pattern), to_text(value)) is not None
    except re.error as e:
        logger.warning(f"Invalid pattern in matches condition: {pattern!r} ({e})")
        return False


_OPERATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQUALS: _equals,
    Operator.NOT_EQUALS: lambda a, b: not _equals(a, b),
    Operator.CONTAINS: _contains,
    Operator.NOT_CONTAINS: lambda a, b: not _contains(a, b),
    Operator.GREATER_THAN: lambda a, b: _as_number(a) > _as_number(b),
    Operator.LESS_THAN: lambda a, b: _as_number(a) < _as_number(b),
    Operator.GREATER_THAN_OR_EQUAL: lambda a, b: _as_number(a) >= _as_number(b),
    Operator.LESS_THAN_OR_EQUAL: lambda a, b: _as_number(a) <= _as_number(b),
    Operator.IS_EMPTY: lambda a, _: is_empty(a),
    Operator.IS_NOT_EMPTY: lambda a, _: not is_empty(a),
    Operator.IN: _in,
    Operator.NOT_IN: _not_in,
    Operator.STARTS_WITH: lambda a, b: to_text(a).startswith(to_text(b)),
    Operator.ENDS_WITH: lambda a, b: to_text(a).endswith(to_text(b)),
    Operator.MATCHES: _matches,
}


class ConditionEvaluator:
    """Decides simple, complex and raw conditions against a render context.

    Args:
        expressions: Evaluator used for ``raw`` conditions.

    Example:
        ```python
        conditions = ConditionEvaluator(ExpressionEvaluator())
        rule = Condition(type="simple", field="state.show", operator="equals",
                         value=True)
        conditions.evaluate(rule, RenderContext(state={"show": True}))  # True
        ```
    """

    def __init__(self, expressions: ExpressionEvaluator | None = None) -> None:
        self._expressions = expressions or ExpressionEvaluator()

    def evaluate(
        self,
        condition: Condition | None,
        context: RenderContext,
        **extra_scope: Any,
    ) -> bool:
        """Evaluate ``condition``; errors are logged and yield False.

        Args:
            condition: Condition to evaluate. None is always true.
            context: Render context supplying the namespaces.
            **extra_scope: Additional names for raw expressions, such as
                ``eventData`` when gating an event handler.
        """
        if condition is None:
            return True
        try:
            return self._evaluate(condition, context, extra_scope)
        except Exception as e:
            logger.warning(
                "condition_evaluation_failed",
                condition_type=condition.type,
                error=describe_error(e),
            )
            return False

    def evaluate_all(
        self, conditions: Iterable[Condition | None], context: RenderContext
    ) -> list[bool]:
        """Evaluate each condition independently, preserving order."""
        return [self.evaluate(condition, context) for condition in conditions]

    def _evaluate(
        self, condition: Condition, context: RenderContext, extra: dict[str, Any]
    ) -> bool:
        kind = parse_kind(ConditionType, condition.type)
        if kind is ConditionType.SIMPLE:
            return self._simple(condition, context)
        if kind is ConditionType.COMPLEX:
            return self._complex(condition, context, extra)
        if kind is ConditionType.RAW:
            if not condition.expression:
                return True
            return is_truthy(
                self._expressions.execute(condition.expression, context.scope(**extra))
            )
        logger.warning(f"Unknown condition type '{condition.type}', treating as true")
        return True

    def _simple(self, condition: Condition, context: RenderContext) -> bool:
        if not condition.field or not condition.operator:
            return True
        operator = parse_kind(Operator, condition.operator)
        if operator is None:
            logger.warning(
                f"Unknown condition operator '{condition.operator}', treating as true"
            )
            return True
        value = resolve_field(condition.field, context)
        return _OPERATORS[operator](value, condition.value)

    def _complex(
        self, condition: Condition, context: RenderContext, extra: dict[str, Any]
    ) -> bool:
        if not condition.conditions:
            return True
        logic = parse_kind(ConditionLogic, condition.logic) or ConditionLogic.AND
        # Each child fails closed on its own; the generator keeps any()/all()
        # short-circuiting.
        results = (
            self.evaluate(child, context, **extra) for child in condition.conditions
        )
        if logic is ConditionLogic.OR:
            return any(results)
        return all(results)
