"""Expression evaluator.

``ExpressionEvaluator`` interprets ASTs produced by the parser against an
explicit scope mapping:

- Names resolve only from the scope; an unknown name is an error.
- ``a.b`` and ``a["b"]`` on mappings yield None for missing keys.
- ``.length`` works on strings, lists and mappings.
- Members starting with an underscore are never resolved.
- ``+`` concatenates when either side is a string.
- ``==`` is loose (``"5" == 5``), ``===`` also compares types.
- ``&&``/``||`` short-circuit and return one of their operands.
- Template strings embed expressions as ``{{ expr }}``.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Callable, Mapping, Sequence
from numbers import Number
from typing import Any

from pagewright.runtime.expressions.errors import (
    ExpressionError,
    ExpressionEvaluationError,
    ExpressionSyntaxError,
)
from pagewright.runtime.expressions.parser import (
    ArrayLiteral,
    Binary,
    Call,
    Conditional,
    ExprNode,
    Index,
    Literal,
    Logical,
    Member,
    Name,
    ObjectLiteral,
    Unary,
    iter_names,
    parse_expression,
)

__all__ = [
    "ExpressionEvaluator",
    "RESERVED_WORDS",
    "KNOWN_GLOBALS",
    "to_text",
    "is_truthy",
    "is_empty",
    "describe_error",
    "BUILTINS",
]

#: Words that are never reported as variables.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "true", "false", "null", "undefined", "True", "False", "None",
        "and", "or", "not", "in", "is", "if", "else", "return", "this",
        "new", "typeof", "instanceof", "var", "let", "const", "function",
        "void", "delete", "class", "import", "export", "await", "async",
    }
)

#: Well-known global names that are never reported as variables.
KNOWN_GLOBALS: frozenset[str] = frozenset(
    {
        "Math", "Date", "JSON", "Array", "Object", "String", "Number",
        "Boolean", "RegExp", "Promise", "console", "window", "document",
        "parseInt", "parseFloat", "isNaN", "isFinite", "NaN", "Infinity",
    }
)

_TEMPLATE_PATTERN = re.compile(r"\{\{\s*(.*?)\s*\}\}", re.DOTALL)


def is_truthy(value: Any) -> bool:
    return bool(value)


def is_empty(value: Any) -> bool:
    """True for None, False, 0, empty strings and empty containers."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, Sequence, Mapping)):
        return len(value) == 0
    return not value


def to_text(value: Any) -> str:
    """Render ``value`` the way it appears in templates and string concatenation."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, Number) and not isinstance(value, bool)


def _to_number(value: Any) -> float | int:
    if isinstance(value, bool):
        return int(value)
    if _is_number(value):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise TypeError(f"cannot convert {type(value).__name__} to a number")


def _loose_equals(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is None and right is None
    if _is_number(left) and isinstance(right, str):
        try:
            return left == _to_number(right)
        except ValueError:
            return False
    if isinstance(left, str) and _is_number(right):
        return _loose_equals(right, left)
    return bool(left == right)


def _strict_equals(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if _is_number(left) and _is_number(right):
        return bool(left == right)
    if type(left) is not type(right):
        return False
    return bool(left == right)


def _divide(left: Any, right: Any) -> Any:
    if right == 0:
        raise ZeroDivisionError("division by zero")
    if isinstance(left, int) and isinstance(right, int) and left % right == 0:
        return left // right
    return left / right


def _modulo(left: Any, right: Any) -> Any:
    if right == 0:
        raise ZeroDivisionError("modulo by zero")
    result = math.fmod(left, right)
    if isinstance(left, int) and isinstance(right, int):
        return int(result)
    return result


def _add(left: Any, right: Any) -> Any:
    if isinstance(left, str) or isinstance(right, str):
        return to_text(left) + to_text(right)
    if isinstance(left, list) and isinstance(right, list):
        return left + right
    return _require_numbers("+", left, right, lambda a, b: a + b)


def _require_numbers(
    op: str, left: Any, right: Any, fn: Callable[[Any, Any], Any]
) -> Any:
    if not (_is_number(left) or isinstance(left, bool)) or not (
        _is_number(right) or isinstance(right, bool)
    ):
        raise TypeError(
            f"unsupported operand types for {op}: "
            f"{type(left).__name__} and {type(right).__name__}"
        )
    return fn(left, right)


def _contains(container: Any, item: Any) -> bool:
    if isinstance(container, str):
        return to_text(item) in container
    if isinstance(container, (Mapping, Sequence, set, frozenset)):
        return item in container
    raise TypeError(
        f"'in' needs a string, list or object, got {type(container).__name__}"
    )


_BINARY_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "+": _add,
    "-": lambda a, b: _require_numbers("-", a, b, lambda x, y: x - y),
    "*": lambda a, b: _require_numbers("*", a, b, lambda x, y: x * y),
    "/": lambda a, b: _require_numbers("/", a, b, _divide),
    "%": lambda a, b: _require_numbers("%", a, b, _modulo),
    "==": _loose_equals,
    "!=": lambda a, b: not _loose_equals(a, b),
    "===": _strict_equals,
    "!==": lambda a, b: not _strict_equals(a, b),
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "in": _contains,
}


def _fn_min_max(pick: Callable[..., Any]) -> Callable[..., Any]:
    def call(*args: Any) -> Any:
        if len(args) == 1 and isinstance(args[0], (list, tuple)):
            return pick(args[0])
        return pick(args)

    return call


def _fn_round(value: Any, digits: int = 0) -> Any:
    result = round(_to_number(value), int(digits))
    return int(result) if digits == 0 else result


def _fn_concat(*args: Any) -> Any:
    if args and all(isinstance(arg, list) for arg in args):
        return [item for arg in args for item in arg]
    return "".join(to_text(arg) for arg in args)


def _fn_join(items: Sequence[Any], separator: str = ",") -> str:
    return separator.join(to_text(item) for item in items)


def _fn_split(text: str, separator: str | None = None) -> list[str]:
    return to_text(text).split(separator)


def _fn_int(value: Any) -> int:
    return int(_to_number(value))


BUILTINS: dict[str, Callable[..., Any]] = {
    "len": len,
    "str": to_text,
    "number": _to_number,
    "int": _fn_int,
    "float": lambda value: float(_to_number(value)),
    "bool": is_truthy,
    "abs": lambda value: abs(_to_number(value)),
    "min": _fn_min_max(min),
    "max": _fn_min_max(max),
    "round": _fn_round,
    "sum": lambda items: sum(_to_number(item) for item in items),
    "lower": lambda text: to_text(text).lower(),
    "upper": lambda text: to_text(text).upper(),
    "trim": lambda text: to_text(text).strip(),
    "includes": lambda container, item: _contains(container, item),
    "startsWith": lambda text, prefix: to_text(text).startswith(to_text(prefix)),
    "endsWith": lambda text, suffix: to_text(text).endswith(to_text(suffix)),
    "join": _fn_join,
    "split": _fn_split,
    "keys": lambda mapping: list(mapping.keys()),
    "values": lambda mapping: list(mapping.values()),
    "concat": _fn_concat,
    "default": lambda value, fallback: fallback if value is None else value,
    "isEmpty": is_empty,
}


class _Interpreter:
    """Walks one AST against one scope."""

    def __init__(self, source: str, scope: Mapping[str, Any]) -> None:
        self._source = source
        self._scope = scope

    def fail(self, message: str) -> ExpressionEvaluationError:
        return ExpressionEvaluationError(
            message, expression=self._source, context_vars=tuple(self._scope)
        )

    def run(self, node: ExprNode) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Name):
            if node.name not in self._scope:
                raise self.fail(f"Unknown variable '{node.name}'")
            return self._scope[node.name]
        if isinstance(node, Member):
            return self._member(self.run(node.target), node.name)
        if isinstance(node, Index):
            return self._index(self.run(node.target), self.run(node.key))
        if isinstance(node, Logical):
            left = self.run(node.left)
            if node.op == "and":
                return self.run(node.right) if is_truthy(left) else left
            return left if is_truthy(left) else self.run(node.right)
        if isinstance(node, Conditional):
            branch = node.when_true if is_truthy(self.run(node.test)) else node.when_false
            return self.run(branch)
        if isinstance(node, Unary):
            return self._unary(node.op, self.run(node.operand))
        if isinstance(node, Binary):
            return self._binary(node.op, self.run(node.left), self.run(node.right))
        if isinstance(node, Call):
            return self._call(node.function, [self.run(arg) for arg in node.args])
        if isinstance(node, ArrayLiteral):
            return [self.run(item) for item in node.items]
        if isinstance(node, ObjectLiteral):
            return {key: self.run(value) for key, value in node.entries}
        raise self.fail(f"Unsupported expression node {type(node).__name__}")

    def _member(self, target: Any, name: str) -> Any:
        if target is None:
            raise self.fail(f"Cannot read property '{name}' of null")
        if name.startswith("_"):
            raise self.fail(f"Access to private member '{name}' is not allowed")
        if isinstance(target, Mapping):
            if name in target:
                return target[name]
            return len(target) if name == "length" else None
        if isinstance(target, (str, list, tuple)):
            return len(target) if name == "length" else None
        return getattr(target, name, None)

    def _index(self, target: Any, key: Any) -> Any:
        if target is None:
            raise self.fail(f"Cannot read index {key!r} of null")
        if isinstance(target, Mapping):
            if isinstance(key, str) and key.startswith("_"):
                raise self.fail(f"Access to private member '{key}' is not allowed")
            if key in target:
                return target[key]
            return target.get(str(key)) if not isinstance(key, str) else None
        if isinstance(target, (str, list, tuple)):
            if isinstance(key, bool) or not isinstance(key, int):
                if key == "length":
                    return len(target)
                if isinstance(key, float) and key.is_integer():
                    key = int(key)
                else:
                    return None
            if 0 <= key < len(target):
                return target[key]
            return None
        if isinstance(key, str):
            return self._member(target, key)
        raise self.fail(f"Cannot index {type(target).__name__} with {key!r}")

    def _unary(self, op: str, value: Any) -> Any:
        if op == "!":
            return not is_truthy(value)
        try:
            number = _to_number(value)
        except (TypeError, ValueError) as e:
            raise self.fail(f"Cannot apply unary '{op}' to {value!r}") from e
        return -number if op == "-" else number

    def _binary(self, op: str, left: Any, right: Any) -> Any:
        try:
            return _BINARY_OPERATORS[op](left, right)
        except ZeroDivisionError as e:
            raise self.fail("Division by zero") from e
        except (TypeError, ValueError) as e:
            raise self.fail(f"Cannot apply '{op}': {e}") from e

    def _call(self, function: str, args: list[Any]) -> Any:
        try:
            return BUILTINS[function](*args)
        except (TypeError, ValueError, AttributeError, KeyError) as e:
            raise self.fail(f"{function}() failed: {e}") from e


class ExpressionEvaluator:
    """Evaluates expression strings against a variable scope.

    The evaluator holds no per-call state and can be shared by every
    component of an engine.

    Example:
        ```python
        evaluator = ExpressionEvaluator()
        evaluator.execute("state.count * 2", {"state": {"count": 5}})  # 10
        evaluator.validate("a +")  # False
        evaluator.extract_variables("a + b.c")  # ["a", "b"]
        evaluator.resolve_template("Hi {{ user.name }}", {"user": {"name": "Ada"}})
        ```
    """

    def execute(self, expression: str, scope: Mapping[str, Any]) -> Any:
        """Evaluate ``expression`` using only the names in ``scope``.

        Raises:
            ExpressionSyntaxError: If the expression does not parse.
            ExpressionEvaluationError: If evaluation fails.
        """
        node = parse_expression(expression)
        return _Interpreter(expression, scope).run(node)

    def validate(self, expression: str) -> bool:
        """Return True if ``expression`` parses. Never evaluates anything."""
        try:
            parse_expression(expression)
        except ExpressionSyntaxError:
            return False
        return True

    def extract_variables(self, expression: str) -> list[str]:
        """Return the distinct free identifiers of ``expression`` in order.

        Reserved words, well-known globals and built-in function names are
        excluded.

        Raises:
            ExpressionSyntaxError: If the expression does not parse.
        """
        seen: dict[str, None] = {}
        for name in iter_names(parse_expression(expression)):
            if name in RESERVED_WORDS or name in KNOWN_GLOBALS or name in BUILTINS:
                continue
            seen.setdefault(name, None)
        return list(seen)

    def resolve_template(self, value: Any, scope: Mapping[str, Any]) -> Any:
        """Resolve ``{{ }}`` expressions inside a string value.

        A string that is exactly one ``{{ expr }}`` evaluates to the typed
        result; other strings have each expression interpolated as text.
        Non-string values are returned unchanged.
        """
        if not isinstance(value, str) or "{{" not in value:
            return value
        stripped = value.strip()
        match = _TEMPLATE_PATTERN.fullmatch(stripped)
        if match is not None and "{{" not in match.group(1):
            return self.execute(match.group(1), scope)
        return _TEMPLATE_PATTERN.sub(
            lambda m: to_text(self.execute(m.group(1), scope)), value
        )

    def resolve_structure(
        self,
        value: Any,
        scope: Mapping[str, Any],
        skip_keys: frozenset[str] = frozenset(),
    ) -> Any:
        """Resolve templates recursively through dicts and lists.

        Keys listed in ``skip_keys`` are copied verbatim at the top level.
        """
        if isinstance(value, Mapping):
            return {
                key: item if key in skip_keys else self.resolve_structure(item, scope)
                for key, item in value.items()
            }
        if isinstance(value, list):
            return [self.resolve_structure(item, scope) for item in value]
        return self.resolve_template(value, scope)


def describe_error(error: Exception) -> str:
    """Short, single-line description of an evaluation failure for logs."""
    if isinstance(error, ExpressionError):
        return error.message.splitlines()[0]
    return f"{type(error).__name__}: {error}"
