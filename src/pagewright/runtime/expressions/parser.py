"""Expression parser.

Expressions are parsed with a Lark LALR grammar (grammar.lark) and turned
into a small immutable AST. Nothing is ever compiled to Python code: the
evaluator walks these nodes and can only reach names present in the scope it
is given, members of those values, and the allow-listed built-in functions.

Expression syntax:
- state.count > 5 && user.roles.length > 0
- data.products[0].name
- "Hello " + user.name
- len(data.items) == 0 ? "empty" : "has items"
- includes(user.roles, "admin") or not state.locked
- {label: item.name, active: index == state.selected}
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from lark import Lark, Token, Transformer, UnexpectedInput
from lark.exceptions import VisitError

from pagewright.constants import DEFAULTS
from pagewright.runtime.expressions.errors import ExpressionSyntaxError

__all__ = [
    "ExprNode",
    "Literal",
    "Name",
    "Member",
    "Index",
    "Call",
    "Unary",
    "Binary",
    "Logical",
    "Conditional",
    "ArrayLiteral",
    "ObjectLiteral",
    "BUILTIN_FUNCTIONS",
    "parse_expression",
    "iter_names",
]

#: Functions callable from expressions. Implementations live in evaluator.py.
BUILTIN_FUNCTIONS: frozenset[str] = frozenset(
    {
        "len",
        "str",
        "number",
        "int",
        "float",
        "bool",
        "abs",
        "min",
        "max",
        "round",
        "sum",
        "lower",
        "upper",
        "trim",
        "includes",
        "startsWith",
        "endsWith",
        "join",
        "split",
        "keys",
        "values",
        "concat",
        "default",
        "isEmpty",
    }
)


@dataclass(frozen=True, slots=True)
class Literal:
    value: Any


@dataclass(frozen=True, slots=True)
class Name:
    name: str


@dataclass(frozen=True, slots=True)
class Member:
    target: ExprNode
    name: str


@dataclass(frozen=True, slots=True)
class Index:
    target: ExprNode
    key: ExprNode


@dataclass(frozen=True, slots=True)
class Call:
    function: str
    args: tuple[ExprNode, ...]


@dataclass(frozen=True, slots=True)
class Unary:
    """Unary operator: "!" (logical not), "-" or "+"."""

    op: str
    operand: ExprNode


@dataclass(frozen=True, slots=True)
class Binary:
    """Arithmetic, comparison or membership ("in") operator."""

    op: str
    left: ExprNode
    right: ExprNode


@dataclass(frozen=True, slots=True)
class Logical:
    """Short-circuit "and" / "or". Evaluates to one of its operands."""

    op: str
    left: ExprNode
    right: ExprNode


@dataclass(frozen=True, slots=True)
class Conditional:
    test: ExprNode
    when_true: ExprNode
    when_false: ExprNode


@dataclass(frozen=True, slots=True)
class ArrayLiteral:
    items: tuple[ExprNode, ...]


@dataclass(frozen=True, slots=True)
class ObjectLiteral:
    entries: tuple[tuple[str, ExprNode], ...]


ExprNode = (
    Literal
    | Name
    | Member
    | Index
    | Call
    | Unary
    | Binary
    | Logical
    | Conditional
    | ArrayLiteral
    | ObjectLiteral
)


_GRAMMAR = (Path(__file__).parent / "grammar.lark").read_text()

_parser = Lark(
    _GRAMMAR,
    parser="lalr",
    start="start",
    maybe_placeholders=True,
)

_NUMBER_IS_FLOAT = re.compile(r"[.eE]")


class _AstBuilder(Transformer[Token, Any]):
    """Turn the Lark parse tree into ExprNode objects."""

    def __init__(self, source: str) -> None:
        super().__init__()
        self._source = source

    # Literals

    def number(self, items: list[Token]) -> Literal:
        text = str(items[0])
        if _NUMBER_IS_FLOAT.search(text):
            return Literal(float(text))
        return Literal(int(text))

    def string(self, items: list[Token]) -> Literal:
        return Literal(_unquote(str(items[0]), self._source))

    def true_lit(self, items: list[Any]) -> Literal:
        return Literal(True)

    def false_lit(self, items: list[Any]) -> Literal:
        return Literal(False)

    def null_lit(self, items: list[Any]) -> Literal:
        return Literal(None)

    def name(self, items: list[Token]) -> Name:
        return Name(str(items[0]))

    def arguments(self, items: list[ExprNode]) -> tuple[ExprNode, ...]:
        return tuple(items)

    def array(self, items: list[tuple[ExprNode, ...] | None]) -> ArrayLiteral:
        return ArrayLiteral(items[0] or ())

    def pair(self, items: list[Any]) -> tuple[str, ExprNode]:
        key_token, value = items
        key = str(key_token)
        if key_token.type == "STRING":
            key = _unquote(key, self._source)
        return key, value

    def pairs(self, items: list[tuple[str, ExprNode]]) -> tuple[tuple[str, ExprNode], ...]:
        return tuple(items)

    def object(self, items: list[Any]) -> ObjectLiteral:
        return ObjectLiteral(items[0] or ())

    # Access

    def member(self, items: list[Any]) -> Member:
        target, name = items
        return Member(target, str(name))

    def index(self, items: list[ExprNode]) -> Index:
        target, key = items
        return Index(target, key)

    def call(self, items: list[Any]) -> Call:
        function = str(items[0])
        if function not in BUILTIN_FUNCTIONS:
            raise ExpressionSyntaxError(
                f"Unknown function '{function}'. "
                f"Available functions: {', '.join(sorted(BUILTIN_FUNCTIONS))}",
                expression=self._source,
                position=items[0].start_pos or 0,
            )
        return Call(function, items[1] or ())

    # Operators

    def not_op(self, items: list[ExprNode]) -> Unary:
        return Unary("!", items[-1])

    def signed(self, items: list[Any]) -> Unary:
        op, operand = items
        return Unary(str(op), operand)

    def arith(self, items: list[Any]) -> Binary:
        left, op, right = items
        return Binary(str(op), left, right)

    def compare(self, items: list[Any]) -> Binary:
        left, op, right = items
        return Binary(str(op), left, right)

    def membership(self, items: list[ExprNode]) -> Binary:
        left, right = items
        return Binary("in", left, right)

    def and_op(self, items: list[ExprNode]) -> Logical:
        left, right = items
        return Logical("and", left, right)

    def or_op(self, items: list[ExprNode]) -> Logical:
        left, right = items
        return Logical("or", left, right)

    def ternary(self, items: list[ExprNode]) -> Conditional:
        test, when_true, when_false = items
        return Conditional(test, when_true, when_false)


def _unquote(token: str, source: str) -> str:
    """Decode a quoted string literal, honoring backslash escapes."""
    try:
        value = ast.literal_eval(token)
    except (ValueError, SyntaxError) as e:
        raise ExpressionSyntaxError(
            f"Invalid string literal {token}", expression=source
        ) from e
    return str(value)


@lru_cache(maxsize=DEFAULTS.EXPRESSION_CACHE_SIZE)
def parse_expression(expression: str) -> ExprNode:
    """Parse an expression string into an AST.

    Results are memoised, so repeated evaluation of the same binding or
    condition only parses once.

    Args:
        expression: Expression source, without any ``{{ }}`` wrapper.

    Returns:
        The root ExprNode.

    Raises:
        ExpressionSyntaxError: If the expression is empty or malformed, or
            calls a function that is not built in.

    Examples:
        >>> parse_expression("state.count")
        Member(target=Name(name='state'), name='count')
        >>> parse_expression("1 + 2")
        Binary(op='+', left=Literal(value=1), right=Literal(value=2))
    """
    if not expression or expression.isspace():
        raise ExpressionSyntaxError("Empty expression", expression=expression)

    try:
        tree = _parser.parse(expression)
    except UnexpectedInput as e:
        column = getattr(e, "column", 0)
        position = column - 1 if isinstance(column, int) and column > 0 else 0
        raise ExpressionSyntaxError(
            "Invalid expression syntax", expression=expression, position=position
        ) from e

    try:
        result: ExprNode = _AstBuilder(expression).transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ExpressionSyntaxError):
            raise e.orig_exc from None
        raise
    return result


def iter_names(node: ExprNode) -> list[str]:
    """Return the free variable names referenced by ``node``, in source order.

    Member names (``b`` in ``a.b``) and function names are not variables and
    are not included. Duplicates are kept; callers de-duplicate as needed.
    """
    names: list[str] = []
    stack: list[ExprNode] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Name):
            names.append(current.name)
        elif isinstance(current, Member):
            stack.append(current.target)
        elif isinstance(current, Index):
            stack.extend((current.key, current.target))
        elif isinstance(current, Call):
            stack.extend(reversed(current.args))
        elif isinstance(current, Unary):
            stack.append(current.operand)
        elif isinstance(current, (Binary, Logical)):
            stack.extend((current.right, current.left))
        elif isinstance(current, Conditional):
            stack.extend((current.when_false, current.when_true, current.test))
        elif isinstance(current, ArrayLiteral):
            stack.extend(reversed(current.items))
        elif isinstance(current, ObjectLiteral):
            stack.extend(value for _, value in reversed(current.entries))
    return names
