"""Expression language for bindings, conditions and action configs.

Expressions are small, side-effect free formulas evaluated against an
explicit scope such as ``{"state": {...}, "data": {...}}``:

    state.count > 5 && includes(user.roles, "admin")
    data.products[0].price * 1.2
    len(data.items) == 0 ? "empty" : "has items"

Template strings embed expressions with ``{{ }}``:

    "Hello {{ user.name }}"      -> "Hello Ada"
    "{{ state.count + 1 }}"      -> 6 (typed, not a string)

Module Structure
----------------
- grammar.lark: LALR grammar
- parser.py: AST node types and ``parse_expression`` (memoised)
- evaluator.py: ``ExpressionEvaluator`` and the built-in function set
- errors.py: ExpressionError, ExpressionSyntaxError, ExpressionEvaluationError
"""

from __future__ import annotations

from pagewright.runtime.expressions.errors import (
    ExpressionError,
    ExpressionEvaluationError,
    ExpressionSyntaxError,
)
from pagewright.runtime.expressions.evaluator import (
    BUILTINS,
    KNOWN_GLOBALS,
    RESERVED_WORDS,
    ExpressionEvaluator,
    describe_error,
    is_empty,
    is_truthy,
    to_text,
)
from pagewright.runtime.expressions.parser import (
    BUILTIN_FUNCTIONS,
    ExprNode,
    iter_names,
    parse_expression,
)

__all__: list[str] = [
    # Errors
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionEvaluationError",
    # Parser
    "ExprNode",
    "BUILTIN_FUNCTIONS",
    "parse_expression",
    "iter_names",
    # Evaluator
    "ExpressionEvaluator",
    "BUILTINS",
    "RESERVED_WORDS",
    "KNOWN_GLOBALS",
    "describe_error",
    "is_empty",
    "is_truthy",
    "to_text",
]
