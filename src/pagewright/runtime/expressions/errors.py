"""Error types raised by the expression language."""

from __future__ import annotations

from collections.abc import Iterable

from pagewright.exceptions import PagewrightError

__all__ = [
    "ExpressionError",
    "ExpressionSyntaxError",
    "ExpressionEvaluationError",
]


class ExpressionError(PagewrightError):
    """Base exception for expression parsing and evaluation.

    Attributes:
        message: Human-readable error message.
        expression: The expression source that failed, when known.
    """

    def __init__(self, message: str, expression: str | None = None) -> None:
        self.expression = expression
        super().__init__(message)


class ExpressionSyntaxError(ExpressionError):
    """Raised when an expression cannot be parsed.

    The message points at the offending character with a caret when the
    parser reports a position.

    Attributes:
        position: Zero-based character offset of the error.
    """

    def __init__(self, message: str, expression: str, position: int = 0) -> None:
        self.position = position
        if position > 0 and expression:
            caret = " " * position + "^"
            full_message = f"{message} at position {position}:\n{expression}\n{caret}"
        else:
            full_message = f"{message}: {expression!r}"
        super().__init__(full_message, expression=expression)


class ExpressionEvaluationError(ExpressionError):
    """Raised when a well-formed expression fails at runtime.

    Unknown variables, member access on null, type mismatches and division by
    zero all end up here.

    Attributes:
        context_vars: Variable names that were in scope, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        expression: str,
        context_vars: Iterable[str] = (),
    ) -> None:
        self.context_vars = tuple(context_vars)
        full_message = f"{message} in expression: {expression}"
        if self.context_vars:
            full_message += f"\nAvailable variables: {', '.join(sorted(self.context_vars))}"
        super().__init__(full_message, expression=expression)
