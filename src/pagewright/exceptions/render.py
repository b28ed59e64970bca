from __future__ import annotations

from pagewright.exceptions.base import PagewrightError


class RenderError(PagewrightError):
    """Base class for failures while rendering a schema."""


class ResourceLimitError(RenderError):
    """Raised when a schema exceeds the configured size or depth limits.

    Attributes:
        limit: Name of the exceeded limit ("max_depth" or "max_nodes").
        actual: The measured value.
        maximum: The configured ceiling.
    """

    def __init__(self, limit: str, actual: int, maximum: int) -> None:
        self.limit = limit
        self.actual = actual
        self.maximum = maximum
        super().__init__(f"Schema exceeds {limit}: {actual} > {maximum}")


class RenderCancelledError(RenderError):
    """Raised when a render is aborted through its cancellation signal."""

    def __init__(self, schema_id: str) -> None:
        self.schema_id = schema_id
        super().__init__(f"Render of schema '{schema_id}' was cancelled")


class BindingResolutionError(RenderError):
    """Raised for a failing binding declared with ``mode: strict``.

    Attributes:
        target: Property name the binding writes to.
        binding_type: The binding kind that failed.
    """

    def __init__(self, target: str, binding_type: str, reason: str) -> None:
        self.target = target
        self.binding_type = binding_type
        super().__init__(
            f"Strict {binding_type} binding for '{target}' failed: {reason}"
        )
