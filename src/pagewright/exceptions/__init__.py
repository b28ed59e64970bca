"""Pagewright exception hierarchy.

All exceptions can be imported from this package:
    from pagewright.exceptions import PagewrightError, SchemaValidationError

Expression errors live next to the expression language in
``pagewright.runtime.expressions.errors`` and also derive from
``PagewrightError``.
"""

from __future__ import annotations

from pagewright.exceptions.actions import (
    ActionChainTooDeepError,
    ActionConfigError,
    ActionExecutionError,
    FunctionNotFoundError,
    NetworkError,
)
from pagewright.exceptions.base import PagewrightError
from pagewright.exceptions.config import ConfigError
from pagewright.exceptions.registry import DuplicateRegistrationError
from pagewright.exceptions.render import (
    BindingResolutionError,
    RenderCancelledError,
    RenderError,
    ResourceLimitError,
)
from pagewright.exceptions.schema import (
    SchemaError,
    SchemaParseError,
    SchemaValidationError,
)

__all__ = [
    "PagewrightError",
    # Configuration
    "ConfigError",
    # Registries
    "DuplicateRegistrationError",
    # Schema documents
    "SchemaError",
    "SchemaParseError",
    "SchemaValidationError",
    # Rendering
    "RenderError",
    "ResourceLimitError",
    "RenderCancelledError",
    "BindingResolutionError",
    # Actions
    "ActionExecutionError",
    "ActionConfigError",
    "ActionChainTooDeepError",
    "FunctionNotFoundError",
    "NetworkError",
]
