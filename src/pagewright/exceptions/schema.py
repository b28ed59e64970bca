from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from pagewright.exceptions.base import PagewrightError

if TYPE_CHECKING:
    from pagewright.runtime.results import ValidationIssue


class SchemaError(PagewrightError):
    """Base class for errors about a schema document itself."""


class SchemaParseError(SchemaError):
    """Raised when a schema document cannot be read or parsed.

    Attributes:
        message: Human-readable error message.
        source: File path or other description of where the document came from.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class SchemaValidationError(SchemaError):
    """Raised when a schema fails structural validation.

    All violations found in the schema are reported together, never just the
    first one.

    Attributes:
        message: Summary listing every violation.
        issues: The individual validation issues.
    """

    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        self.issues = tuple(issues)
        lines = [f"Schema validation failed with {len(self.issues)} error(s):"]
        lines.extend(f"  - {issue}" for issue in self.issues)
        super().__init__("\n".join(lines))
