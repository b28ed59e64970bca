from __future__ import annotations

from typing import Any

from pagewright.exceptions.base import PagewrightError


class ConfigError(PagewrightError):
    """Raised when engine configuration cannot be loaded or validated.

    Covers malformed YAML config files and values rejected by the settings
    models (for example a negative cache size).

    Attributes:
        message: Human-readable error message.
        field: Dotted name of the offending setting, when known.
        value: The rejected value, when known.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message)
