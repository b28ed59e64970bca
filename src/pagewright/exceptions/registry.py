from __future__ import annotations

from pagewright.exceptions.base import PagewrightError


class DuplicateRegistrationError(PagewrightError):
    """Raised when a name is registered twice in the same registry.

    Attributes:
        kind: What kind of registry rejected the name ("component", "function").
        name: The name that was already taken.
    """

    def __init__(self, kind: str, name: str) -> None:
        self.kind = kind
        self.name = name
        super().__init__(f"A {kind} named '{name}' is already registered")
