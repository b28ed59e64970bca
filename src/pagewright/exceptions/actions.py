from __future__ import annotations

from pagewright.exceptions.base import PagewrightError


class ActionExecutionError(PagewrightError):
    """Raised when an action in an event handler chain fails.

    Attributes:
        message: Human-readable error message.
        action_type: Kind of the failing action (e.g. "callApi").
    """

    def __init__(self, message: str, action_type: str | None = None) -> None:
        self.action_type = action_type
        super().__init__(message)


class ActionConfigError(ActionExecutionError):
    """Raised when an action is missing a required configuration key."""

    def __init__(self, action_type: str, key: str) -> None:
        self.key = key
        super().__init__(
            f"Action '{action_type}' requires config key '{key}'",
            action_type=action_type,
        )


class ActionChainTooDeepError(ActionExecutionError):
    """Raised when nested onSuccess/onError chains or re-triggered events
    exceed the configured maximum depth.

    Attributes:
        depth: Depth at which the guard tripped.
        max_depth: Configured ceiling.
    """

    def __init__(self, depth: int, max_depth: int) -> None:
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(
            f"Action chain depth {depth} exceeds maximum of {max_depth}"
        )


class FunctionNotFoundError(ActionExecutionError):
    """Raised by callFunction when the named function is not registered."""

    def __init__(self, name: str, available: tuple[str, ...] = ()) -> None:
        self.name = name
        self.available = available
        message = f"Function '{name}' is not registered"
        if available:
            message += f". Available: {', '.join(sorted(available))}"
        super().__init__(message, action_type="callFunction")


class NetworkError(ActionExecutionError):
    """Raised by the API client when a request fails after all retries.

    Attributes:
        url: Requested URL.
        status: HTTP status code, or None when no response was received.
    """

    def __init__(self, message: str, url: str, status: int | None = None) -> None:
        self.url = url
        self.status = status
        super().__init__(message, action_type="callApi")
