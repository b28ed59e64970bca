from __future__ import annotations


class PagewrightError(Exception):
    """Base exception class for all Pagewright errors.

    Every error raised deliberately by the engine derives from this class so
    hosts can catch engine failures at a single boundary while unrelated
    exceptions propagate untouched.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            result = await engine.render(schema, context)
        except PagewrightError as e:
            logger.error("render_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the PagewrightError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
