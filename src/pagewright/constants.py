"""Runtime default values.

Constants shared by the render engine, the cache and the action executor
are collected in one frozen dataclass so that settings models, tests and
code paths agree on the same numbers.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "RuntimeDefaults",
    "DEFAULTS",
]


@dataclass(frozen=True, slots=True)
class RuntimeDefaults:
    """Default values for rendering and event execution.

    Attributes:
        Limits:
            MAX_DEPTH: Deepest node allowed, with the root at depth 0.
            MAX_NODES: Maximum number of nodes in one schema, counting
                children and every slot list.
            MAX_ACTION_DEPTH: Deepest onSuccess/onError nesting (and
                triggerEvent re-entry) the action interpreter will follow.

        Render Cache:
            CACHE_ENABLED: Whether render results are cached by default.
            CACHE_TTL_MS: Lifetime of a cached result in milliseconds.
                Zero or less disables expiry.
            CACHE_MAX_SIZE: Entries kept before the oldest is evicted.

        Expressions:
            EXPRESSION_CACHE_SIZE: Parsed expression ASTs kept in memory.

        Loops:
            LOOP_ITEM_KEY: Variable name bound to the current item.
            LOOP_INDEX_KEY: Variable name bound to the current index.

        API Calls:
            API_TIMEOUT: Total timeout for one callApi request in seconds.
            API_MAX_RETRIES: Retries after the first failed callApi attempt.
            API_RETRY_DELAY: Base delay for exponential retry backoff.
    """

    # Limits
    MAX_DEPTH: int = 100
    MAX_NODES: int = 10000
    MAX_ACTION_DEPTH: int = 32

    # Render cache
    CACHE_ENABLED: bool = False
    CACHE_TTL_MS: int = 60000
    CACHE_MAX_SIZE: int = 100

    # Expressions
    EXPRESSION_CACHE_SIZE: int = 1024

    # Loops
    LOOP_ITEM_KEY: str = "item"
    LOOP_INDEX_KEY: str = "index"

    # API calls
    API_TIMEOUT: float = 30.0
    API_MAX_RETRIES: int = 2
    API_RETRY_DELAY: float = 0.5


DEFAULTS = RuntimeDefaults()
