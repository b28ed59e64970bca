"""CLI context, exit codes and the async bridge for click commands."""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, TypeVar

from pagewright.config import EngineConfig

__all__ = ["ExitCode", "CLIContext", "async_command"]


class ExitCode(IntEnum):
    """Exit codes for the pagewright command.

    - 0 for success
    - 1 for failure (invalid schema, render error, failing handler)
    - 130 for keyboard interrupt (128 + SIGINT=2)
    """

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global options shared by every subcommand.

    Attributes:
        config: Loaded engine configuration.
        config_path: Path given with --config, if any.
        verbosity: 0 = warnings, 1 = info, 2+ = debug.
        quiet: Only print errors.
    """

    config: EngineConfig
    config_path: Path | None = None
    verbosity: int = 0
    quiet: bool = False


F = TypeVar("F", bound=Callable[..., Any])


def async_command(f: F) -> F:
    """Run an async click command with asyncio.run().

    Example:
        >>> @cli.command()
        >>> @async_command
        >>> async def render(ctx: click.Context, schema_file: str) -> None:
        >>>     await engine.render(schema)
    """

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return asyncio.run(f(*args, **kwargs))

    return wrapper  # type: ignore[return-value]
