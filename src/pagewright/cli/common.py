"""Helpers shared by CLI commands."""

from __future__ import annotations

import contextlib
import json
from collections.abc import Generator
from pathlib import Path
from typing import Any

import click
import yaml

from pagewright.cli.console import err_console
from pagewright.cli.context import CLIContext, ExitCode
from pagewright.cli.output import format_error
from pagewright.exceptions import PagewrightError, SchemaValidationError
from pagewright.logging import get_logger
from pagewright.runtime.context import RenderContext

__all__ = ["cli_error_handler", "get_cli_context", "load_context_file", "parse_json_option"]


@contextlib.contextmanager
def cli_error_handler() -> Generator[None, None, None]:
    """Translate exceptions raised by a command into exit codes.

    - click usage errors: passed through to click (exit 2)
    - KeyboardInterrupt: exit 130
    - SchemaValidationError: every issue listed, exit 1
    - PagewrightError: message, exit 1
    - anything else: logged with traceback, exit 1
    """
    logger = get_logger(__name__)

    try:
        yield
    except click.ClickException:
        raise
    except KeyboardInterrupt:
        err_console.print("\n\nInterrupted by user.")
        raise SystemExit(ExitCode.INTERRUPTED) from None
    except SchemaValidationError as e:
        err_console.print(
            format_error(
                "Schema validation failed",
                details=[str(issue) for issue in e.issues],
            ),
            style="red",
            markup=False,
        )
        raise SystemExit(ExitCode.FAILURE) from e
    except PagewrightError as e:
        err_console.print(format_error(e.message), style="red", markup=False)
        raise SystemExit(ExitCode.FAILURE) from e
    except Exception as e:
        logger.exception("unexpected_cli_error")
        err_console.print(f"Error: {e!s}", style="red", markup=False)
        raise SystemExit(ExitCode.FAILURE) from e


def get_cli_context(ctx: click.Context) -> CLIContext:
    cli_ctx: CLIContext = ctx.obj["cli_ctx"]
    return cli_ctx


def load_context_file(path: str | None) -> RenderContext:
    """Build a RenderContext from a YAML/JSON file of namespaces.

    Raises:
        click.BadParameter: If the file is not a mapping.
    """
    if path is None:
        return RenderContext()
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if data is None:
        return RenderContext()
    if not isinstance(data, dict):
        raise click.BadParameter("context file must contain a mapping", param_hint="--context")
    return RenderContext.from_dict(data)


def parse_json_option(value: str | None, param_hint: str) -> Any:
    if value is None:
        return None
    try:
        return json.loads(value)
    except ValueError as e:
        raise click.BadParameter(f"invalid JSON: {e}", param_hint=param_hint) from e
