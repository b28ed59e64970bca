"""render and trigger subcommands."""

from __future__ import annotations

import click

from pagewright.cli.common import (
    cli_error_handler,
    get_cli_context,
    load_context_file,
    parse_json_option,
)
from pagewright.cli.console import console, err_console
from pagewright.cli.context import ExitCode, async_command
from pagewright.cli.output import OutputFormat, format_json, render_tree
from pagewright.runtime.engine import RenderEngine, RenderOptions
from pagewright.runtime.schema import load_schema

_SCHEMA_PATH = click.Path(exists=True, dir_okay=False)
_CONTEXT_OPTION = click.option(
    "--context",
    "context_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML/JSON file with data, state, variables, params, query, user, tenant.",
)


@click.command()
@click.argument("schema_file", type=_SCHEMA_PATH)
@_CONTEXT_OPTION
@click.option("--perf", is_flag=True, default=False, help="Include performance metrics.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format.",
)
@click.pass_context
@async_command
async def render(
    ctx: click.Context,
    schema_file: str,
    context_file: str | None,
    perf: bool,
    output_format: str,
) -> None:
    """Render a schema against a context and print the resulting tree.

    Examples:
        pagewright render page.yaml --context ctx.yaml
        pagewright render page.yaml --perf --format json
    """
    cli_ctx = get_cli_context(ctx)
    with cli_error_handler():
        schema = load_schema(schema_file)
        render_context = load_context_file(context_file)
        engine = RenderEngine(cli_ctx.config)
        result = await engine.render(
            schema,
            render_context,
            RenderOptions(enable_performance_tracking=perf, register_handlers=False),
        )

    if output_format == OutputFormat.JSON.value:
        click.echo(format_json(result.to_dict()))
        return

    console.print(render_tree(result.content, schema.title or schema.id))
    if result.performance is not None:
        metrics = result.performance
        console.print(
            f"Rendered {metrics.component_count} node(s) in "
            f"{metrics.render_time_ms:.2f} ms "
            f"({metrics.data_binding_count} binding(s), "
            f"{metrics.event_handler_count} handler(s))",
            style="dim",
        )


@click.command()
@click.argument("schema_file", type=_SCHEMA_PATH)
@click.argument("event")
@click.option("--data", "data_json", default=None, help="Event payload as JSON.")
@_CONTEXT_OPTION
@click.pass_context
@async_command
async def trigger(
    ctx: click.Context,
    schema_file: str,
    event: str,
    data_json: str | None,
    context_file: str | None,
) -> None:
    """Render a schema, dispatch EVENT to its handlers and print the state.

    Debounced handlers are awaited before the state is printed.

    Examples:
        pagewright trigger page.yaml click --data '{"id": 3}'
    """
    cli_ctx = get_cli_context(ctx)
    data = parse_json_option(data_json, "--data")
    with cli_error_handler():
        schema = load_schema(schema_file)
        render_context = load_context_file(context_file)
        engine = RenderEngine(cli_ctx.config)
        await engine.render(schema, render_context, RenderOptions(register_handlers=True))
        result = await engine.dispatch(event, data, render_context)
        await engine.events.drain()

    click.echo(format_json({"state": render_context.state}))
    if not cli_ctx.quiet:
        err_console.print(
            f"{event}: {result.executed} executed, {result.skipped} skipped, "
            f"{result.scheduled} scheduled, {result.suppressed} suppressed, "
            f"{len(result.failures)} failed",
            style="dim",
            markup=False,
        )
    for failure in result.failures:
        err_console.print(
            f"Error: handler on '{failure.node_id}' failed: {failure.message}",
            style="red",
            markup=False,
        )
    if not result.success:
        raise SystemExit(ExitCode.FAILURE)
