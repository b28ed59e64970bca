"""validate and analyze subcommands."""

from __future__ import annotations

import click

from pagewright.cli.common import cli_error_handler
from pagewright.cli.console import console
from pagewright.cli.context import ExitCode
from pagewright.cli.output import (
    OutputFormat,
    analysis_table,
    format_error,
    format_json,
    format_success,
)
from pagewright.runtime.analyzer import (
    analyze_schema,
    compute_schema_hash,
    extract_data_dependencies,
    validate_schema,
)
from pagewright.runtime.schema import load_schema

_SCHEMA_PATH = click.Path(exists=True, dir_okay=False)


@click.command()
@click.argument("schema_file", type=_SCHEMA_PATH)
def validate(schema_file: str) -> None:
    """Check a schema file for structural errors.

    Reports every problem at once: missing root, id or version, malformed
    version and duplicate node ids.

    Examples:
        pagewright validate page.yaml
    """
    with cli_error_handler():
        schema = load_schema(schema_file)
        result = validate_schema(schema)

    if not result.valid:
        console.print(
            format_error(
                f"{schema_file} is invalid",
                details=[f"[{issue.code}] {issue}" for issue in result.errors],
            ),
            style="red",
            markup=False,
        )
        raise SystemExit(ExitCode.FAILURE)

    console.print(format_success(f"{schema_file} is valid"), style="green")


@click.command()
@click.argument("schema_file", type=_SCHEMA_PATH)
@click.option(
    "--format",
    "output_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    help="Output format.",
)
def analyze(schema_file: str, output_format: str) -> None:
    """Summarize a schema: components, bindings, handlers, depth and size.

    Examples:
        pagewright analyze page.yaml
        pagewright analyze page.yaml --format json
    """
    with cli_error_handler():
        schema = load_schema(schema_file)
        analysis = analyze_schema(schema)
        dependencies = extract_data_dependencies(schema)
        digest = compute_schema_hash(schema)

    if output_format == OutputFormat.JSON.value:
        click.echo(
            format_json(
                {
                    "schemaId": schema.id,
                    "hash": digest,
                    "totalNodes": analysis.total_nodes,
                    "maxDepth": analysis.max_depth,
                    "components": list(analysis.component_dependencies),
                    "dataDependencies": dependencies,
                    "bindingCount": len(analysis.data_bindings),
                    "eventHandlers": [
                        {"nodeId": ref.node_id, "event": ref.event}
                        for ref in analysis.event_handlers
                    ],
                    "conditionalNodes": list(analysis.conditional_nodes),
                    "loopNodes": list(analysis.loop_nodes),
                }
            )
        )
        return

    console.print(analysis_table(analysis))
    if dependencies:
        console.print(f"Data dependencies: {', '.join(dependencies)}", markup=False)
    console.print(f"Hash: {digest}", style="dim")
