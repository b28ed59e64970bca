"""Output formatting for CLI commands.

Plain-text helpers return strings; the rich helpers build renderables
(trees and tables) for ``console.print``.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from pagewright.runtime.results import RenderContent, RenderNode, SchemaAnalysis

__all__ = [
    "OutputFormat",
    "format_error",
    "format_success",
    "format_json",
    "render_tree",
    "analysis_table",
]


class OutputFormat(str, Enum):
    """Output formats for commands that print results.

    Values:
        TEXT: Human-readable rich output.
        JSON: Machine-readable JSON.
    """

    TEXT = "text"
    JSON = "json"


def format_error(
    message: str, details: list[str] | None = None, suggestion: str | None = None
) -> str:
    """Format an error message with optional details and suggestion.

    Example:
        >>> print(format_error("Invalid schema", details=["root: missing"]))
        Error: Invalid schema
          root: missing
    """
    lines = [f"Error: {message}"]
    if details:
        lines.extend(f"  {detail}" for detail in details)
    if suggestion:
        lines.append(f"Suggestion: {suggestion}")
    return "\n".join(lines)


def format_success(message: str) -> str:
    return f"Success: {message}"


def format_json(data: Any) -> str:
    """Format data as indented JSON; non-JSON values are stringified."""
    return json.dumps(data, indent=2, default=str)


def _node_label(node: RenderNode) -> str:
    label = f"[bold]{escape(node.type)}[/bold] [dim]#{escape(node.id)}[/dim]"
    if node.placeholder:
        label += " [yellow](placeholder)[/yellow]"
    if node.props:
        props = ", ".join(f"{key}={value!r}" for key, value in node.props.items())
        label += f"  {escape(props)}"
    return label


def _add_node(parent: Tree, node: RenderNode) -> None:
    branch = parent.add(_node_label(node))
    for child in node.children:
        _add_node(branch, child)
    for name, nodes in node.slots.items():
        slot = branch.add(f"[cyan]slot[/cyan] {name}")
        for child in nodes:
            _add_node(slot, child)


def render_tree(content: RenderContent, title: str) -> Tree:
    """Build a rich Tree showing rendered nodes and their props."""
    tree = Tree(f"[bold green]{title}[/bold green]")
    if content is None:
        tree.add("[dim](nothing rendered)[/dim]")
    elif isinstance(content, tuple):
        for node in content:
            _add_node(tree, node)
    else:
        _add_node(tree, content)
    return tree


def analysis_table(analysis: SchemaAnalysis) -> Table:
    """Summarize a SchemaAnalysis as a two-column table."""
    table = Table(title="Schema analysis", show_header=True)
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Total nodes", str(analysis.total_nodes))
    table.add_row("Max depth", str(analysis.max_depth))
    table.add_row("Components", ", ".join(analysis.component_dependencies) or "-")
    table.add_row("Bindings", str(len(analysis.data_bindings)))
    table.add_row(
        "Event handlers",
        ", ".join(f"{ref.node_id}:{ref.event}" for ref in analysis.event_handlers)
        or "-",
    )
    table.add_row("Conditional nodes", ", ".join(analysis.conditional_nodes) or "-")
    table.add_row("Loop nodes", ", ".join(analysis.loop_nodes) or "-")
    return table
