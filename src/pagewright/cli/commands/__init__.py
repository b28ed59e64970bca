"""Subcommands of the pagewright CLI."""

from __future__ import annotations

from pagewright.cli.commands.run import render, trigger
from pagewright.cli.commands.schema import analyze, validate

__all__ = ["analyze", "render", "trigger", "validate"]
