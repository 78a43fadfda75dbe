"""
logging_utils.py

Logging helpers for the tagger CLI.

Like the rest of the project, these avoid a logging framework: verbose
output is short, plain-English progress ("Loaded 3 scenes."), and debug
output dumps full objects. Both go through Typer's echo so they behave
well under CliRunner.
"""

import json
from typing import Any

import typer


def log_verbose(message: str, verbose: bool) -> None:
    """
    Print a high-level progress message when verbose mode is enabled.

    When verbose is False this does nothing.
    """
    if verbose:
        typer.echo(message)


def log_debug(label: str, payload: Any, debug: bool) -> None:
    """Print a labelled, JSON-formatted payload when debug mode is enabled."""
    if not debug:
        return
    typer.echo(f"{label}:")
    typer.echo(json.dumps(payload, indent=2, default=str))
