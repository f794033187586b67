"""Command line interface for checking flows and inspecting stored progress."""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import typer
from pydantic import ValidationError

from formflow.cli_utils.loader import _load_flow, _parse_data
from formflow.errors import FlowDefinitionError
from formflow.persistence import PersistedRecord, get_adapter, maybe_await, storage_key

app = typer.Typer(help="CLI for formflow definitions")

storage_app = typer.Typer(help="Commands for inspecting stored flow records")

app.add_typer(storage_app, name="storage")


@app.callback()
def main() -> None:
    """formflow CLI entry point."""
    pass


def _resolve(target: str):
    try:
        return _load_flow(target)
    except FlowDefinitionError as e:
        typer.secho(e.message, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except (ImportError, AttributeError, TypeError, ValueError) as e:
        typer.secho(f"Could not load flow {target}: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)


@app.command("check")
def check(target: str) -> None:
    """
    Validate the structure of a flow definition.

    Reports missing steps, dangling references, static cycles, missing schemas
    and unreachable steps, followed by non-fatal warnings.

    Example:
        formflow check myapp.flows:onboarding
    """
    flow = _resolve(target)
    errors = flow.validate()
    for error in errors:
        typer.secho(f"[{error.type}] {error.message}", fg=typer.colors.RED)
    for warning in flow.warnings:
        typer.echo(f"warning: {warning}")

    if errors:
        raise typer.Exit(code=1)
    typer.secho(f"Flow '{flow.id}' is valid", fg=typer.colors.GREEN)


@app.command("path")
def path(
    target: str,
    data: Optional[str] = typer.Option(None, help="Collected data as a JSON object"),
    full: bool = typer.Option(False, "--full", help="Follow static edges without data"),
) -> None:
    """Print the path through a flow for the given data."""
    flow = _resolve(target)
    try:
        collected = _parse_data(data)
    except ValueError as e:
        typer.secho(f"Invalid data: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    steps = flow.calculate_full_path(collected) if full else flow.calculate_path(collected)
    typer.echo(" -> ".join(steps))


@storage_app.command("show")
def storage_show(flow_id: str) -> None:
    """Show the stored record for a flow id."""
    adapter = get_adapter()
    key = storage_key(flow_id)
    raw = asyncio.run(maybe_await(adapter.get_item(key)))
    if not raw:
        typer.echo(f"No record stored under {key}")
        raise typer.Exit(code=1)

    try:
        record = PersistedRecord.from_json(raw)
    except ValidationError:
        typer.secho(f"Malformed record stored under {key}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    saved_at = datetime.fromtimestamp(record.timestamp / 1000, tz=timezone.utc)
    typer.echo(f"Key: {key}")
    typer.echo(f"Version: {record.version}")
    typer.echo(f"Saved at: {saved_at.isoformat()}")
    typer.echo("Data:")
    for step, value in record.data.items():
        typer.echo(f"  {step}: {json.dumps(value, default=str)}")


@storage_app.command("clear")
def storage_clear(flow_id: str) -> None:
    """Remove the stored record for a flow id."""
    adapter = get_adapter()
    key = storage_key(flow_id)
    asyncio.run(maybe_await(adapter.remove_item(key)))
    typer.echo(f"Cleared {key}")


if __name__ == "__main__":
    app()
