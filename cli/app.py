from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import (
    render_adjustments,
    render_compliance,
    render_reading,
    render_recorded,
    render_status,
    render_summary,
    render_table,
    render_trend,
)


class Chemical(str, Enum):
    chlorine = "chlorine"
    ph = "ph"
    alkalinity = "alkalinity"
    temperature = "temperature"


class ExportFormat(str, Enum):
    json = "json"
    csv = "csv"


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Record and review pool chemical readings.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("add")
def add_command(
    ctx: typer.Context,
    chlorine: Optional[float] = typer.Option(None, "--chlorine", "-c", help="Free chlorine in ppm."),
    ph: Optional[float] = typer.Option(None, "--ph", "-p", help="pH on the 0-14 scale."),
    alkalinity: Optional[float] = typer.Option(None, "--alkalinity", "-a", help="Total alkalinity in ppm."),
    temperature: Optional[float] = typer.Option(None, "--temperature", "-t", help="Water temperature in °F."),
    timestamp: Optional[str] = typer.Option(None, "--timestamp", help="ISO-8601 time of the sample."),
    notes: Optional[str] = typer.Option(None, "--notes", "-n"),
) -> None:
    """Record a reading and show its status and suggested adjustments."""
    state = _get_state(ctx)
    fields: Dict[str, Any] = {
        "chlorine": chlorine,
        "ph": ph,
        "alkalinity": alkalinity,
        "temperature": temperature,
        "timestamp": timestamp,
        "notes": notes,
    }
    payload = {key: value for key, value in fields.items() if value is not None}
    if not any(key in payload for key in ("chlorine", "ph", "alkalinity", "temperature")):
        raise typer.BadParameter("Provide at least one measurement.")

    result = state.client.add_reading(payload)
    reading_id = (result.get("reading") or {}).get("id")
    typer.secho(f"Reading stored. id={reading_id}", fg=typer.colors.GREEN)
    typer.echo()
    render_recorded(result)


@app.command("list")
def list_command(ctx: typer.Context) -> None:
    """List stored readings, newest first."""
    state = _get_state(ctx)
    render_table(state.client.list_readings())


@app.command("show")
def show_command(
    ctx: typer.Context,
    reading_id: str = typer.Argument(..., help="Identifier returned from the add command."),
) -> None:
    """Show a reading with its status and adjustments."""
    state = _get_state(ctx)
    render_reading(state.client.get_reading(reading_id))
    typer.echo()
    render_status(state.client.get_status(reading_id))
    typer.echo()
    render_adjustments(state.client.get_adjustments(reading_id))


@app.command("compliance")
def compliance_command(
    ctx: typer.Context,
    reading_id: str = typer.Argument(..., help="Identifier returned from the add command."),
) -> None:
    """Grade a reading against compliance tiers and report whether to close."""
    state = _get_state(ctx)
    render_compliance(state.client.get_compliance(reading_id))


@app.command("drafts")
def drafts_command(ctx: typer.Context) -> None:
    """List saved drafts, newest first."""
    state = _get_state(ctx)
    render_table(state.client.list_drafts(), empty="No drafts saved.")


@app.command("trend")
def trend_command(
    ctx: typer.Context,
    chemical: Chemical = typer.Argument(..., help="Chemical to compare across the last two readings."),
) -> None:
    """Show the direction of change for one chemical."""
    state = _get_state(ctx)
    render_trend(state.client.get_trend(chemical.value))


@app.command("summary")
def summary_command(ctx: typer.Context) -> None:
    """Show the latest reading and overall pool status."""
    state = _get_state(ctx)
    render_summary(state.client.get_summary())


@app.command("export")
def export_command(
    ctx: typer.Context,
    fmt: ExportFormat = typer.Option(ExportFormat.json, "--format", "-f"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", dir_okay=False, writable=True, help="Write to a file instead of stdout."
    ),
) -> None:
    """Export stored readings as JSON or CSV."""
    state = _get_state(ctx)
    content = state.client.export(fmt.value)
    if output is None:
        typer.echo(content)
        return
    output.write_text(content, encoding="utf-8")
    typer.secho(f"Wrote {output}", fg=typer.colors.GREEN)
