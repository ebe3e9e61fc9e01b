from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_LEVEL_COLORS = {
    "excellent": typer.colors.GREEN,
    "good": typer.colors.GREEN,
    "caution": typer.colors.YELLOW,
    "critical": typer.colors.RED,
}

_COMPLIANCE_COLORS = {
    "compliant": typer.colors.GREEN,
    "warning": typer.colors.YELLOW,
    "non-compliant": typer.colors.RED,
    "emergency": typer.colors.RED,
}

_CHECK_COLORS = {
    "good": typer.colors.GREEN,
    "warning": typer.colors.YELLOW,
    "critical": typer.colors.RED,
    "emergency": typer.colors.RED,
}

_MEASUREMENTS = (
    ("chlorine", "ppm"),
    ("ph", ""),
    ("alkalinity", "ppm"),
    ("temperature", "°F"),
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(reading: Dict[str, Any]) -> None:
    echo_heading("Reading")
    pairs: List[tuple[str, Any]] = [
        ("id", reading.get("id")),
        ("timestamp", reading.get("timestamp")),
    ]
    for name, unit in _MEASUREMENTS:
        value = reading.get(name)
        if value is not None:
            pairs.append((name, f"{value} {unit}".rstrip()))
    if reading.get("notes"):
        pairs.append(("notes", reading["notes"]))
    echo_key_values(pairs)


def render_status(status: Dict[str, Any] | None) -> None:
    echo_heading("Status")
    if not status:
        typer.echo("No readings recorded.")
        return
    level = status.get("level", "")
    typer.secho(f"level: {level}", fg=_LEVEL_COLORS.get(level))
    typer.echo(f"message: {status.get('message')}")
    issues = status.get("issues") or []
    for issue in issues:
        typer.echo(f"  - {issue}")


def render_adjustments(adjustments: Dict[str, Any]) -> None:
    echo_heading("Adjustments")
    if not adjustments:
        typer.echo("No adjustments needed.")
        return
    for chemical, adjustment in adjustments.items():
        typer.echo(
            f"  - {chemical}: {adjustment.get('action')} "
            f"{adjustment.get('amount')} {adjustment.get('unit')}"
        )


def render_recorded(payload: Dict[str, Any]) -> None:
    render_reading(payload.get("reading") or {})
    warnings = (payload.get("validation") or {}).get("warnings") or []
    if warnings:
        typer.echo()
        echo_heading("Warnings")
        for warning in warnings:
            typer.secho(f"  - {warning}", fg=typer.colors.YELLOW)
    typer.echo()
    render_status(payload.get("status"))
    typer.echo()
    render_adjustments(payload.get("adjustments") or {})


def render_table(readings: List[Dict[str, Any]], empty: str = "No readings recorded.") -> None:
    if not readings:
        typer.echo(empty)
        return
    typer.echo("timestamp                  chlorine  ph    alkalinity  temperature  id")
    for reading in readings:
        typer.echo(
            f"{str(reading.get('timestamp', ''))[:25]:<26} "
            f"{_cell(reading.get('chlorine')):<9} "
            f"{_cell(reading.get('ph')):<5} "
            f"{_cell(reading.get('alkalinity')):<11} "
            f"{_cell(reading.get('temperature')):<12} "
            f"{reading.get('id')}"
        )


def render_compliance(report: Dict[str, Any]) -> None:
    echo_heading("Compliance")
    overall = report.get("overall", "")
    typer.secho(f"overall: {overall}", fg=_COMPLIANCE_COLORS.get(overall))
    for check in report.get("details") or []:
        typer.secho(f"  - {check.get('message')}", fg=_CHECK_COLORS.get(check.get("status")))
    actions = report.get("required_actions") or []
    if actions:
        typer.echo()
        echo_heading("Required actions")
        for action in actions:
            typer.secho(f"  - {action}", fg=typer.colors.RED)
    recommendations = report.get("recommendations") or []
    if recommendations:
        typer.echo()
        echo_heading("Recommendations")
        for recommendation in recommendations:
            typer.echo(f"  - {recommendation}")
    if report.get("should_close"):
        typer.echo()
        typer.secho("Close the pool until levels are corrected.", fg=typer.colors.RED, bold=True)


def render_trend(trend: Dict[str, Any]) -> None:
    echo_key_values(
        [
            ("chemical", trend.get("chemical")),
            ("direction", trend.get("direction")),
            ("percentage", f"{trend.get('percentage')}%"),
        ]
    )


def render_summary(summary: Dict[str, Any]) -> None:
    echo_heading("Summary")
    typer.echo(f"total_readings: {summary.get('total_readings')}")
    latest = summary.get("latest")
    if latest:
        typer.echo()
        render_reading(latest)
    typer.echo()
    render_status(summary.get("status"))


def _cell(value: Any) -> str:
    return "-" if value is None else str(value)
