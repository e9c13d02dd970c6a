from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

from cli.reconciler import ResolvedReading
from cli.series import SeriesBuffer, SeriesPoint


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(reading: ResolvedReading) -> None:
    echo_heading("Latest Reading")
    source = reading.source.value if reading.source is not None else "none"
    echo_key_values(
        [
            ("source", source),
            ("temperature", reading.temperature),
            ("humidity", reading.humidity),
        ]
    )
    if reading.co2_alert:
        typer.secho(f"co2: {reading.co2} (above alert threshold)", fg=typer.colors.RED)
    else:
        typer.echo(f"co2: {reading.co2}")


def render_point(point: SeriesPoint, series: SeriesBuffer) -> None:
    typer.echo(
        f"[{point.label}] temperature={point.temperature} co2={point.co2} "
        f"humidity={point.humidity} ({len(series)}/{series.capacity} points)"
    )


def render_ingest_result(payload: Dict[str, Any]) -> None:
    echo_heading("Ingest Result")
    echo_key_values([("message", payload.get("message"))])
    reading = payload.get("reading") or {}
    echo_key_values(sorted(reading.items()))
    note = payload.get("note")
    if note:
        typer.echo(f"note: {note}")


def render_status(payload: Dict[str, Any]) -> None:
    echo_heading("Service Status")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("platform", payload.get("platform")),
        ]
    )
    endpoints = payload.get("endpoints") or {}
    if endpoints:
        typer.echo("endpoints:")
        for name, route in endpoints.items():
            typer.echo(f"  - {name}: {route}")
