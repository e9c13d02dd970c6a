from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.reconciler import ChannelReconciler
from cli.render import render_ingest_result, render_point, render_reading, render_status
from cli.series import SeriesBuffer
from models.records import Channel


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for reading from and feeding the sensor relay service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Relay API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between polls when watching (defaults to 1 second).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        poll_interval=poll_interval,
        poll_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the freshest reading across the bridge and primary channels."""
    state = _get_state(ctx)
    reading = ChannelReconciler(state.client).resolve()
    render_reading(reading)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    count: Optional[int] = typer.Option(
        None,
        "--count",
        "-n",
        min=1,
        help="Stop after this many polls (default: run until interrupted).",
    ),
) -> None:
    """Poll on a fixed interval and print each new distinct reading."""
    state = _get_state(ctx)
    reconciler = ChannelReconciler(state.client)
    series = SeriesBuffer()
    interval = state.config.poll_interval
    typer.echo(f"Watching {state.config.base_url} every {interval}s (Ctrl-C to stop)...")

    polls = 0
    next_tick = time.monotonic()
    try:
        while True:
            reading = reconciler.resolve()
            if series.append(reading):
                render_point(series.points[-1], series)
                if reading.co2_alert:
                    typer.secho(f"CO2 alert: {reading.co2}", fg=typer.colors.RED)
            polls += 1
            if count is not None and polls >= count:
                break
            next_tick += interval
            time.sleep(max(0.0, next_tick - time.monotonic()))
    except KeyboardInterrupt:
        typer.echo("Stopped.")

    typer.echo(f"{len(series)} point(s) collected over {polls} poll(s).")


@app.command("send")
def send_command(
    ctx: typer.Context,
    co2: Optional[float] = typer.Option(None, "--co2", help="CO2 concentration in ppm."),
    temperature: Optional[float] = typer.Option(None, "--temperature", "-t", help="Temperature in °C."),
    humidity: Optional[float] = typer.Option(None, "--humidity", help="Relative humidity in %."),
    device_id: Optional[str] = typer.Option(
        None, "--device-id", help="Device identifier, sent on the bridge channel only."
    ),
    channel: Channel = typer.Option(
        Channel.bridge,
        "--channel",
        "-c",
        case_sensitive=False,
        help="Ingestion channel to post to.",
    ),
) -> None:
    """Post a reading as a device would."""
    state = _get_state(ctx)
    payload: Dict[str, Any] = {}
    for key, value in (("temperature", temperature), ("humidity", humidity), ("co2", co2)):
        if value is not None:
            payload[key] = value
    if device_id and channel is Channel.bridge:
        payload["device_id"] = device_id

    typer.echo(f"Sending reading to {state.config.base_url}{channel.path} ...")
    result = state.client.send_reading(channel, payload)
    typer.secho("Reading accepted.", fg=typer.colors.GREEN)
    render_ingest_result(result)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Show service status and the routes it serves."""
    state = _get_state(ctx)
    render_status(state.client.get_status())
