from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx
import pytest
import typer
from fastapi.testclient import TestClient

from app.api import get_ingest_service
from app.main import create_app
from cli.client import ApiClient, NetworkError
from cli.config import CLIConfig
from cli.reconciler import ChannelReconciler, ResolvedReading
from models.records import Channel
from services.ingest import IngestService

ZERO = {
    "temperature": "0.0 °C",
    "co2": "0 ppm",
    "humidity": "0.0 %",
    "rawTemp": 0,
    "rawCo2": 0,
    "rawHumidity": 0,
}


class ScriptedSource:
    """Returns canned payloads (or raises) per channel and records the call order."""

    def __init__(self, responses: Dict[Channel, Any]) -> None:
        self.responses = responses
        self.calls: List[Channel] = []

    def fetch_channel(self, channel: Channel) -> Dict[str, Any]:
        self.calls.append(channel)
        outcome = self.responses[channel]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _fresh(temperature: float, co2: float, humidity: float) -> Dict[str, Any]:
    return {
        "ok": True,
        "hasReading": True,
        "reading": {"temperature": temperature, "co2": co2, "humidity": humidity},
    }


def test_bridge_channel_wins_when_fresh() -> None:
    source = ScriptedSource(
        {Channel.bridge: _fresh(23.46, 419.6, 45.24), Channel.primary: _fresh(1, 2, 3)}
    )

    resolved = ChannelReconciler(source).resolve()

    assert source.calls == [Channel.bridge]
    assert resolved.source is Channel.bridge
    assert resolved.to_dict() == {
        "temperature": "23.5 °C",
        "humidity": "45.2 %",
        "co2": "420 ppm",
        "rawTemp": 23.46,
        "rawCo2": 419.6,
        "rawHumidity": 45.24,
    }


def test_falls_back_to_primary_when_bridge_is_stale() -> None:
    stale_bridge = {
        "ok": True,
        "hasReading": False,
        "message": "No recent reading available",
        "lastReading": {"temperature": 20.0, "co2": 400, "humidity": 40.0},
    }
    source = ScriptedSource({Channel.bridge: stale_bridge, Channel.primary: _fresh(21.0, 610, 0)})

    resolved = ChannelReconciler(source).resolve()

    assert source.calls == [Channel.bridge, Channel.primary]
    assert resolved.source is Channel.primary
    assert resolved.raw_co2 == 610
    assert resolved.co2 == "610 ppm"


def test_network_errors_are_logged_and_skipped(caplog) -> None:
    source = ScriptedSource(
        {
            Channel.bridge: NetworkError("/api/ingest-http-bridge is unreachable"),
            Channel.primary: _fresh(19.0, 900, 50.0),
        }
    )

    with caplog.at_level(logging.WARNING, logger="cli.reconciler"):
        resolved = ChannelReconciler(source).resolve()

    assert resolved.source is Channel.primary
    assert resolved.co2_alert is True
    warnings = [record for record in caplog.records if record.name == "cli.reconciler"]
    assert warnings and getattr(warnings[0], "channel") == "bridge"


def test_zero_reading_when_nothing_is_fresh() -> None:
    source = ScriptedSource(
        {
            Channel.bridge: {"ok": True, "hasReading": False, "reading": {"temperature": 0}},
            Channel.primary: NetworkError("boom"),
        }
    )

    resolved = ChannelReconciler(source).resolve()

    assert resolved.to_dict() == ZERO
    assert resolved.source is None
    assert resolved.is_zero


def test_malformed_fresh_payload_is_skipped() -> None:
    source = ScriptedSource(
        {
            Channel.bridge: {"ok": True, "hasReading": True, "reading": {"co2": "lots"}},
            Channel.primary: {"ok": False, "hasReading": True, "reading": {}},
        }
    )

    assert ChannelReconciler(source).resolve() == ResolvedReading.zero()


def test_client_raises_network_error_for_http_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == Channel.bridge.path:
            return httpx.Response(503, text="unavailable")
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.Client(base_url="http://relay.test", transport=httpx.MockTransport(handler))
    client = ApiClient(CLIConfig(base_url="http://relay.test"), http=http)

    with pytest.raises(NetworkError, match="503"):
        client.fetch_channel(Channel.bridge)
    with pytest.raises(NetworkError, match="unreachable"):
        client.fetch_channel(Channel.primary)

    assert ChannelReconciler(client).resolve().to_dict() == ZERO


def test_client_requests_bypass_caches() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "hasReading": False})

    http = httpx.Client(base_url="http://relay.test", transport=httpx.MockTransport(handler))
    ApiClient(CLIConfig(base_url="http://relay.test"), http=http).fetch_channel(Channel.primary)

    assert seen[0].headers["Cache-Control"] == "no-cache"
    assert "t" in seen[0].url.params


def test_send_and_status_exit_cleanly_when_service_is_down(capsys) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.Client(base_url="http://relay.test", transport=httpx.MockTransport(handler))
    client = ApiClient(CLIConfig(base_url="http://relay.test"), http=http)

    with pytest.raises(typer.Exit) as sent:
        client.send_reading(Channel.bridge, {"co2": 420})
    with pytest.raises(typer.Exit) as status:
        client.get_status()

    assert sent.value.exit_code == 1
    assert status.value.exit_code == 1
    err = capsys.readouterr().err
    assert "Could not reach http://relay.test/api/ingest-http-bridge" in err
    assert "Could not reach http://relay.test/api/status" in err


def test_resolves_against_running_service(clock) -> None:
    service = IngestService(clock=clock)
    app = create_app()
    app.dependency_overrides[get_ingest_service] = lambda: service

    with TestClient(app) as http:
        reconciler = ChannelReconciler(ApiClient(CLIConfig(), http=http))

        http.post("/api/ingest", json={"co2": 455, "temperature": 22.0, "humidity": 41.0})
        assert reconciler.resolve().source is Channel.primary

        http.post(
            "/api/ingest-http-bridge",
            json={"mac": "CC:33", "temperature": 24.0, "humidity": 39.0, "co2": 470},
        )
        assert reconciler.resolve().temperature == "24.0 °C"

        clock.advance(minutes=5, seconds=1)
        assert reconciler.resolve().to_dict() == ZERO


def test_display_strings_round_ties_up() -> None:
    resolved = ResolvedReading.from_values(temperature=23.25, humidity=45.25, co2=420.5)

    assert (resolved.temperature, resolved.humidity, resolved.co2) == (
        "23.3 °C",
        "45.3 %",
        "421 ppm",
    )
    assert ResolvedReading.from_values(temperature=-0.25, humidity=0, co2=0).temperature == "-0.3 °C"
