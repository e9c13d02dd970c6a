from __future__ import annotations

import time
from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig
from models.records import Channel


class NetworkError(Exception):
    """A channel could not be fetched or returned an unusable response."""


class ApiClient:
    """Minimal HTTP client for the relay service."""

    def __init__(self, config: CLIConfig, http: Optional[httpx.Client] = None) -> None:
        self._config = config
        self._client = http or httpx.Client(base_url=config.base_url, timeout=config.poll_timeout)

    def close(self) -> None:
        self._client.close()

    def fetch_channel(self, channel: Channel) -> Dict[str, Any]:
        """GET a channel's store view, bypassing any intermediate cache."""
        try:
            response = self._client.get(
                channel.path,
                params={"t": int(time.time() * 1000)},
                headers={"Cache-Control": "no-cache"},
            )
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(
                f"{channel.path} answered with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(f"{channel.path} is unreachable: {exc}") from exc
        except ValueError as exc:
            raise NetworkError(f"{channel.path} returned a non-JSON body") from exc
        if not isinstance(payload, dict):
            raise NetworkError(f"{channel.path} returned an unexpected payload")
        return payload

    def send_reading(self, channel: Channel, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(channel.path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.HTTPError as exc:
            self._handle_transport_error(channel.path, exc)
        return response.json()

    def get_status(self) -> Dict[str, Any]:
        try:
            response = self._client.get("/api/status")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.HTTPError as exc:
            self._handle_transport_error("/api/status", exc)
        return response.json()

    def _handle_transport_error(self, path: str, exc: httpx.HTTPError) -> None:
        typer.secho(
            f"Could not reach {self._config.base_url}{path}: {exc}",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("error") or data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
