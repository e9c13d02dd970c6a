"""HTTP route definitions for the service."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status

from app.schemas import (
    BridgeChannelView,
    BridgeIngestResponse,
    BridgeReading,
    ErrorResponse,
    PrimaryChannelView,
    PrimaryIngestResponse,
    PrimaryReading,
    StatusResponse,
)
from models.records import Channel
from services.ingest import IngestService, build_default_ingest_service
from services.normalizer import LENIENT_REASON, STRICT_REASON, ValidationError
from settings import get_settings

router = APIRouter(prefix="/api")

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_405_METHOD_NOT_ALLOWED: {"model": ErrorResponse},
}


def get_ingest_service() -> IngestService:
    return build_default_ingest_service()


async def _read_json(request: Request, reason: str) -> Any:
    body = await request.body()
    if not body:
        raise ValidationError(reason)
    try:
        return json.loads(body)
    except ValueError as exc:
        raise ValidationError(reason) from exc


@router.post(
    "/ingest",
    response_model=PrimaryIngestResponse,
    responses=_ERROR_RESPONSES,
    summary="Store the latest reading on the primary channel.",
)
async def ingest_primary(
    request: Request,
    service: IngestService = Depends(get_ingest_service),
) -> PrimaryIngestResponse:
    payload = await _read_json(request, LENIENT_REASON)
    reading = service.ingest(Channel.primary, payload)
    return PrimaryIngestResponse(
        ok=True,
        message="Reading stored successfully",
        reading=PrimaryReading.from_reading(reading),
    )


@router.get(
    "/ingest",
    response_model=PrimaryChannelView,
    response_model_exclude_unset=True,
    summary="Fetch the latest primary channel reading.",
)
async def read_primary(
    service: IngestService = Depends(get_ingest_service),
) -> PrimaryChannelView:
    return PrimaryChannelView.from_view(service.view(Channel.primary))


@router.post(
    "/ingest-http-bridge",
    response_model=BridgeIngestResponse,
    responses=_ERROR_RESPONSES,
    summary="Store the latest reading sent by an ESP32 gateway over plain HTTP.",
)
async def ingest_bridge(
    request: Request,
    service: IngestService = Depends(get_ingest_service),
) -> BridgeIngestResponse:
    payload = await _read_json(request, STRICT_REASON)
    reading = service.ingest(Channel.bridge, payload)
    return BridgeIngestResponse(
        ok=True,
        message="Data received via HTTP bridge",
        reading=BridgeReading.from_reading(reading),
        note="This endpoint accepts HTTP for ESP32 compatibility",
    )


@router.get(
    "/ingest-http-bridge",
    response_model=BridgeChannelView,
    response_model_exclude_unset=True,
    summary="Fetch the latest bridge channel reading.",
)
async def read_bridge(
    service: IngestService = Depends(get_ingest_service),
) -> BridgeChannelView:
    return BridgeChannelView.from_view(service.view(Channel.bridge), now=service.clock())


@router.options("/ingest", include_in_schema=False)
@router.options("/ingest-http-bridge", include_in_schema=False)
async def ingest_options() -> Response:
    return Response(status_code=status.HTTP_200_OK)


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Service status and the routes it serves.",
)
async def service_status() -> StatusResponse:
    settings = get_settings()
    return StatusResponse(
        status="ok",
        platform=settings.platform,
        endpoints={
            "ingest": f"POST {router.prefix}/ingest",
            "ingest-http-bridge": f"POST {router.prefix}/ingest-http-bridge",
            "status": f"GET {router.prefix}/status",
        },
    )

