"""Exception types and handlers that shape error responses."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.schemas import ErrorResponse
from services.normalizer import ValidationError

logger = logging.getLogger(__name__)

METHOD_NOT_ALLOWED = "Method not allowed"

# Ingest routes answer in their ``{ok, error}`` envelope; other routes only carry ``error``.
_ENVELOPED_PATHS = frozenset({"/api/ingest", "/api/ingest-http-bridge"})


class MethodNotAllowedError(Exception):
    """Raised for verbs a route does not serve; carries the route's body shape."""

    def __init__(self, body: Dict[str, Any]) -> None:
        super().__init__(body.get("error", METHOD_NOT_ALLOWED))
        self.body = body

    @classmethod
    def for_path(cls, path: str) -> "MethodNotAllowedError":
        if path.rstrip("/") in _ENVELOPED_PATHS:
            return cls({"ok": False, "error": METHOD_NOT_ALLOWED})
        return cls({"error": METHOD_NOT_ALLOWED})


async def _validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(ok=False, error=exc.reason).model_dump(),
    )


async def _method_not_allowed_handler(
    request: Request, exc: MethodNotAllowedError
) -> JSONResponse:
    logger.info(
        "Rejected %s request",
        request.method,
        extra={"endpoint": request.url.path, "status_code": status.HTTP_405_METHOD_NOT_ALLOWED},
    )
    return JSONResponse(status_code=status.HTTP_405_METHOD_NOT_ALLOWED, content=exc.body)


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code != status.HTTP_405_METHOD_NOT_ALLOWED:
        return await http_exception_handler(request, exc)
    response = await _method_not_allowed_handler(
        request, MethodNotAllowedError.for_path(request.url.path)
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
