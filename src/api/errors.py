"""Render every error as ``{"error": ..., "message"?: ...}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from src.errors import MeetActError

logger = logging.getLogger(__name__)


def error_body(error: str, message: str | None = None) -> dict[str, str]:
    body = {"error": error}
    if message:
        body["message"] = message
    return body


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=exc.headers,
        )

    @app.exception_handler(MeetActError)
    async def _handle_domain_error(request: Request, exc: MeetActError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.hint))

    @app.exception_handler(RequestValidationError)
    async def _handle_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        detail = f"{location}: {first.get('msg', 'invalid')}" if location else "Invalid request"
        return JSONResponse(status_code=400, content=error_body(detail))

    @app.exception_handler(Exception)
    async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content=error_body(str(exc) or "Unknown error"))
