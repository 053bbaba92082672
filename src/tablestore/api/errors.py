"""
tablestore.api.errors

Exception handlers that render every failure as `{"error_message": "..."}`.

Responsibilities:
- Map `TableStoreError` subclasses to their HTTP status.
- Replace FastAPI/Starlette default error bodies (404, 405, validation).
- Hide unexpected exceptions behind a generic 500.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from tablestore.errors import TableStoreError
from tablestore.observability.logging import get_logger

log = get_logger(__name__)

METHOD_NOT_ALLOWED = "Unknown method. Use instead GET, POST, PUT or DELETE."
UNKNOWN_PATH = "Not found. Use /{table} or /{table}/{position}."


def error_response(
    status_code: int,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse({"error_message": message}, status_code=status_code, headers=headers)


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TableStoreError)
    async def _store_error(_: Request, exc: TableStoreError) -> JSONResponse:
        if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
            log.error("store_error", error_type=type(exc).__name__, error=exc.message)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == HTTP_405_METHOD_NOT_ALLOWED:
            message = METHOD_NOT_ALLOWED
        elif exc.status_code == HTTP_404_NOT_FOUND:
            message = UNKNOWN_PATH
        else:
            message = str(exc.detail)
        return error_response(exc.status_code, message, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(HTTP_400_BAD_REQUEST, "Invalid request")

    @app.exception_handler(Exception)
    async def _unexpected(_: Request, exc: Exception) -> JSONResponse:
        log.exception("unhandled_error", error_type=type(exc).__name__)
        return error_response(HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# --- Module Notes -----------------------------------------------------------
# The `Exception` handler is installed on ServerErrorMiddleware, which re-raises
# after responding so uvicorn still records the failure.
