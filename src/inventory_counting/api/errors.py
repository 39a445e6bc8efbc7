"""HTTP error mapping for the inventory API."""

import logging
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from inventory_counting.domain.errors import (
    InventoryError,
    InventoryValidationError,
    SessionNotFoundError,
    SessionStateConflictError,
    StorageError,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"

_STATUS_BY_ERROR: dict[type[InventoryError], int] = {
    InventoryValidationError: status.HTTP_400_BAD_REQUEST,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    SessionStateConflictError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_502_BAD_GATEWAY,
}


def correlation_id(request: Request) -> str:
    """Return the correlation id assigned to this request."""
    value = getattr(request.state, "correlation_id", None)
    return value or str(uuid4())


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    field_errors: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the standard error envelope."""
    error: dict[str, object] = {"code": code, "message": message}
    if field_errors:
        error["field_errors"] = field_errors
    return JSONResponse(
        status_code=status_code,
        content={
            "ok": False,
            "error": error,
            "correlation_id": correlation_id(request),
        },
    )


def install_error_handlers(app: FastAPI) -> None:
    """Register handlers mapping errors onto the response envelope."""

    @app.exception_handler(InventoryError)
    async def handle_inventory_error(
        request: Request, exc: InventoryError
    ) -> JSONResponse:
        status_code = _STATUS_BY_ERROR.get(
            type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        if isinstance(exc, StorageError):
            logger.error(
                "Storage failure on %s %s [%s]: %s",
                request.method,
                request.url.path,
                correlation_id(request),
                exc.message,
            )
        else:
            logger.info(
                "Rejected %s %s with %s: %s",
                request.method,
                request.url.path,
                exc.code,
                exc.message,
            )
        return error_response(
            request, status_code, exc.code, exc.message, exc.field_errors
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        field_errors = {}
        for error in exc.errors():
            location = [str(part) for part in error.get("loc", ()) if part != "body"]
            field_errors[".".join(location) or "body"] = str(error.get("msg", ""))
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            InventoryValidationError.code,
            "Request validation failed",
            field_errors,
        )
