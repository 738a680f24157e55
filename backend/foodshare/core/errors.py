"""
Centralized error handling for service/API failures.

Services raise the domain errors below; handlers registered on the app turn them into the
standard envelope {"success": false, "message": ...} so routes stay thin.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: status codes and user-facing messages
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_INTERNAL_ERROR = 500

MSG_NOT_AUTHORIZED = "Not authorized to access this route"
MSG_SERVER_ERROR = "Server error"


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class FoodShareError(Exception):
    """Base for errors surfaced to the caller with a stable message."""

    status_code = STATUS_INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(FoodShareError):
    """Missing or out-of-range field, bad expiry date, unknown enum value."""

    status_code = STATUS_BAD_REQUEST


class UnauthorizedError(FoodShareError):
    status_code = STATUS_UNAUTHORIZED

    def __init__(self, message: str = MSG_NOT_AUTHORIZED):
        super().__init__(message)


class ForbiddenError(FoodShareError):
    """Authenticated but lacking the specific right (wrong owner/claimer, self-claim, self-rate)."""

    status_code = STATUS_FORBIDDEN


class NotFoundError(FoodShareError):
    status_code = STATUS_NOT_FOUND


class ConflictError(FoodShareError):
    """Illegal state transition, already claimed, duplicate rating, locked post."""

    status_code = STATUS_CONFLICT


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def error_body(message: str) -> dict:
    return {"success": False, "message": message}


def _validation_message(exc: RequestValidationError) -> str:
    """First pydantic error as '<field>: <msg>' (body/query prefix dropped)."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path")]
    msg = str(first.get("msg", "Invalid value"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def register_error_handlers(app: FastAPI) -> None:
    """Install handlers so every failure leaves the API as the standard envelope."""

    @app.exception_handler(FoodShareError)
    async def handle_domain_error(request: Request, exc: FoodShareError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=STATUS_BAD_REQUEST, content=error_body(_validation_message(exc)))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=STATUS_INTERNAL_ERROR, content=error_body(MSG_SERVER_ERROR))
