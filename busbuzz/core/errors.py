# File: busbuzz/core/errors.py
"""Typed failures raised by the services and their HTTP translation.

Every error kind maps to exactly one status code. Handlers never build
``HTTPException`` for domain failures; they raise one of these and the
handlers registered by :func:`register_error_handlers` render
``{"kind": ..., "detail": ...}``.
"""
import logging
from typing import Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class AppError(Exception):
    kind = "AppError"
    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "detail": self.message}


class ValidationError(AppError):
    kind = "ValidationError"
    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, fields: Iterable[str] = ()):
        self.fields = list(fields)
        if message is None and self.fields:
            message = "Missing or invalid field(s): " + ", ".join(self.fields)
        super().__init__(message)

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["fields"] = self.fields
        return out


class Unauthenticated(AppError):
    kind = "Unauthenticated"
    status_code = 401
    default_message = "Not authenticated"


class InvalidCredentials(Unauthenticated):
    # same message for unknown email and wrong password
    kind = "InvalidCredentials"
    default_message = "Invalid credentials."


class Forbidden(AppError):
    kind = "Forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action"


class NotFound(AppError):
    kind = "NotFound"
    status_code = 404
    default_message = "Not found"


class DuplicateEmail(AppError):
    kind = "DuplicateEmail"
    status_code = 409
    default_message = "User with this email already exists"


class InvalidTransition(AppError):
    kind = "InvalidTransition"
    status_code = 409
    default_message = "Status change not allowed"


class ReportClosed(AppError):
    kind = "ReportClosed"
    status_code = 409
    default_message = "Report is closed"


class PayloadTooLarge(AppError):
    kind = "PayloadTooLarge"
    status_code = 413
    default_message = "File too large"


class StoreUnavailable(AppError):
    kind = "StoreUnavailable"
    status_code = 500
    default_message = "Storage is temporarily unavailable. Please retry."


def _render(err: AppError) -> JSONResponse:
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        return _render(exc)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        fields = []
        for e in exc.errors():
            loc = [str(p) for p in e.get("loc", ()) if p not in ("body", "query", "path")]
            if loc:
                fields.append(".".join(loc))
        return _render(ValidationError("Malformed request", fields=fields))

    @app.exception_handler(SQLAlchemyError)
    async def _store_error(request: Request, exc: SQLAlchemyError):
        logger.error("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return _render(StoreUnavailable())
