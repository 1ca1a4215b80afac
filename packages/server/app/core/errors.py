"""
Error taxonomy and the handlers that turn errors into `{"error": ...}` bodies.

Services raise these close to the failing check; FastAPI converts them at
the boundary. Store failures are logged in full and answered opaquely.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

log = structlog.get_logger()


class AppError(HTTPException):
    """Base for business errors. Subclasses pin the status code."""

    status_code = 400
    default_detail = "Bad request"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(AppError):
    status_code = 400
    default_detail = "Invalid request"


class Conflict(AppError):
    # Reported as 400 to match the public API contract.
    status_code = 400
    default_detail = "Conflict"


class Unauthenticated(AppError):
    status_code = 401
    default_detail = "Not authenticated"


class InvalidCredentials(Unauthenticated):
    default_detail = "Invalid email or password"


class Forbidden(AppError):
    status_code = 403
    default_detail = "Access denied"


AccessDenied = Forbidden


class NotFound(AppError):
    status_code = 404
    default_detail = "Not found"


class InvalidOrExpiredInvitation(ValidationError):
    default_detail = "Invalid or expired invitation"


class StoreFailure(AppError):
    status_code = 500
    default_detail = "Internal server error"


# ---------------------------------------------------------------------------
# Boundary handlers
# ---------------------------------------------------------------------------

def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(loc)
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": _format_validation_error(exc)})


async def store_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.exception("store.failure", path=request.url.path, method=request.method, error=str(exc))
    return JSONResponse(status_code=500, content={"error": StoreFailure.default_detail})


def install_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, store_exception_handler)
