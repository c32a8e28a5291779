"""
Error taxonomy shared by every handler, and the handlers that render it.

Every failure leaves the API as the uniform envelope
``{"success": false, "message": ..., "errors": [...], "timestamp": ...}``.
"""
from typing import List, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .services.envelope import utc_timestamp


logger = structlog.get_logger(__name__)


class PipelineError(Exception):
    status_code = 500

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationFailed(PipelineError):
    """Missing, malformed or out-of-range input."""
    status_code = 400

    @classmethod
    def from_messages(cls, messages: List[str]) -> "ValidationFailed":
        return cls(", ".join(messages), errors=list(messages))


class ReferenceMissing(PipelineError):
    """A foreign id points to no record."""
    status_code = 400

    @classmethod
    def from_messages(cls, messages: List[str]) -> "ReferenceMissing":
        return cls(", ".join(messages), errors=list(messages))


class Conflict(PipelineError):
    """A unique business key or primary id is already taken."""
    status_code = 409

    @classmethod
    def from_messages(cls, messages: List[str]) -> "Conflict":
        return cls(", ".join(messages), errors=list(messages))


class NotFound(PipelineError):
    status_code = 404


def error_body(message: str, errors: Optional[list] = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    body["timestamp"] = utc_timestamp()
    return body


def describe_error(err: dict) -> str:
    loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
    where = ".".join(loc)
    return f"{where}: {err.get('msg')}" if where else str(err.get("msg"))


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PipelineError)
    async def _pipeline_error(request: Request, exc: PipelineError):
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.errors))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError):
        messages = [describe_error(e) for e in exc.errors()]
        return JSONResponse(status_code=400, content=jsonable_encoder(error_body(", ".join(messages), messages)))

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = "Route not found"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=getattr(exc, "headers", None))

    @app.exception_handler(SQLAlchemyError)
    async def _database_error(request: Request, exc: SQLAlchemyError):
        logger.error("database_error", path=request.url.path, error=str(exc))
        return JSONResponse(status_code=500, content=error_body(f"Database error: {exc}"))

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path)
        return JSONResponse(status_code=500, content=error_body("Something went wrong!"))
