"""
Error types and the exception handlers that render them in the API envelope.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional, Sequence

from bson import ObjectId
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from herbs_backend.db import DuplicateDocumentError, InvalidDocumentId, to_object_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        errors: Optional[Sequence[FieldError]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.errors = list(errors or [])
        super().__init__(self.message)


class ValidationFailed(APIError):
    def __init__(self, errors: Sequence[FieldError], message: str = "Validation failed"):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, errors)


class InvalidIdentifier(APIError):
    def __init__(self, resource: str):
        super().__init__(f"Invalid {resource} ID", status.HTTP_400_BAD_REQUEST)


class ResourceNotFound(APIError):
    def __init__(self, resource: str):
        super().__init__(f"{resource} not found", status.HTTP_404_NOT_FOUND)


class ConflictError(APIError):
    def __init__(self, message: str):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


def parse_object_id(value: Any, resource: str) -> ObjectId:
    """Convert a path identifier, reporting malformed ones per resource."""
    try:
        return to_object_id(value)
    except InvalidDocumentId:
        raise InvalidIdentifier(resource) from None


def error_body(message: str, errors: Optional[Sequence[FieldError]] = None) -> dict:
    body: dict = {"success": False, "message": message}
    if errors:
        body["errors"] = [asdict(error) for error in errors]
    return body


def setup_error_handlers(app: FastAPI) -> None:
    """Register handlers translating every failure into the response envelope."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        logger.info(
            "API error %s on %s: %s", exc.status_code, request.url.path, exc.message
        )
        return JSONResponse(
            status_code=exc.status_code, content=error_body(exc.message, exc.errors)
        )

    @app.exception_handler(InvalidDocumentId)
    async def invalid_id_handler(request: Request, exc: InvalidDocumentId):
        logger.info("Invalid identifier on %s: %r", request.url.path, exc.value)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Invalid ID format"),
        )

    @app.exception_handler(DuplicateDocumentError)
    async def duplicate_handler(request: Request, exc: DuplicateDocumentError):
        logger.info("Duplicate document on %s: %s", request.url.path, exc)
        fields = ", ".join(exc.fields)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(f"Duplicate value for {fields}"),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.info("Request validation failed on %s", request.url.path)
        errors = []
        for error in exc.errors():
            loc = [
                str(part)
                for part in error.get("loc", [])
                if part not in ("query", "body", "path", "header")
            ]
            errors.append(
                FieldError(
                    field=".".join(loc) or "request",
                    message=str(error.get("msg", "")),
                )
            )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("Validation failed", errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Route not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unexpected error on %s: %s", request.url.path, exc, exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error"),
        )
