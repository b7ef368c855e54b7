"""
Domain error taxonomy and its HTTP mapping.

Services raise these; routes never build HTTP errors for domain failures
themselves. Every error leaves the API in one envelope:

    {"error": <code>, "message": <text>, "field": <field or null>, ...extra}
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


class DomainError(Exception):
    status_code = 400
    code = "domain_error"

    def __init__(self, message: str, *, field: str | None = None, extra: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.extra = extra or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "message": self.message, "field": self.field}
        body.update(self.extra)
        return body


class ValidationError(DomainError):
    """Missing/invalid input: reported next to the offending field."""
    status_code = 400
    code = "validation_error"


class ConflictError(DomainError):
    """Uniqueness clash, e.g. a duplicate (product, version) BOM."""
    status_code = 409
    code = "conflict"


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"


def _field_from_loc(loc: tuple | list) -> str | None:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return parts[-1] if parts else None


async def _domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    level = logging.WARNING if isinstance(exc, ConflictError) else logging.INFO
    logger.log(level, "%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    err = ValidationError(
        first.get("msg") or "Invalid request",
        field=_field_from_loc(first.get("loc") or ()),
        extra={"details": [{"loc": list(e.get("loc") or ()), "msg": e.get("msg")} for e in errors]},
    )
    logger.info("%s %s -> invalid request: %s", request.method, request.url.path, err.message)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())


async def _integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning("%s %s -> integrity error: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(
        status_code=409,
        content={"error": "integrity_error", "message": "Data integrity violation (duplicate or dangling reference)", "field": None},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(IntegrityError, _integrity_error_handler)
