import logging
from typing import Any, Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.responses import json_error

logger = logging.getLogger(__name__)


class Issue(BaseModel):
    """One failing field: where it came from, its dotted path and the rule it broke."""
    location: str = "body"
    path: str
    rule: str
    message: str


class AppError(Exception):
    """Base class for errors that map onto a client-visible HTTP status."""
    status_code = 500

    def __init__(self, message: str, issues: list[Issue] | None = None):
        super().__init__(message)
        self.message = message
        self.issues = issues


class BadRequestError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)


class AuthorizationError(AppError):
    status_code = 403

    def __init__(self, message: str = "You are not allowed to perform this action"):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class PayloadTooLargeError(AppError):
    status_code = 413


class UnsupportedMediaTypeError(AppError):
    status_code = 415


class ValidationError(AppError):
    status_code = 422

    def __init__(self, issues: list[Issue], message: str = "Validation failed"):
        super().__init__(message, issues)


class SessionProviderError(AppError):
    status_code = 503


def issues_from_pydantic(errors: Iterable[dict[str, Any]]) -> list[Issue]:
    """
    Flatten pydantic / FastAPI error dicts into Issue objects.

    FastAPI prefixes `loc` with where the value came from ("body", "query",
    "path"); that prefix becomes `location` and the rest the dotted path.
    """
    issues = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        location = "body"
        if loc and loc[0] in ("body", "query", "path", "header", "cookie"):
            location = loc.pop(0)
        issues.append(
            Issue(
                location=location,
                path=".".join(loc),
                rule=err.get("type", "invalid"),
                message=err.get("msg", "Invalid value"),
            )
        )
    return issues


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    issues = [issue.model_dump() for issue in exc.issues] if exc.issues else None
    return json_error(exc.message, exc.status_code, issues)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    issues = issues_from_pydantic(exc.errors())
    return json_error("Validation failed", 422, [issue.model_dump() for issue in issues])


async def integrity_error_handler(request: Request, exc: IntegrityError):
    # Unique constraints (generation number, slugs, index number) land here
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return json_error("The request conflicts with an existing record", 409)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return json_error(str(exc.detail), exc.status_code)


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return json_error("Unexpected server error", 500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
