"""
Exception handlers - map domain errors to structured HTTP responses.

Every failure leaves the API as {"detail": <message>, "code": <ErrorKind>}
with a status code fixed per kind.
"""

import logging

import psycopg
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.domain.exceptions import ErrorKind, IdentityError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_CREDENTIALS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_OR_EXPIRED_OTP: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_ADMITTED: status.HTTP_403_FORBIDDEN,
    ErrorKind.EMAIL_NOT_VERIFIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.DEPENDENCY_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(kind: ErrorKind, detail: str) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if kind is ErrorKind.UNAUTHORIZED else None
    return JSONResponse(
        status_code=STATUS_BY_KIND[kind],
        content={"detail": detail, "code": kind.value},
        headers=headers,
    )


async def identity_error_handler(request: Request, exc: IdentityError) -> JSONResponse:
    return error_response(exc.kind, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "invalid value")
        problems.append(f"{location}: {message}" if location else message)
    return error_response(ErrorKind.VALIDATION_ERROR, "; ".join(problems) or "Invalid request")


async def database_error_handler(request: Request, exc: psycopg.Error) -> JSONResponse:
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return error_response(ErrorKind.DEPENDENCY_FAILURE, "Service temporarily unavailable")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IdentityError, identity_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(psycopg.Error, database_error_handler)
