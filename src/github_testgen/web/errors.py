"""Translation of domain errors into JSON error responses."""

from logging import getLogger
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from github_testgen.clients.errors.github import ClientError
from github_testgen.servers.shared.errors import ServerError

logger = getLogger(__name__)


class AuthenticationRequiredError(Exception):
    status_code: int = 401

    def __init__(self, message: str = "Not authenticated"):
        self.message: str = message
        super().__init__(message)


class InvalidRequestError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        self.message: str = message
        super().__init__(message)


def error_response(status_code: int, message: str, details: Any | None = None) -> JSONResponse:  # pyright: ignore[reportAny]
    content: dict[str, Any] = {"error": message}

    if details is not None:
        content["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def authentication_required_handler(request: Request, exc: AuthenticationRequiredError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def domain_error_handler(request: Request, exc: ClientError | ServerError) -> JSONResponse:
    """Client and server errors carry their own status. Details are attached when they add something."""

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc}")

    details: str | None = str(exc) if str(exc) != exc.message else None

    return error_response(exc.status_code, exc.message, details)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(400, "Invalid request", jsonable_encoder(exc.errors()))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error for {request.method} {request.url.path}: {exc}")
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(AuthenticationRequiredError, authentication_required_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(InvalidRequestError, invalid_request_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(ClientError, domain_error_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(ServerError, domain_error_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(HTTPException, http_exception_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # pyright: ignore[reportArgumentType]
    app.add_exception_handler(Exception, unhandled_exception_handler)

    return app
