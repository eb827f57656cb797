"""
Exception handlers mapping errors to HTTP responses.

Bodies use ``{"error": ...}`` except for EmptyPopulationError, which keeps
its ``{"message": ...}`` shape.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from scriptsnip.errors import EmptyPopulationError, ScriptSnipError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected internal server error occurred"


class RateLimitExceeded(Exception):
    """A client exceeded a request quota."""

    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.message = message
        self.retry_after = retry_after


def format_validation_errors(errors) -> list[dict]:
    """Flatten pydantic errors to ``{path, message}`` pairs, dropping the "body" prefix."""
    details = []
    for err in errors:
        loc = list(err.get("loc", ()))
        if loc and loc[0] == "body":
            loc = loc[1:]
        details.append({
            "path": ".".join(str(part) for part in loc),
            "message": err.get("msg", ""),
        })
    return details


async def script_error_handler(request: Request, exc: ScriptSnipError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    key = "message" if isinstance(exc, EmptyPopulationError) else "error"
    return JSONResponse(status_code=exc.status_code, content={key: exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.warning(f"{request.method} {request.url.path} -> 400: invalid request ({len(errors)} errors)")

    json_errors = [err for err in errors if err.get("type") == "json_invalid"]
    if json_errors:
        detail = json_errors[0].get("ctx", {}).get("error") or json_errors[0].get("msg", "")
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid JSON payload received", "details": str(detail)},
        )

    return JSONResponse(
        status_code=400,
        content={"error": "Invalid input data", "details": format_validation_errors(errors)},
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> PlainTextResponse:
    logger.warning(f"Rate limit hit by {request.client.host if request.client else 'unknown'}")
    return PlainTextResponse(
        exc.message,
        status_code=429,
        headers={"Retry-After": str(exc.retry_after)},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"{request.method} {request.url.path} raised {type(exc).__name__}")
    return JSONResponse(status_code=500, content={"error": str(exc) or INTERNAL_ERROR_MESSAGE})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on an application."""
    app.add_exception_handler(ScriptSnipError, script_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
