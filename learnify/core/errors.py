"""
API error type and the FastAPI handlers that render the error envelope:

    {"success": false, "error": "<CODE>", "message": "<text>"}
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    413: "FILE_TOO_LARGE",
    415: "UNSUPPORTED_MEDIA_TYPE",
    429: "TOO_MANY_REQUESTS",
    500: "INTERNAL_ERROR",
}


class APIError(HTTPException):
    """HTTPException carrying a machine-readable error code."""

    def __init__(self, status_code: int, error: str, message: str, **extra: Any):
        super().__init__(status_code=status_code, detail=message)
        self.error = error
        self.message = message
        self.extra = extra


def error_body(error: str, message: str, **extra: Any) -> dict:
    body = {"success": False, "error": error, "message": message}
    body.update(extra)
    return body


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(error_body(exc.error, exc.message, **exc.extra)),
        headers=getattr(exc, "headers", None),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route {request.method} {request.url.path} not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(STATUS_CODES.get(exc.status_code, "ERROR"), message),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content=jsonable_encoder(
            error_body("VALIDATION_ERROR", "Invalid request data", details=exc.errors())
        ),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", "Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all error handlers to the app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
