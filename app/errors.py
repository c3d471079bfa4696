import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger("snip.errors")


class SnipError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None, *, extra: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.extra = extra or {}


class ValidationError(SnipError):
    status_code = 400
    message = "Invalid request"


class NotFoundError(SnipError):
    status_code = 404
    message = "Post not found"


class DependencyError(SnipError):
    status_code = 500
    message = "Internal server error"


async def snip_error_handler(request: Request, exc: SnipError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "REQUEST_FAILED method=%s path=%s error=%s",
            request.method,
            request.url.path,
            exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.extra})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"error": message})
