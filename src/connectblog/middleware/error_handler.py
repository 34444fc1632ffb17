"""JSON error responses for HTTP, validation, domain and unexpected errors."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from connectblog.errors import (
    DuplicateActionError,
    NotFoundError,
    PermissionDeniedError,
    ValidationFailed,
    to_http,
)

logger = structlog.get_logger()


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    async def domain_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Service-layer errors become 4xx responses carrying the message."""
        http_exc = to_http(exc)  # type: ignore[arg-type]
        logger.info("domain_error", path=request.url.path, status=http_exc.status_code, error=str(exc))
        return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

    for exc_class in (NotFoundError, PermissionDeniedError, ValidationFailed, DuplicateActionError):
        app.add_exception_handler(exc_class, domain_exception_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; always JSON."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})
