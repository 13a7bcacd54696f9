from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.exceptions import DormLineError
from app.core.logging import get_logger
from app.schemas.response import ErrorResponse
from app.core.config import settings

logger = get_logger("errors")


def _error_json(status_code: int, error: str, code: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, details=details).model_dump()
    )


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.

    Domain errors keep their own status code; everything unexpected
    becomes a 500 whose message is hidden in production.
    """
    @app.exception_handler(DormLineError)
    async def dormline_exception_handler(request: Request, exc: DormLineError):
        logger.warning(f"⚠️ {exc.code} on {request.method} {request.url.path}: {exc.message}")
        return _error_json(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handles standard HTTP exceptions (404, 405, ...)
        """
        return _error_json(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles Pydantic validation errors.
        """
        return _error_json(
            422,
            "Input validation failed",
            "VALIDATION_ERROR",
            [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()]
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "method": request.method,
                "url": str(request.url),
                "client": request.client.host if request.client else "unknown"
            },
            exc_info=True
        )

        message = "An internal error occurred. Please try again later." if settings.is_production else str(exc)
        return _error_json(500, message, "INTERNAL_ERROR")
