"""
app/core/errors.py

Purpose: Error envelope

Every failure leaves the API as ErrorResponse{error, code, details}:
- RoomMatchError subclasses carry their own status and code
- Starlette HTTP errors (unknown route, wrong method) become HTTP_ERROR
- Request body/query validation becomes VALIDATION_ERROR
- Anything else becomes INTERNAL_ERROR
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import AuthenticationError, RoomMatchError
from app.core.logging import get_logger
from app.schemas.response import ErrorResponse

logger = get_logger("errors")


def error_response(status_code: int, error: str, code: str, details: Any = None,
                   headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, details=details).model_dump(),
        headers=headers,
    )


def _request_info(request: Request) -> Dict[str, str]:
    return {"method": request.method, "path": request.url.path}


def add_exception_handlers(app: FastAPI):
    """
    Registers exception handlers with the FastAPI app.
    """
    @app.exception_handler(RoomMatchError)
    async def roommatch_exception_handler(request: Request, exc: RoomMatchError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code}: {exc.message}", extra=_request_info(request))
        else:
            logger.info(f"{exc.code}: {exc.message}", extra=_request_info(request))

        headers = None
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}

        return error_response(exc.status_code, exc.message, exc.code, exc.details, headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Keeps headers such as Allow on 405
        return error_response(
            exc.status_code,
            str(exc.detail),
            "HTTP_ERROR",
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        logger.info(f"Request validation failed on {len(errors)} field(s)", extra=_request_info(request))
        return error_response(422, "Input validation failed", "VALIDATION_ERROR", errors)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all for unhandled exceptions.
        Outside development the message is generic.
        """
        logger.error(
            f"Unhandled {type(exc).__name__}: {exc}",
            extra={
                **_request_info(request),
                "client": request.client.host if request.client else "unknown",
            },
            exc_info=True
        )

        message = str(exc) if settings.is_development else "An internal error occurred. Please try again later."
        return error_response(500, message, "INTERNAL_ERROR")
