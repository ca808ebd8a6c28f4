"""Error Handlers: global exception handlers for the User API.

Invariants:
    - UserApiError -> structured JSON envelope with code, message, category, severity
    - Starlette HTTPException (unmatched route, wrong method) -> same envelope
    - 500-level errors log full detail server-side; the client sees only the generic message
    - Anything else escapes to RecoverPanicMiddleware (api/middleware.py)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from userapi.core.errors import ErrorSeverity, InternalError, UserApiError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_user_api_error_handler(app)
    _register_http_exception_handler(app)


def _register_user_api_error_handler(app: FastAPI) -> None:

    @app.exception_handler(UserApiError)
    async def user_api_error_handler(request: Request, exc: UserApiError):
        """Handle all User API domain/infrastructure errors."""
        extra = {"error_code": exc.code, "path": request.url.path}
        if isinstance(exc, InternalError):
            logger.error(
                f"Internal error on {request.url.path}: {exc.detail}",
                extra=extra,
                exc_info=exc.__cause__ or exc,
            )
        else:
            logger.warning(f"{exc.code}: {exc.message}", extra=extra)
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_http_exception_handler(app: FastAPI) -> None:

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException,
    ):
        """Routing-level errors (404 unmatched path, 405 wrong method)."""
        return JSONResponse(
            status_code=exc.status_code,
            content=_build_http_error_response(exc),
            headers=getattr(exc, "headers", None),
        )


def _build_http_error_response(exc: StarletteHTTPException) -> dict:
    code = {404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}.get(
        exc.status_code, "HTTP_ERROR",
    )
    return {
        "error": {
            "code": code,
            "message": str(exc.detail),
            "category": "not_found" if exc.status_code == 404 else "http",
            "severity": ErrorSeverity.WARNING.value,
        },
    }
