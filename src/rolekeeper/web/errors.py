"""Exception handlers that translate role errors to HTTP responses."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rolekeeper.common.logging import log_context
from rolekeeper.core.errors import RoleError, UnauthorizedError

_UNHANDLED_LOGGER = logging.getLogger("rolekeeper.errors")
_ROLES_LOGGER = logging.getLogger("rolekeeper.roles")


def _handle_unauthorized(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    """Translate guard rejections into HTTP 401 responses."""

    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"detail": {"error": "unauthorized", "reason": exc.reason}},
    )


def _handle_role_error(request: Request, exc: RoleError) -> JSONResponse:
    _ROLES_LOGGER.error(
        "roles.error",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            exception_type=type(exc).__name__,
            detail=str(exc),
        ),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Role configuration error"},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: HTTP 500 plus an ERROR log with the stack trace."""

    _UNHANDLED_LOGGER.exception(
        "unhandled_exception",
        extra=log_context(
            path=str(request.url.path),
            method=request.method,
            exception_type=type(exc).__name__,
            detail=str(exc),
        ),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach role and catch-all handlers to the FastAPI app."""

    app.add_exception_handler(UnauthorizedError, _handle_unauthorized)
    app.add_exception_handler(RoleError, _handle_role_error)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["register_exception_handlers", "unhandled_exception_handler"]
