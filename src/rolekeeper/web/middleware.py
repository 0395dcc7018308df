"""Correlation ids and per-request access logs."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from rolekeeper.common.logging import bind_request_context, clear_request_context, log_context

REQUEST_ID_HEADER = "X-Request-ID"

_logger = logging.getLogger("rolekeeper.request")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the caller's ``X-Request-ID`` (or a fresh one) to the logging context."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.correlation_id = correlation_id
        bind_request_context(correlation_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            _logger.error("request.error", extra=self._fields(request, started, None))
            clear_request_context()
            raise

        _logger.info("request.complete", extra=self._fields(request, started, response))
        clear_request_context()

        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response

    @staticmethod
    def _fields(request: Request, started: float, response: Response | None) -> dict:
        return log_context(
            path=request.url.path,
            method=request.method,
            duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
            status_code=None if response is None else response.status_code,
        )


def register_middleware(app: FastAPI) -> None:
    app.add_middleware(RequestContextMiddleware)


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware", "register_middleware"]
