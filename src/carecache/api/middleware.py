"""Correlation context middleware.

Extracts or generates request/correlation IDs, binds them to the logging
context variables for the duration of the request, and echoes them back in
response headers.
"""

from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from carecache.observability.logging import correlation_id_var, request_id_var


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Propagate x-request-id / x-correlation-id through logs and responses."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        correlation_id = request.headers.get("x-correlation-id") or request_id

        request_token = request_id_var.set(request_id)
        correlation_token = correlation_id_var.set(correlation_id)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers["x-request-id"] = request_id
            response.headers["x-correlation-id"] = correlation_id
            return response
        finally:
            request_id_var.reset(request_token)
            correlation_id_var.reset(correlation_token)
