"""Correlation ID middleware."""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

HEADER = "x-correlation-id"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Echo the caller's correlation ID, or mint one, on every response."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        response: Response = await call_next(request)
        response.headers[HEADER] = correlation_id
        return response
