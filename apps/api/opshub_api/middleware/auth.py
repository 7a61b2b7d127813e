"""Authentication middleware to attach the operator to the request."""

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from opshub_api.errors import AuthenticationError

logger = logging.getLogger(__name__)

PUBLIC_PATHS = {"/health", "/ready", "/docs", "/openapi.json", "/"}


def is_public(request: Request) -> bool:
    """Paths that never pass through the operator gate."""
    path = request.url.path.rstrip("/") or "/"
    if request.method == "OPTIONS":
        return True
    if path in PUBLIC_PATHS or path.startswith("/metrics"):
        return True
    # Liveness on the action route
    if path == "/v1/ops" and request.method == "GET":
        return True
    # Authenticated by the shared service token instead
    if path == "/v1/attest":
        return True
    return False


class AuthMiddleware(BaseHTTPMiddleware):
    """Verify the bearer credential and set ``request.state.operator``."""

    async def dispatch(self, request: Request, call_next):
        if is_public(request):
            return await call_next(request)

        gate = request.app.state.gate
        try:
            operator = await gate.authenticate(request.headers.get("authorization"))
        except AuthenticationError as e:
            return JSONResponse(status_code=e.status_code, content=e.to_body())

        request.state.operator = operator
        logger.info(
            "Authenticated request",
            extra={
                "operator_id": operator.operator_id,
                "correlation_id": getattr(request.state, "correlation_id", None),
                "path": request.url.path,
            },
        )
        return await call_next(request)
