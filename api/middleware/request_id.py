"""
Request ID middleware

Generates or forwards a trace ID and resolves the client IP, exposing both
to the structlog context.
"""
import uuid
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

import structlog


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Request ID tracking middleware

    1. Read the request ID from the request headers or generate one
    2. Resolve the client IP, from ``source_ip_header`` when configured
    3. Store both on ``request.state`` and bind them for structlog
    4. Echo the request ID in the response headers
    """

    HEADER_NAME = "X-Request-ID"

    def __init__(self, app: ASGIApp, source_ip_header: str = ""):
        super().__init__(app)
        self.source_ip_header = source_ip_header

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.HEADER_NAME)
        if not request_id:
            request_id = str(uuid.uuid4())

        client_ip = self._get_client_ip(request)

        request.state.request_id = request_id
        request.state.client_ip = client_ip

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            client_ip=client_ip,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)

        response.headers[self.HEADER_NAME] = request_id

        return response

    def _get_client_ip(self, request: Request) -> Optional[str]:
        """
        Resolve the client IP address

        Forwarding headers are only trusted when a source IP header is
        configured (the server then sits behind a known proxy); otherwise the
        peer address is used.
        """
        if self.source_ip_header:
            forwarded = request.headers.get(self.source_ip_header)
            if forwarded:
                # The first entry is the originating client
                return forwarded.split(",")[0].strip()

        return request.client.host if request.client else None
