# -*- coding: utf-8 -*-
"""Location: ./rolegraph/middleware/correlation_id.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: RoleGraph Contributors

Request ID Middleware.

Binds a request ID around each HTTP request so the link check it serves runs
in that scope. The ID comes from the configured header when the policy engine
sends one; it is echoed on the response either way.
"""

# Standard
from typing import Callable

# Third-Party
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# First-Party
from rolegraph.config import settings
from rolegraph.utils.correlation_id import correlation_scope, extract_correlation_id_from_headers


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Middleware running each request inside a request ID scope."""

    def __init__(self, app):
        """Initialize the middleware.

        Args:
            app: The FastAPI application instance
        """
        super().__init__(app)
        self.header_name = settings.correlation_id_header
        self.preserve_incoming = settings.correlation_id_preserve

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Serve the request inside a request ID scope.

        Args:
            request: The incoming HTTP request
            call_next: The next middleware or route handler

        Returns:
            Response: The HTTP response carrying the request ID header
        """
        incoming = extract_correlation_id_from_headers(request.headers, self.header_name) if self.preserve_incoming else None
        with correlation_scope(incoming) as request_id:
            response = await call_next(request)
        response.headers[self.header_name] = request_id
        return response
