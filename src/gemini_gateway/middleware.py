"""Cross-origin handling and the single error boundary of the HTTP surface."""

from __future__ import annotations

import logging
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from gemini_gateway.config import CORSConfig
from gemini_gateway.constants import INTERNAL_SERVER_ERROR_MESSAGE
from gemini_gateway.exceptions import GatewayError

logger = logging.getLogger(__name__)


def error_response(error: GatewayError) -> Response:
    return PlainTextResponse(error.message, status_code=error.status_code)


class ErrorBoundaryMiddleware(BaseHTTPMiddleware):
    """Translate any exception raised while handling a request to a response.

    Errors answer with their message as plain text. Gateway errors carry
    their own status; anything else is a 500.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except GatewayError as e:
            # 4xx -> warning; 5xx -> error
            level = logging.WARNING if 400 <= e.status_code < 500 else logging.ERROR
            logger.log(
                level,
                "Gateway error: %s details=%s",
                e,
                e.details,
                exc_info=level >= logging.ERROR,
            )
            return error_response(e)
        except Exception as e:
            logger.error("Unhandled exception: %s", e, exc_info=True)
            return PlainTextResponse(
                str(e) or INTERNAL_SERVER_ERROR_MESSAGE, status_code=500
            )


class CrossOriginMiddleware(BaseHTTPMiddleware):
    """Answer preflight requests and stamp CORS headers on every response."""

    def __init__(self, app: Any, config: CORSConfig) -> None:
        super().__init__(app)
        self.config = config

    def _rejects(self, origin: str | None) -> bool:
        """Only an echoing policy checks the origin against the allow-list."""
        if not self.config.echo_origin or "*" in self.config.allowed_origins:
            return False
        return origin not in self.config.allowed_origins

    def _allow_origin(self, origin: str | None) -> str:
        if self.config.echo_origin and origin:
            return origin
        return "*"

    def _apply(self, response: Response, request: Request, *, preflight: bool) -> None:
        origin = request.headers.get("origin")
        if self._rejects(origin):
            return
        response.headers["Access-Control-Allow-Origin"] = self._allow_origin(origin)
        response.headers["Access-Control-Allow-Methods"] = ", ".join(
            self.config.allow_methods
        )
        requested_headers = request.headers.get("access-control-request-headers")
        if preflight and self.config.echo_origin and requested_headers:
            response.headers["Access-Control-Allow-Headers"] = requested_headers
        else:
            response.headers["Access-Control-Allow-Headers"] = ", ".join(
                self.config.allow_headers
            )
        if preflight and self.config.max_age is not None:
            response.headers["Access-Control-Max-Age"] = str(self.config.max_age)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            if self._rejects(request.headers.get("origin")):
                return PlainTextResponse("CORS Forbidden", status_code=403)
            response = Response(status_code=204)
            self._apply(response, request, preflight=True)
            return response

        response = await call_next(request)
        self._apply(response, request, preflight=False)
        return response
