"""Master-key gate for inbound requests."""

from __future__ import annotations

import hmac
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from gemini_gateway.constants import MASTER_KEY_HEADER
from gemini_gateway.exceptions import UnauthorizedError
from gemini_gateway.logging_utils import get_logger
from gemini_gateway.middleware import error_response

logger = get_logger(__name__)


class MasterKeyMiddleware(BaseHTTPMiddleware):
    """
    Middleware for shared master-key authentication.

    Checks the master-key header before any routing happens. With
    ``required`` an unset master key rejects everything; without it an unset
    key disables the gate.
    """

    def __init__(
        self,
        app: Any,
        master_key: str | None,
        *,
        header_name: str = MASTER_KEY_HEADER,
        required: bool = True,
    ) -> None:
        super().__init__(app)
        self.master_key = master_key
        self.header_name = header_name
        self.required = required

    def _is_authorized(self, presented: str | None) -> bool:
        if not self.master_key:
            return not self.required
        if presented is None:
            return False
        return hmac.compare_digest(presented.encode(), self.master_key.encode())

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Preflight never carries custom auth headers
        if request.method == "OPTIONS":
            return await call_next(request)

        if not self._is_authorized(request.headers.get(self.header_name)):
            logger.warning(
                "auth_fail",
                method=request.method,
                path=request.url.path,
                client=request.client.host if request.client else "unknown",
            )
            return error_response(UnauthorizedError())

        logger.debug("auth_success", path=request.url.path)
        return await call_next(request)
