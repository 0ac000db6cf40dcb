from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from gemini_gateway.config import RelayConfig
from gemini_gateway.constants import (
    HOP_BY_HOP_HEADERS,
    RELAY_AUTH_HEADER,
    RELAY_TARGET_HEADER,
)
from gemini_gateway.exceptions import ConfigurationError, UpstreamFetchError

logger = logging.getLogger(__name__)

# Recomputed for the decoded body httpx hands back
BODY_FRAMING_HEADERS = frozenset({"content-length", "content-encoding"})


def forwardable_headers(response: httpx.Response) -> dict[str, str]:
    """Upstream response headers that can be returned to the caller as-is."""
    return {
        name: value
        for name, value in response.headers.items()
        if name.lower() not in HOP_BY_HOP_HEADERS
        and name.lower() not in BODY_FRAMING_HEADERS
    }


class RelayClient:
    """Sends outbound HTTP calls through the authenticated relay.

    The relay receives every call on its own address with the original path
    and query, and learns the real destination from the target-host header.
    The shared secret header proves the call comes from this gateway.
    """

    def __init__(self, client: httpx.AsyncClient, config: RelayConfig) -> None:
        self.client = client
        self.config = config

    def _require_config(self) -> tuple[str, str]:
        if not self.config.url or not self.config.secret:
            raise ConfigurationError(
                "Proxy configuration error: GCP_PROXY_URL or NGINX_INTERNAL_SECRET is not set."
            )
        return self.config.url.rstrip("/"), self.config.secret

    async def send(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        json: Any = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send a request addressed to *url* through the relay.

        Returns the raw upstream response whatever its status.
        """
        target = httpx.URL(url)
        return await self.forward(
            method,
            target.host,
            target.raw_path.decode("ascii"),
            headers=headers,
            json=json,
            content=content,
        )

    async def forward(
        self,
        method: str,
        target_host: str,
        raw_path: str,
        *,
        headers: Mapping[str, str] | None = None,
        json: Any = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send a request for *target_host* with the given path and query."""
        base_url, secret = self._require_config()
        outbound = httpx.Headers(headers)
        outbound[RELAY_TARGET_HEADER] = target_host
        outbound[RELAY_AUTH_HEADER] = secret

        relay_url = f"{base_url}{raw_path}"
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Relaying %s %s -> %s", method, raw_path, target_host)
        try:
            return await self.client.request(
                method, relay_url, headers=outbound, json=json, content=content
            )
        except httpx.RequestError as e:
            logger.error("Request error connecting to relay: %s", e, exc_info=True)
            raise UpstreamFetchError(
                f"Could not reach the relay ({e})", status_code=502
            ) from e
