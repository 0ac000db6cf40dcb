"""
Host-based passthrough proxy.

Forwards any request unchanged to a target host chosen by header or by
configuration, through the same relay the gateway uses. No translation
happens here; the proxy only manages headers and provider keys.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from gemini_gateway import __version__
from gemini_gateway.config import AppConfig, CORSConfig
from gemini_gateway.constants import (
    CORS_MAX_AGE,
    HOP_BY_HOP_HEADERS,
    MASTER_KEY_HEADER,
    PROXY_VIA_HEADER,
    PROXY_VIA_VALUE,
    RELAY_TARGET_HEADER,
    TARGET_HOST_HEADER,
)
from gemini_gateway.exceptions import InvalidInputError, UpstreamFetchError
from gemini_gateway.middleware import CrossOriginMiddleware, ErrorBoundaryMiddleware
from gemini_gateway.relay import RelayClient, forwardable_headers
from gemini_gateway.security import MasterKeyMiddleware

logger = logging.getLogger(__name__)

CONFIGURATION_ERROR_MESSAGE = (
    "Configuration Error: Required environment variables are missing."
)
HEALTH_PATH = "/health"

_STRIPPED_REQUEST_HEADERS = frozenset(
    {MASTER_KEY_HEADER.lower(), TARGET_HOST_HEADER.lower(), "host", "content-length"}
)
PASSTHROUGH_CORS_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
PASSTHROUGH_METHODS = [*PASSTHROUGH_CORS_METHODS, "HEAD"]


def passthrough_cors_config(config: CORSConfig) -> CORSConfig:
    """Derive the proxy's CORS policy: echo origins, allow PATCH, cache preflight."""
    allow_headers = list(config.allow_headers)
    if TARGET_HOST_HEADER not in allow_headers:
        allow_headers.append(TARGET_HOST_HEADER)
    return config.model_copy(
        update={
            "allow_methods": list(PASSTHROUGH_CORS_METHODS),
            "allow_headers": allow_headers,
            "max_age": config.max_age or CORS_MAX_AGE,
            "echo_origin": True,
        }
    )


def outbound_headers(
    headers: Mapping[str, str], api_key: str | None
) -> dict[str, str]:
    """Copy inbound headers for the upstream, adding a bearer key when absent."""
    outbound = {
        name: value
        for name, value in headers.items()
        if name.lower() not in _STRIPPED_REQUEST_HEADERS
        and name.lower() not in HOP_BY_HOP_HEADERS
    }
    if api_key and not any(name.lower() == "authorization" for name in outbound):
        outbound["Authorization"] = f"Bearer {api_key}"
    return outbound


def response_headers(upstream: httpx.Response, target_host: str) -> dict[str, str]:
    headers = forwardable_headers(upstream)
    headers[PROXY_VIA_HEADER] = PROXY_VIA_VALUE
    headers[RELAY_TARGET_HEADER] = target_host
    return headers


class PassthroughProxy:
    """Resolves the target host of a request and relays it verbatim."""

    def __init__(self, relay: RelayClient, config: AppConfig) -> None:
        self.relay = relay
        self.config = config

    def target_host(self, request: Request) -> str:
        if request.url.path == HEALTH_PATH:
            return httpx.URL(self.config.relay.url or "").host
        host = (
            request.headers.get(TARGET_HOST_HEADER)
            or self.config.passthrough.default_upstream_host
        )
        if not host:
            raise InvalidInputError(
                f"Bad Request: no {TARGET_HOST_HEADER} header and no default upstream host configured."
            )
        return host

    async def handle(self, request: Request) -> Response:
        target_host = self.target_host(request)
        raw_path = request.url.path
        if request.url.query:
            raw_path = f"{raw_path}?{request.url.query}"

        headers = outbound_headers(
            dict(request.headers),
            self.config.passthrough.api_keys.get(target_host),
        )
        body = await request.body()
        try:
            upstream = await self.relay.forward(
                request.method,
                target_host,
                raw_path,
                headers=headers,
                content=body or None,
            )
        except UpstreamFetchError as e:
            return JSONResponse(
                {"error": "Proxy Error", "message": e.message}, status_code=502
            )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Passthrough %s %s -> %s answered %s",
                request.method,
                raw_path,
                target_host,
                upstream.status_code,
            )
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            headers=response_headers(upstream, target_host),
        )


def build_passthrough_app(
    config: AppConfig | None = None, *, client: httpx.AsyncClient | None = None
) -> FastAPI:
    """Build the passthrough proxy application."""
    if config is None:
        config = AppConfig.from_env()

    owns_client = client is None
    http_client = client or httpx.AsyncClient(timeout=config.proxy_timeout)
    proxy = PassthroughProxy(RelayClient(http_client, config.relay), config)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_client:
            await http_client.aclose()

    app = FastAPI(
        title="Gemini Gateway Passthrough",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.app_config = config
    app.state.http_client = http_client

    if not config.relay.is_configured:
        logger.error(
            "Passthrough proxy started without GCP_PROXY_URL or NGINX_INTERNAL_SECRET"
        )

        @app.api_route("/{path:path}", methods=PASSTHROUGH_METHODS)
        async def misconfigured(path: str) -> Response:
            return PlainTextResponse(CONFIGURATION_ERROR_MESSAGE, status_code=500)

        return app

    @app.api_route("/{path:path}", methods=PASSTHROUGH_METHODS)
    async def relay_request(request: Request, path: str) -> Response:
        return await proxy.handle(request)

    app.add_middleware(
        MasterKeyMiddleware, master_key=config.auth.master_api_key, required=False
    )
    app.add_middleware(ErrorBoundaryMiddleware)
    app.add_middleware(
        CrossOriginMiddleware, config=passthrough_cors_config(config.cors)
    )
    return app
