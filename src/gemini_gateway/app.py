"""Application factory for the OpenAI-compatible gateway."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from starlette.responses import Response

from gemini_gateway import __version__
from gemini_gateway.config import AppConfig
from gemini_gateway.converters import ImageResolver, RequestAssembler
from gemini_gateway.handlers import GeminiEndpoints
from gemini_gateway.logging_utils import get_logger
from gemini_gateway.middleware import CrossOriginMiddleware, ErrorBoundaryMiddleware
from gemini_gateway.relay import RelayClient
from gemini_gateway.routing import ROUTES, resolve_route
from gemini_gateway.security import MasterKeyMiddleware

logger = logging.getLogger(__name__)
access_logger = get_logger("gemini_gateway.access")

DISPATCH_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"]


def build_endpoints(config: AppConfig, client: httpx.AsyncClient) -> GeminiEndpoints:
    """Wire the relay, the request assembler and the endpoint handlers."""
    relay = RelayClient(client, config.relay)
    resolver = ImageResolver(relay, max_bytes=config.gemini.max_image_bytes)
    assembler = RequestAssembler(config.gemini.safety_settings, resolver)
    return GeminiEndpoints(relay, config.gemini, assembler)


def build_app(
    config: AppConfig | None = None, *, client: httpx.AsyncClient | None = None
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        config: Application configuration, defaults to loading from environment
        client: Optional shared HTTP client; when omitted the app creates one
            and closes it on shutdown

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = AppConfig.from_env()

    owns_client = client is None
    http_client = client or httpx.AsyncClient(timeout=config.proxy_timeout)
    endpoints = build_endpoints(config, http_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if logger.isEnabledFor(logging.INFO):
            logger.info("Gateway startup complete")
        yield
        if owns_client:
            await http_client.aclose()
        if logger.isEnabledFor(logging.INFO):
            logger.info("Gateway shut down")

    app = FastAPI(
        title="Gemini Gateway",
        description="OpenAI-compatible gateway for the Gemini API",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.app_config = config
    app.state.http_client = http_client
    app.state.endpoints = endpoints

    @app.api_route("/{path:path}", methods=DISPATCH_METHODS)
    async def dispatch(request: Request, path: str) -> Response:
        access_logger.info(
            "request_in", method=request.method, path=request.url.path
        )
        route = resolve_route(request.url.path, request.method, ROUTES)
        handler = getattr(endpoints, route.endpoint)
        return await handler(request)

    # Added innermost first: the cross-origin layer wraps everything,
    # so error responses and auth failures carry CORS headers too
    app.add_middleware(
        MasterKeyMiddleware, master_key=config.auth.master_api_key, required=True
    )
    app.add_middleware(ErrorBoundaryMiddleware)
    app.add_middleware(CrossOriginMiddleware, config=config.cors)

    if not config.auth.master_api_key:
        logger.warning("MASTER_API_KEY is not set; every request will be rejected")
    if not config.relay.is_configured:
        logger.warning(
            "Relay is not configured; upstream calls will fail with a configuration error"
        )
    return app
