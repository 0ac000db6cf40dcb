"""Ordered routing table for the gateway's public surface."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from gemini_gateway.exceptions import MethodNotAllowedError, NotFoundError


@dataclass(frozen=True)
class Route:
    """Matches a request whose path ends with ``suffix``."""

    suffix: str
    method: str
    endpoint: str


# Evaluated in order; the first suffix match decides
ROUTES: tuple[Route, ...] = (
    Route("/chat/completions", "POST", "chat_completions"),
    Route("/models", "GET", "list_models"),
    Route("/embeddings", "POST", "embeddings"),
)


def resolve_route(path: str, method: str, routes: Sequence[Route] = ROUTES) -> Route:
    """Return the route for *path*.

    Raises:
        MethodNotAllowedError: the path matched but the verb did not
        NotFoundError: no route matched
    """
    for route in routes:
        if path.endswith(route.suffix):
            if method.upper() != route.method:
                raise MethodNotAllowedError()
            return route
    raise NotFoundError()
