"""
Message content conversion.

Turns one OpenAI message ``content`` value (a string or a list of typed parts)
into Gemini ``parts``. Image parts become ``inlineData`` blobs: data URIs are
split as-is, remote URLs are fetched through the relay and base64-encoded.
"""

from __future__ import annotations

import base64
import logging
import re
from collections.abc import Mapping
from typing import Any

from gemini_gateway.exceptions import InvalidInputError, UpstreamFetchError
from gemini_gateway.relay import RelayClient

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(
    r"^data:(?P<mimetype>.*?)(;base64)?,(?P<data>.*)$", re.DOTALL
)
DEFAULT_MIME_TYPE = "application/octet-stream"


class ImageResolver:
    """Resolves image references into Gemini inline-data parts."""

    def __init__(self, relay: RelayClient, max_bytes: int | None = None) -> None:
        self.relay = relay
        self.max_bytes = max_bytes

    async def resolve(self, url: str) -> dict[str, Any]:
        if url.startswith("data:"):
            mime_type, data = parse_data_uri(url)
        elif url.startswith(("http://", "https://")):
            mime_type, data = await self._fetch(url)
        else:
            raise InvalidInputError("Invalid image data: unsupported image URL")
        return {"inlineData": {"mimeType": mime_type, "data": data}}

    async def _fetch(self, url: str) -> tuple[str, str]:
        response = await self.relay.send(url)
        if not response.is_success:
            raise UpstreamFetchError(
                f"Image fetch failed: {response.status_code}",
                status_code=response.status_code,
            )
        body = response.content
        if self.max_bytes is not None and len(body) > self.max_bytes:
            raise InvalidInputError(
                f"Image exceeds the {self.max_bytes} byte limit",
                {"size": len(body)},
            )
        mime_type = response.headers.get("content-type") or DEFAULT_MIME_TYPE
        return mime_type, base64.b64encode(body).decode("ascii")


def parse_data_uri(url: str) -> tuple[str, str]:
    """Split ``data:<mimetype>[;base64],<payload>`` into (mimetype, payload).

    The payload is passed through untouched.
    """
    match = DATA_URI_PATTERN.match(url)
    if match is None:
        raise InvalidInputError("Invalid image data")
    return match.group("mimetype"), match.group("data")


def _image_url_of(part: Mapping[str, Any]) -> str:
    image_url = part.get("image_url")
    if isinstance(image_url, Mapping):
        image_url = image_url.get("url")
    if not isinstance(image_url, str):
        raise InvalidInputError("Invalid image data: image_url.url is missing")
    return image_url


async def transform_content(
    content: str | list[Any] | None, resolver: ImageResolver
) -> list[dict[str, Any]]:
    """Convert one message's content into Gemini parts.

    Part types other than ``text`` and ``image_url`` are skipped.
    """
    if isinstance(content, str):
        return [{"text": content}]
    if content is None:
        return []

    parts: list[dict[str, Any]] = []
    for part in content:
        if not isinstance(part, Mapping):
            continue
        part_type = part.get("type")
        if part_type == "text":
            parts.append({"text": part.get("text", "")})
        elif part_type == "image_url":
            parts.append(await resolver.resolve(_image_url_of(part)))
        elif logger.isEnabledFor(logging.DEBUG):
            logger.debug("Skipping unsupported content part type: %s", part_type)
    return parts
