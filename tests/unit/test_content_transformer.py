import base64

import httpx
import pytest
import pytest_asyncio
from gemini_gateway.config import RelayConfig
from gemini_gateway.converters.content import (
    ImageResolver,
    parse_data_uri,
    transform_content,
)
from gemini_gateway.exceptions import InvalidInputError, UpstreamFetchError
from gemini_gateway.relay import RelayClient
from pytest_httpx import HTTPXMock

from tests.helpers import RELAY_SECRET, RELAY_URL

IMAGE_BYTES = b"\x89PNG\r\n\x1a\nfake-image"


@pytest_asyncio.fixture(name="resolver")
async def resolver_fixture():
    async with httpx.AsyncClient() as client:
        relay = RelayClient(client, RelayConfig(url=RELAY_URL, secret=RELAY_SECRET))
        yield ImageResolver(relay)


@pytest.mark.asyncio
async def test_string_content_becomes_single_text_part(resolver: ImageResolver):
    assert await transform_content("hello", resolver) == [{"text": "hello"}]


@pytest.mark.asyncio
async def test_null_content_has_no_parts(resolver: ImageResolver):
    assert await transform_content(None, resolver) == []


@pytest.mark.asyncio
async def test_data_uri_converts_to_inline_data(resolver: ImageResolver):
    parts = await transform_content(
        [
            {"type": "text", "text": "Describe this"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,aGVsbG8="}},
        ],
        resolver,
    )

    assert parts == [
        {"text": "Describe this"},
        {"inlineData": {"mimeType": "image/png", "data": "aGVsbG8="}},
    ]


@pytest.mark.asyncio
async def test_image_url_may_be_a_plain_string(resolver: ImageResolver):
    parts = await transform_content(
        [{"type": "image_url", "image_url": "data:image/jpeg;base64,AAAA"}], resolver
    )
    assert parts == [{"inlineData": {"mimeType": "image/jpeg", "data": "AAAA"}}]


@pytest.mark.asyncio
async def test_unknown_part_types_are_skipped(resolver: ImageResolver):
    parts = await transform_content(
        [
            {"type": "input_audio", "input_audio": {"data": "...", "format": "wav"}},
            {"type": "text", "text": "kept"},
        ],
        resolver,
    )
    assert parts == [{"text": "kept"}]


@pytest.mark.asyncio
async def test_remote_image_is_fetched_through_relay(
    resolver: ImageResolver, httpx_mock: HTTPXMock
):
    httpx_mock.add_response(
        url=f"{RELAY_URL}/images/cat.png?size=large",
        method="GET",
        content=IMAGE_BYTES,
        headers={"Content-Type": "image/png"},
        match_headers={"X-Proxy-Target": "img.example.com", "X-Worker-Auth": RELAY_SECRET},
    )

    parts = await transform_content(
        [
            {
                "type": "image_url",
                "image_url": {"url": "https://img.example.com/images/cat.png?size=large"},
            }
        ],
        resolver,
    )

    assert parts == [
        {
            "inlineData": {
                "mimeType": "image/png",
                "data": base64.b64encode(IMAGE_BYTES).decode("ascii"),
            }
        }
    ]


@pytest.mark.asyncio
async def test_remote_image_without_content_type_defaults_to_octet_stream(
    resolver: ImageResolver, httpx_mock: HTTPXMock
):
    httpx_mock.add_response(url=f"{RELAY_URL}/blob", content=b"abc")

    result = await resolver.resolve("https://img.example.com/blob")

    assert result["inlineData"]["mimeType"] == "application/octet-stream"
    assert result["inlineData"]["data"] == "YWJj"


@pytest.mark.asyncio
async def test_failed_image_fetch_raises_upstream_fetch_error(
    resolver: ImageResolver, httpx_mock: HTTPXMock
):
    httpx_mock.add_response(url=f"{RELAY_URL}/missing.png", status_code=404)

    with pytest.raises(UpstreamFetchError) as exc_info:
        await resolver.resolve("https://img.example.com/missing.png")

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_remote_image_over_the_cap_is_rejected(httpx_mock: HTTPXMock):
    httpx_mock.add_response(url=f"{RELAY_URL}/big.png", content=b"x" * 11)

    async with httpx.AsyncClient() as client:
        relay = RelayClient(client, RelayConfig(url=RELAY_URL, secret=RELAY_SECRET))
        resolver = ImageResolver(relay, max_bytes=10)
        with pytest.raises(InvalidInputError) as exc_info:
            await resolver.resolve("https://img.example.com/big.png")

    assert exc_info.value.status_code == 400
    assert exc_info.value.details == {"size": 11}


@pytest.mark.asyncio
async def test_malformed_data_uri_fails_before_any_outbound_call(
    resolver: ImageResolver, httpx_mock: HTTPXMock
):
    with pytest.raises(InvalidInputError) as exc_info:
        await transform_content(
            [{"type": "image_url", "image_url": {"url": "data:image/png;base64"}}],
            resolver,
        )

    assert exc_info.value.status_code == 400
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_unsupported_url_scheme_is_rejected(
    resolver: ImageResolver, httpx_mock: HTTPXMock
):
    with pytest.raises(InvalidInputError):
        await resolver.resolve("ftp://img.example.com/cat.png")
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_missing_image_url_is_rejected(resolver: ImageResolver):
    with pytest.raises(InvalidInputError):
        await transform_content([{"type": "image_url", "image_url": {}}], resolver)


def test_parse_data_uri_passes_payload_through():
    assert parse_data_uri("data:text/plain,not-base64") == ("text/plain", "not-base64")
