"""
Endpoint handlers for the gateway.

Routing by path and verb happens before a handler runs. A handler parses
the inbound body, calls the provider through the relay and converts the
answer. Non-2xx provider answers are passed back verbatim so callers see the
provider's own error detail.
"""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from gemini_gateway.config import GeminiConfig
from gemini_gateway.constants import (
    GEMINI_API_CLIENT,
    GEMINI_API_CLIENT_HEADER,
    GEMINI_API_KEY_HEADER,
    MODEL_NAME_PREFIX,
)
from gemini_gateway.converters import (
    RequestAssembler,
    completions_response,
    embeddings_response,
    models_response,
)
from gemini_gateway.converters.responses import strip_model_prefix
from gemini_gateway.exceptions import InvalidInputError
from gemini_gateway.models import ChatCompletionRequest, EmbeddingRequest
from gemini_gateway.relay import RelayClient, forwardable_headers

logger = logging.getLogger(__name__)

RequestModelT = TypeVar("RequestModelT", bound=BaseModel)


async def parse_body(request: Request, model: type[RequestModelT]) -> RequestModelT:
    """Parse and validate a JSON request body."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputError("Malformed JSON payload") from e
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError(
            "Request validation failed",
            {"errors": e.errors(include_url=False)},
        ) from e


def passthrough_response(response: httpx.Response) -> Response:
    """Return an upstream answer to the caller with its own status and headers."""
    return Response(
        content=response.content,
        status_code=response.status_code,
        headers=forwardable_headers(response),
    )


class GeminiEndpoints:
    """The three public operations: list-models, chat-completions, embeddings."""

    def __init__(
        self, relay: RelayClient, config: GeminiConfig, assembler: RequestAssembler
    ) -> None:
        self.relay = relay
        self.config = config
        self.assembler = assembler

    def _url(self, path: str) -> str:
        return f"{self.config.api_base_url}/{self.config.api_version}/{path}"

    def _headers(self, *, json_body: bool = False) -> dict[str, str]:
        headers = {GEMINI_API_CLIENT_HEADER: GEMINI_API_CLIENT}
        if self.config.api_key:
            headers[GEMINI_API_KEY_HEADER] = self.config.api_key
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _post(self, path: str, body: dict[str, Any]) -> httpx.Response:
        return await self.relay.send(
            self._url(path),
            method="POST",
            headers=self._headers(json_body=True),
            json=body,
        )

    async def list_models(self, request: Request) -> Response:
        response = await self.relay.send(self._url("models"), headers=self._headers())
        if not response.is_success:
            return passthrough_response(response)
        return JSONResponse(
            models_response(response.json()), status_code=response.status_code
        )

    async def chat_completions(self, request: Request) -> Response:
        chat_request = await parse_body(request, ChatCompletionRequest)
        model = strip_model_prefix(chat_request.model or self.config.default_chat_model)
        if chat_request.stream and logger.isEnabledFor(logging.INFO):
            logger.info("Streaming is not supported; answering with a single completion")

        body = await self.assembler.assemble(chat_request.to_payload())
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Gemini request for %s: %s", model, body)

        response = await self._post(f"models/{model}:generateContent", body)
        if not response.is_success:
            logger.warning(
                "Gemini generateContent returned %s for model %s",
                response.status_code,
                model,
            )
            return passthrough_response(response)
        return JSONResponse(
            completions_response(response.json(), model),
            status_code=response.status_code,
        )

    async def embeddings(self, request: Request) -> Response:
        embedding_request = await parse_body(request, EmbeddingRequest)
        model = strip_model_prefix(
            embedding_request.model or self.config.default_embeddings_model
        )

        sub_requests: list[dict[str, Any]] = []
        for text in embedding_request.inputs:
            sub_request: dict[str, Any] = {
                "model": f"{MODEL_NAME_PREFIX}{model}",
                "content": {"parts": [{"text": text}]},
            }
            if embedding_request.dimensions is not None:
                sub_request["outputDimensionality"] = embedding_request.dimensions
            sub_requests.append(sub_request)

        response = await self._post(
            f"models/{model}:batchEmbedContents", {"requests": sub_requests}
        )
        if not response.is_success:
            return passthrough_response(response)
        return JSONResponse(
            embeddings_response(response.json(), model),
            status_code=response.status_code,
        )
