"""
Response conversion from Gemini back to the OpenAI wire shape.

Covers chat completions (candidates -> choices, usageMetadata -> usage),
the model list and batch embeddings.
"""

from __future__ import annotations

import json
import secrets
import string
import time
from collections.abc import Mapping, Sequence
from typing import Any

from gemini_gateway.constants import MODEL_NAME_PREFIX, MODEL_OWNER

ID_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
ID_LENGTH = 29

FINISH_REASON_MAP = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
}

# Gemini usageMetadata field -> OpenAI usage field
USAGE_FIELDS_MAP = {
    "promptTokenCount": "prompt_tokens",
    "candidatesTokenCount": "completion_tokens",
    "totalTokenCount": "total_tokens",
}


def generate_id(length: int = ID_LENGTH) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def strip_model_prefix(name: str) -> str:
    if name.startswith(MODEL_NAME_PREFIX):
        return name[len(MODEL_NAME_PREFIX) :]
    return name


def map_finish_reason(finish_reason: str | None) -> str | None:
    if finish_reason is None:
        return None
    return FINISH_REASON_MAP.get(finish_reason, finish_reason.lower())


def _tool_call(function_call: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "id": f"call_{generate_id()}",
        "type": "function",
        "function": {
            "name": function_call.get("name"),
            "arguments": json.dumps(function_call.get("args") or {}, ensure_ascii=False),
        },
    }


def transform_candidate(candidate: Mapping[str, Any]) -> dict[str, Any]:
    """Convert one Gemini candidate into an OpenAI choice.

    Any function call in the candidate forces ``finish_reason`` to
    ``tool_calls``.
    """
    message: dict[str, Any] = {"role": "assistant", "content": None}
    texts: list[str] = []
    tool_calls: list[dict[str, Any]] = []

    content = candidate.get("content") or {}
    for part in content.get("parts") or []:
        if part.get("thought") is True:
            continue
        if part.get("text"):
            texts.append(part["text"])
        if part.get("functionCall"):
            tool_calls.append(_tool_call(part["functionCall"]))

    if texts:
        message["content"] = "".join(texts)
    if tool_calls:
        message["tool_calls"] = tool_calls

    return {
        "index": candidate.get("index") or 0,
        "message": message,
        "finish_reason": (
            "tool_calls"
            if tool_calls
            else map_finish_reason(candidate.get("finishReason"))
        ),
    }


def transform_usage(usage_metadata: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Rename usage fields; absent metadata stays absent."""
    if not usage_metadata:
        return None
    return {
        target: usage_metadata[source]
        for source, target in USAGE_FIELDS_MAP.items()
        if source in usage_metadata
    }


def completions_response(
    data: Mapping[str, Any], model: str, *, created: int | None = None
) -> dict[str, Any]:
    response: dict[str, Any] = {
        "id": f"chatcmpl-{generate_id()}",
        "choices": [transform_candidate(c) for c in data.get("candidates") or []],
        "created": int(time.time()) if created is None else created,
        "model": model,
        "object": "chat.completion",
    }
    usage = transform_usage(data.get("usageMetadata"))
    if usage is not None:
        response["usage"] = usage
    return response


def models_response(data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "object": "list",
        "data": [
            {
                "id": strip_model_prefix(model.get("name", "")),
                "object": "model",
                "created": 0,
                "owned_by": MODEL_OWNER,
            }
            for model in data.get("models") or []
        ],
    }


def embeddings_response(data: Mapping[str, Any], model: str) -> dict[str, Any]:
    """Convert a batchEmbedContents answer; one vector per input, in input order.

    Gemini reports no token usage for embeddings, so usage is always zero.
    """
    embeddings: Sequence[Mapping[str, Any]] = data.get("embeddings") or []
    return {
        "object": "list",
        "data": [
            {"object": "embedding", "index": index, "embedding": embedding.get("values")}
            for index, embedding in enumerate(embeddings)
        ],
        "model": model,
        "usage": {"prompt_tokens": 0, "total_tokens": 0},
    }
