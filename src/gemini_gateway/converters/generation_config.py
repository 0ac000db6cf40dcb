from __future__ import annotations

from collections.abc import Mapping
from typing import Any

# OpenAI sampling/limit parameter -> Gemini generationConfig field
FIELDS_MAP = {
    "frequency_penalty": "frequencyPenalty",
    "max_tokens": "maxOutputTokens",
    "n": "candidateCount",
    "presence_penalty": "presencePenalty",
    "seed": "seed",
    "stop": "stopSequences",
    "temperature": "temperature",
    "top_k": "topK",
    "top_p": "topP",
}

JSON_MIME_TYPE = "application/json"


def transform_config(request: Mapping[str, Any]) -> dict[str, Any]:
    """Build a Gemini ``generationConfig`` from an OpenAI request.

    Parameters outside FIELDS_MAP are dropped.
    """
    config: dict[str, Any] = {}
    for key, value in request.items():
        target = FIELDS_MAP.get(key)
        if target is None or value is None:
            continue
        if target == "stopSequences" and isinstance(value, str):
            value = [value]
        config[target] = value

    response_format = request.get("response_format")
    if isinstance(response_format, Mapping) and response_format.get("type") == "json_object":
        config["responseMimeType"] = JSON_MIME_TYPE
    return config
