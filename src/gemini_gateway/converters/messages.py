from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from gemini_gateway.converters.content import ImageResolver, transform_content
from gemini_gateway.exceptions import InvalidInputError

# OpenAI role -> Gemini role for turns kept in ``contents``
ROLE_MAP = {"user": "user", "assistant": "model"}


async def transform_messages(
    messages: Iterable[Mapping[str, Any]], resolver: ImageResolver
) -> dict[str, Any]:
    """Convert OpenAI messages into Gemini ``contents`` and ``system_instruction``.

    System messages are lifted out of the sequence; when several are present
    the last one wins.
    """
    contents: list[dict[str, Any]] = []
    system_instruction: dict[str, Any] | None = None

    for message in messages:
        role = message.get("role")
        if role == "system":
            system_instruction = {
                "parts": await transform_content(message.get("content"), resolver)
            }
            continue

        gemini_role = ROLE_MAP.get(role)
        if gemini_role is None:
            raise InvalidInputError(f"Unknown role: {role}")
        contents.append(
            {
                "role": gemini_role,
                "parts": await transform_content(message.get("content"), resolver),
            }
        )

    result: dict[str, Any] = {"contents": contents}
    if system_instruction is not None:
        result["system_instruction"] = system_instruction
    return result
