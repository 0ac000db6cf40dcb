from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from gemini_gateway.config import SafetySetting
from gemini_gateway.converters.content import ImageResolver
from gemini_gateway.converters.generation_config import transform_config
from gemini_gateway.converters.messages import transform_messages
from gemini_gateway.converters.tools import transform_tools


class RequestAssembler:
    """Builds a Gemini ``generateContent`` body from an OpenAI chat request.

    The safety settings are fixed per deployment and sent with every request,
    leaving moderation to the calling application.
    """

    def __init__(
        self, safety_settings: Sequence[SafetySetting], resolver: ImageResolver
    ) -> None:
        self.safety_settings = [
            setting.model_dump() for setting in safety_settings
        ]
        self.resolver = resolver

    async def assemble(self, request: Mapping[str, Any]) -> dict[str, Any]:
        body = await transform_messages(request.get("messages") or [], self.resolver)
        body["safetySettings"] = [dict(setting) for setting in self.safety_settings]
        body["generationConfig"] = transform_config(request)
        body.update(transform_tools(request))
        return body
