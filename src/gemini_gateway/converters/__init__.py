"""Bidirectional translation between OpenAI and Gemini wire formats."""

from gemini_gateway.converters.content import ImageResolver, transform_content
from gemini_gateway.converters.generation_config import transform_config
from gemini_gateway.converters.messages import transform_messages
from gemini_gateway.converters.request import RequestAssembler
from gemini_gateway.converters.responses import (
    completions_response,
    embeddings_response,
    models_response,
)
from gemini_gateway.converters.tools import sanitize_schema, transform_tools

__all__ = [
    "ImageResolver",
    "RequestAssembler",
    "completions_response",
    "embeddings_response",
    "models_response",
    "sanitize_schema",
    "transform_config",
    "transform_content",
    "transform_messages",
    "transform_tools",
]
