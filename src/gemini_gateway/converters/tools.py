"""
Tool declaration conversion.

OpenAI function tools become one Gemini ``function_declarations`` block.
JSON-Schema keywords Gemini rejects are stripped at every depth, and the
``use_grounding`` flag adds the built-in search tool.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from gemini_gateway.exceptions import InvalidInputError

DISALLOWED_SCHEMA_KEYS = frozenset({"$schema", "additionalProperties", "strict"})

GROUNDING_FLAG = "use_grounding"
GOOGLE_SEARCH_TOOL = "googleSearch"

TOOL_CHOICE_MODES = {"auto": "AUTO", "none": "NONE", "required": "ANY"}


def sanitize_schema(node: Any) -> Any:
    """Return a copy of *node* without the disallowed keys at any depth."""
    if isinstance(node, Mapping):
        return {
            key: sanitize_schema(value)
            for key, value in node.items()
            if key not in DISALLOWED_SCHEMA_KEYS
        }
    if isinstance(node, list | tuple):
        return [sanitize_schema(item) for item in node]
    return node


def _function_declarations(tools: Sequence[Any]) -> list[dict[str, Any]]:
    declarations: list[dict[str, Any]] = []
    for tool in tools:
        if not isinstance(tool, Mapping) or tool.get("type") != "function":
            continue
        function = tool.get("function")
        if isinstance(function, Mapping):
            declarations.append(sanitize_schema(function))
    return declarations


def transform_tool_choice(
    tool_choice: Any, declared_names: Sequence[str]
) -> dict[str, Any] | None:
    """Map an OpenAI ``tool_choice`` onto a Gemini ``tool_config``.

    Returns None when there is nothing to constrain.
    """
    if tool_choice is None or not declared_names:
        return None

    allowed_names: list[str] | None = None
    if isinstance(tool_choice, str) and tool_choice in TOOL_CHOICE_MODES:
        mode = TOOL_CHOICE_MODES[tool_choice]
    elif isinstance(tool_choice, Mapping) and tool_choice.get("type") == "function":
        function = tool_choice.get("function")
        name = function.get("name") if isinstance(function, Mapping) else None
        if not isinstance(name, str) or not name:
            raise InvalidInputError("Function tool_choice requires a function name")
        mode = "ANY"
        allowed_names = [name]
    else:
        raise InvalidInputError(f"Invalid tool_choice: {tool_choice!r}")

    calling_config: dict[str, Any] = {"mode": mode}
    if allowed_names:
        calling_config["allowedFunctionNames"] = allowed_names
    return {"functionCallingConfig": calling_config}


def transform_tools(request: Mapping[str, Any]) -> dict[str, Any]:
    """Build the ``tools`` and ``tool_config`` fields of a Gemini request.

    Keys are omitted entirely when the request declares nothing; the
    request itself is left untouched.
    """
    blocks: list[dict[str, Any]] = []
    declarations = _function_declarations(request.get("tools") or [])
    if declarations:
        blocks.append({"function_declarations": declarations})

    if request.get(GROUNDING_FLAG) is True:
        blocks.append({GOOGLE_SEARCH_TOOL: {}})

    result: dict[str, Any] = {}
    if blocks:
        result["tools"] = blocks

    tool_config = transform_tool_choice(
        request.get("tool_choice"),
        [d["name"] for d in declarations if isinstance(d.get("name"), str)],
    )
    if tool_config is not None:
        result["tool_config"] = tool_config
    return result
