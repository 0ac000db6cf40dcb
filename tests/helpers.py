from typing import Any

MASTER_KEY = "test-master-key"
RELAY_URL = "https://relay.internal"
RELAY_SECRET = "relay-secret"
GEMINI_KEY = "FAKE_KEY"
GEMINI_HOST = "generativelanguage.googleapis.com"

RELAY_HEADERS = {
    "X-Proxy-Target": GEMINI_HOST,
    "X-Worker-Auth": RELAY_SECRET,
}


def relay_url(path: str) -> str:
    """Where the relay receives a call addressed to *path* on the provider."""
    return f"{RELAY_URL}{path}"


def gemini_candidate(
    parts: list[dict[str, Any]], finish_reason: str = "STOP", index: int = 0
) -> dict[str, Any]:
    return {
        "content": {"parts": parts, "role": "model"},
        "finishReason": finish_reason,
        "index": index,
    }
