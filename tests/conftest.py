from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from gemini_gateway.app import build_app
from gemini_gateway.config import AppConfig, AuthConfig, GeminiConfig, RelayConfig

from tests.helpers import GEMINI_KEY, MASTER_KEY, RELAY_SECRET, RELAY_URL


@pytest.fixture
def app_config() -> AppConfig:
    """Config with every secret set and the relay pointing at a mocked host."""
    return AppConfig(
        auth=AuthConfig(master_api_key=MASTER_KEY),
        relay=RelayConfig(url=RELAY_URL, secret=RELAY_SECRET),
        gemini=GeminiConfig(api_key=GEMINI_KEY),
    )


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-Master-Key": MASTER_KEY}


@pytest.fixture
def client(app_config: AppConfig) -> Iterator[TestClient]:
    with TestClient(build_app(app_config)) as test_client:
        yield test_client
