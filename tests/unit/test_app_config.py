from pathlib import Path

import pytest
import yaml
from gemini_gateway.config import AppConfig, LogLevel, RelayConfig, load_config
from pydantic import ValidationError


def test_defaults():
    config = AppConfig()

    assert config.host == "0.0.0.0"
    assert config.port == 8000
    assert config.auth.master_api_key is None
    assert not config.relay.is_configured
    assert config.gemini.api_base_url == "https://generativelanguage.googleapis.com"
    assert config.gemini.default_chat_model == "gemini-1.5-flash-latest"
    assert config.gemini.default_embeddings_model == "text-embedding-004"
    assert len(config.gemini.safety_settings) == 4
    assert config.cors.allowed_origins == ["*"]
    assert config.logging.level == LogLevel.INFO


def test_from_env_reads_deployment_variables():
    config = AppConfig.from_env(
        environ={
            "APP_HOST": "127.0.0.1",
            "APP_PORT": "9000",
            "MASTER_API_KEY": "master",
            "GCP_PROXY_URL": "https://relay.example.com",
            "NGINX_INTERNAL_SECRET": "shh",
            "GEMINI_API_KEY": "gemini-key",
            "DEFAULT_CHAT_MODEL": "gemini-2.0-flash",
            "MAX_IMAGE_BYTES": "1024",
            "LOG_LEVEL": "debug",
        }
    )

    assert config.host == "127.0.0.1"
    assert config.port == 9000
    assert config.auth.master_api_key == "master"
    assert config.relay.url == "https://relay.example.com"
    assert config.relay.secret == "shh"
    assert config.relay.is_configured
    assert config.gemini.api_key == "gemini-key"
    assert config.gemini.default_chat_model == "gemini-2.0-flash"
    assert config.gemini.max_image_bytes == 1024
    assert config.logging.level == LogLevel.DEBUG


def test_google_api_key_takes_precedence():
    config = AppConfig.from_env(
        environ={"GEMINI_API_KEY": "gemini", "GOOGLE_API_KEY": "google"}
    )
    assert config.gemini.api_key == "google"


def test_invalid_port_falls_back_to_default():
    assert AppConfig.from_env(environ={"APP_PORT": "not-a-port"}).port == 8000


def test_empty_variables_are_ignored():
    config = AppConfig.from_env(environ={"MASTER_API_KEY": ""})
    assert config.auth.master_api_key is None


def test_passthrough_keys_are_indexed_by_host():
    config = AppConfig.from_env(
        environ={"OPENAI_API_KEY": "sk-openai", "GEMINI_API_KEY": "g-key"}
    )
    assert config.passthrough.api_keys == {
        "api.openai.com": "sk-openai",
        "generativelanguage.googleapis.com": "g-key",
    }


def test_secrets_lists_every_configured_value():
    config = AppConfig.from_env(
        environ={
            "MASTER_API_KEY": "master",
            "NGINX_INTERNAL_SECRET": "shh",
            "GOOGLE_API_KEY": "google",
            "OPENAI_API_KEY": "sk-openai",
        }
    )
    assert sorted(config.secrets()) == ["google", "master", "shh", "sk-openai"]


def test_relay_url_must_be_http():
    with pytest.raises(ValidationError):
        RelayConfig(url="relay.example.com")


def test_unknown_keys_are_rejected():
    with pytest.raises(ValidationError):
        AppConfig.model_validate({"relay": {"address": "https://relay"}})


def test_base_url_trailing_slash_is_stripped():
    config = AppConfig.model_validate(
        {"gemini": {"api_base_url": "https://gemini.example.com/"}}
    )
    assert config.gemini.api_base_url == "https://gemini.example.com"


def test_load_config_merges_yaml_and_environment(tmp_path: Path):
    path = tmp_path / "gateway.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "port": 7000,
                "relay": {"url": "https://relay.from-file", "secret": "file-secret"},
                "cors": {"allowed_origins": ["https://app.example.com"]},
            }
        ),
        encoding="utf-8",
    )

    config = load_config(path, environ={"NGINX_INTERNAL_SECRET": "env-secret"})

    assert config.port == 7000
    assert config.relay.url == "https://relay.from-file"
    assert config.relay.secret == "env-secret"
    assert config.cors.allowed_origins == ["https://app.example.com"]


def test_load_config_with_missing_file_uses_environment(tmp_path: Path):
    config = load_config(tmp_path / "absent.yaml", environ={"APP_PORT": "8123"})
    assert config.port == 8123


def test_load_config_rejects_other_formats(tmp_path: Path):
    path = tmp_path / "gateway.json"
    path.write_text("{}", encoding="utf-8")

    with pytest.raises(ValueError, match="Unsupported configuration file format"):
        load_config(path, environ={})


def test_load_config_rejects_non_mapping(tmp_path: Path):
    path = tmp_path / "gateway.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_config(path, environ={})
