#!/usr/bin/env python3
"""
Test explicit configuration requirements.
"""

import pytest
import yaml

from gastronomia.config import CONFIG_PATH_ENV, Configuration
from gastronomia.llm.exceptions import ProviderError

TIMEOUTS = {
    "connect_timeout": 10.0,
    "read_timeout": 60.0,
    "write_timeout": 10.0,
    "pool_timeout": 10.0,
}


def base_config() -> dict:
    return {
        "llm": {
            "chat": "gateway",
            "recipe": "gateway",
            "providers": {
                "gateway": {
                    "base_url": "https://gateway.test/v1",
                    "model": "chat-model",
                    "api_key_env": "TEST_CONFIG_KEY",
                    "http_client": dict(TIMEOUTS),
                },
            },
        },
        "chat": {"max_history_messages": 5},
        "server": {"host": "127.0.0.1", "port": 9000},
    }


def write_config(tmp_path, data) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_shipped_config_loads():
    """The config.yaml bundled with the package is complete."""
    config = Configuration()

    chat_provider = config.get_provider_config("chat")
    recipe_provider = config.get_provider_config("recipe")
    assert chat_provider["name"] == "gateway"
    assert recipe_provider["name"] == "groq"
    assert config.get_http_client_config("recipe")["read_timeout"] > 0
    assert config.get_chat_config()["max_history_messages"] >= 1
    assert config.get_server_config()["port"] == 8000


def test_config_path_from_environment(tmp_path, monkeypatch):
    data = base_config()
    data["server"]["port"] = 9123
    monkeypatch.setenv(CONFIG_PATH_ENV, write_config(tmp_path, data))

    assert Configuration().get_server_config()["port"] == 9123


def test_config_must_be_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    with pytest.raises(ValueError, match="must be YAML dict"):
        Configuration(str(path))


def test_unknown_role(tmp_path):
    config = Configuration(write_config(tmp_path, base_config()))
    with pytest.raises(ValueError, match="Unknown handler role"):
        config.get_provider_config("images")


def test_provider_must_exist(tmp_path):
    data = base_config()
    data["llm"]["recipe"] = "missing"
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="not found in providers"):
        config.get_provider_config("recipe")


def test_provider_requires_model(tmp_path):
    data = base_config()
    del data["llm"]["providers"]["gateway"]["model"]
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="model must be explicitly configured"):
        config.get_provider_config("chat")


def test_http_client_requires_timeouts(tmp_path):
    data = base_config()
    del data["llm"]["providers"]["gateway"]["http_client"]["read_timeout"]
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="read_timeout must be explicitly configured"):
        config.get_http_client_config("chat")


def test_http_client_rejects_non_positive_timeout(tmp_path):
    data = base_config()
    data["llm"]["providers"]["gateway"]["http_client"]["pool_timeout"] = 0
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="must be positive"):
        config.get_http_client_config("chat")


def test_api_key_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_CONFIG_KEY", "secret")
    config = Configuration(write_config(tmp_path, base_config()))
    assert config.api_key_for("chat") == "secret"


def test_missing_api_key(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_CONFIG_KEY", raising=False)
    config = Configuration(write_config(tmp_path, base_config()))

    with pytest.raises(ProviderError, match="TEST_CONFIG_KEY is not configured") as exc_info:
        config.api_key_for("chat")
    assert exc_info.value.provider == "gateway"


def test_max_history_requires_explicit_config(tmp_path):
    data = base_config()
    del data["chat"]["max_history_messages"]
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="max_history_messages must be explicitly configured"):
        config.get_chat_config()


def test_max_history_must_be_positive(tmp_path):
    data = base_config()
    data["chat"]["max_history_messages"] = 0
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="at least 1"):
        config.get_chat_config()


def test_server_requires_port(tmp_path):
    data = base_config()
    del data["server"]["port"]
    config = Configuration(write_config(tmp_path, data))

    with pytest.raises(ValueError, match="server.port"):
        config.get_server_config()
