"""Configuration management for the Gastronom.IA backend."""

import os
from typing import Any

import yaml
from dotenv import load_dotenv

from gastronomia.llm.exceptions import ProviderError

CONFIG_PATH_ENV = "GASTRONOMIA_CONFIG"
HANDLER_ROLES = ("chat", "recipe")


class Configuration:
    """Manages configuration and environment variables for the backend."""

    def __init__(self, config_path: str | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys
        self._config = self._load_yaml_config(config_path)

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self, config_path: str | None = None) -> dict[str, Any]:
        """Load configuration from YAML file.

        The path is taken from the argument, then from GASTRONOMIA_CONFIG,
        then falls back to the config.yaml shipped next to this module.
        """
        config_path = (
            config_path
            or os.getenv(CONFIG_PATH_ENV)
            or os.path.join(os.path.dirname(__file__), "config.yaml")
        )
        with open(config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary.

        Returns:
            The complete configuration dictionary.
        """
        return self._config

    def get_provider_config(self, role: str) -> dict[str, Any]:
        """Get the provider configuration used by a handler.

        Args:
            role: Handler role, either "chat" or "recipe".

        Returns:
            Provider configuration dictionary with its ``name`` added.

        Raises:
            ValueError: If the role, provider or required fields are missing.
        """
        if role not in HANDLER_ROLES:
            raise ValueError(f"Unknown handler role '{role}'")

        llm_config = self._config.get("llm", {})
        provider_name = llm_config.get(role)
        if not provider_name:
            raise ValueError(
                f"llm.{role} must be explicitly configured in config.yaml"
            )

        providers = llm_config.get("providers", {})
        if provider_name not in providers:
            raise ValueError(
                f"Provider '{provider_name}' for llm.{role} not found in "
                "providers config"
            )

        provider = providers[provider_name]
        for key in ("base_url", "model", "api_key_env"):
            if not provider.get(key):
                raise ValueError(
                    f"llm.providers.{provider_name}.{key} must be explicitly "
                    "configured in config.yaml"
                )

        return {"name": provider_name, **provider}

    def api_key_for(self, role: str) -> str:
        """Get the API key for the provider used by a handler.

        Returns:
            The API key as a string.

        Raises:
            ProviderError: If the API key is not set in the environment.
        """
        provider = self.get_provider_config(role)
        env_key = provider["api_key_env"]

        api_key = os.getenv(env_key)
        if not api_key:
            raise ProviderError(
                f"{env_key} is not configured",
                provider=provider["name"],
                model=provider["model"],
            )

        return api_key

    def get_http_client_config(self, role: str) -> dict[str, Any]:
        """Get HTTP client timeouts for the provider used by a handler.

        Returns:
            HTTP client configuration dictionary with validated values.

        Raises:
            ValueError: If required HTTP client parameters are missing or invalid.
        """
        provider = self.get_provider_config(role)
        http_config = provider.get("http_client", {})

        required_keys = [
            "connect_timeout", "read_timeout", "write_timeout", "pool_timeout",
        ]
        for key in required_keys:
            if key not in http_config:
                raise ValueError(
                    f"http_client.{key} must be explicitly configured "
                    f"for provider '{provider['name']}' in config.yaml"
                )
            if http_config[key] <= 0:
                raise ValueError(f"http_client.{key} must be positive")

        return http_config

    def get_chat_config(self) -> dict[str, Any]:
        """Get chat client configuration from YAML.

        Returns:
            Chat configuration dictionary.

        Raises:
            ValueError: If max_history_messages is missing or invalid.
        """
        chat_config = self._config.get("chat", {})

        if "max_history_messages" not in chat_config:
            raise ValueError(
                "max_history_messages must be explicitly configured in "
                "config.yaml under chat"
            )

        max_history = chat_config["max_history_messages"]
        if not isinstance(max_history, int) or max_history < 1:
            raise ValueError("chat.max_history_messages must be at least 1")

        return chat_config

    def get_server_config(self) -> dict[str, Any]:
        """Get HTTP server configuration from YAML.

        Returns:
            Server configuration dictionary.

        Raises:
            ValueError: If host or port are not configured.
        """
        server_config = self._config.get("server", {})

        for key in ("host", "port"):
            if key not in server_config:
                raise ValueError(
                    f"server.{key} must be explicitly configured in config.yaml"
                )

        return server_config

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML.

        Returns:
            Logging configuration dictionary.
        """
        return self._config.get("logging", {})
