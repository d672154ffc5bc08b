"""
HTTP client for OpenAI-compatible chat completion gateways.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from .exceptions import UpstreamError
from .models import ProviderType
from .streaming.chat import raise_for_upstream

logger = structlog.get_logger(__name__)


def build_timeout(http_config: dict[str, Any]) -> httpx.Timeout:
    """Build an httpx timeout from a validated ``http_client`` section."""
    return httpx.Timeout(
        connect=http_config["connect_timeout"],
        read=http_config["read_timeout"],
        write=http_config["write_timeout"],
        pool=http_config["pool_timeout"],
    )


class GatewayClient:
    """
    Thin client for one configured provider.

    Sends chat completion requests either as a single JSON reply or as a
    raw event stream that the caller relays or decodes.
    """

    def __init__(
        self,
        config: dict[str, Any],
        api_key: str,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self.api_key = api_key
        self.provider_type = self._detect_provider(config.get("base_url", ""))
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=build_timeout(config["http_client"])
        )

    def _detect_provider(self, base_url: str) -> ProviderType:
        """Detect provider type from base URL."""
        base_url_lower = base_url.lower()

        if "api.groq.com" in base_url_lower:
            return ProviderType.GROQ
        if "openrouter.ai" in base_url_lower:
            return ProviderType.OPENROUTER
        if "api.openai.com" in base_url_lower:
            return ProviderType.OPENAI
        return ProviderType.GATEWAY

    @property
    def model(self) -> str:
        return self.config["model"]

    @property
    def completions_url(self) -> str:
        return self.config["base_url"].rstrip("/") + "/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _body(
        self, messages: list[dict[str, str]], stream: bool, **params: Any
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"model": self.model, "messages": messages}
        if stream:
            body["stream"] = True
        body.update({k: v for k, v in params.items() if v is not None})
        return body

    async def _check(self, response: httpx.Response) -> None:
        try:
            await raise_for_upstream(response)
        except UpstreamError as e:
            e.provider = self.provider_type.value
            e.model = self.model
            logger.error(
                "Upstream request failed",
                provider=e.provider,
                model=e.model,
                status_code=e.status_code,
                body=response.text[:500],
            )
            raise

    async def complete(self, messages: list[dict[str, str]], **params: Any) -> str:
        """Return the assistant text of a non-streaming completion.

        Raises:
            UpstreamError: The provider answered with a non-2xx status.
        """
        response = await self._http.post(
            self.completions_url,
            json=self._body(messages, stream=False, **params),
            headers=self._headers(),
        )
        await self._check(response)

        data = response.json()
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    async def open_stream(
        self, messages: list[dict[str, str]], **params: Any
    ) -> httpx.Response:
        """Send a streaming completion request and return the open response.

        The caller owns the returned response and must ``aclose()`` it.
        On error the response is closed before the exception propagates.
        """
        request = self._http.build_request(
            "POST",
            self.completions_url,
            json=self._body(messages, stream=True, **params),
            headers=self._headers(),
        )
        response = await self._http.send(request, stream=True)
        try:
            await self._check(response)
        except Exception:
            await response.aclose()
            raise
        return response

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> GatewayClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
