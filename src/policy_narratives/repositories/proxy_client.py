"""Proxy upstream client.

Posts prompts to this project's own ``/api/generate`` endpoint, which
holds the Gemini key server-side. Browsers and other untrusted callers
use this route so the key is never shipped to them.
"""

import logging
from typing import Any, Literal

import httpx

from policy_narratives.config import settings
from policy_narratives.entities import GenerationResult
from policy_narratives.errors import (
    ConfigurationMissing,
    UpstreamEnvelopeError,
    UpstreamTransportError,
)

logger = logging.getLogger(__name__)

Purpose = Literal["narrative", "dossier"]


def extract_proxy_text(payload: Any) -> str | None:
    """Pull text out of a proxy envelope (``{"text": ...}`` or legacy ``{"narrative": ...}``)."""
    if not isinstance(payload, dict):
        return None
    for field in ("text", "narrative"):
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class ProxyUpstreamClient:
    """Proxy implementation of the UpstreamClient protocol.

    The ``purpose`` tells the server which generation constants to use
    (narrative briefs are shorter than dossier sections); callers still
    cannot choose output length or temperature directly.

    Example:
        ```python
        client = ProxyUpstreamClient.create(purpose="narrative")
        result = await client.generate(prompt)
        ```
    """

    def __init__(
        self,
        url: str | None = None,
        purpose: Purpose = "dossier",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the proxy client.

        Args:
            url: Full URL of the generate endpoint. Defaults to settings.upstream_proxy_url.
            purpose: "narrative" or "dossier"
            timeout: Per-call timeout in seconds. Defaults to settings.upstream_timeout.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._url = url or settings.upstream_proxy_url
        self._purpose = purpose
        self._timeout = timeout or settings.upstream_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(cls, purpose: Purpose = "dossier", url: str | None = None) -> "ProxyUpstreamClient":
        """Factory method to create ProxyUpstreamClient with defaults."""
        return cls(url=url, purpose=purpose)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def generate(self, prompt: str) -> GenerationResult:
        """Generate text for one prompt through the proxy endpoint."""
        if not prompt or not prompt.strip():
            raise ValueError("prompt must be a non-empty string")

        try:
            response = await self.client.post(
                self._url,
                json={"prompt": prompt, "purpose": self._purpose},
            )
        except httpx.HTTPError as e:
            logger.warning("Proxy request failed: %s", e)
            return GenerationResult.failure(UpstreamTransportError(f"Proxy request failed: {e}"))

        if not response.is_success:
            logger.warning("Proxy returned HTTP %s", response.status_code)
            return GenerationResult.failure(
                UpstreamTransportError(f"API {response.status_code}", status_code=response.status_code)
            )

        try:
            data = response.json()
        except ValueError as e:
            return GenerationResult.failure(UpstreamEnvelopeError(f"Proxy returned non-JSON body: {e}"))

        if isinstance(data, dict) and data.get("source") == "no_key":
            return GenerationResult.failure(ConfigurationMissing(data.get("error") or "No API key on server"))

        text = extract_proxy_text(data)
        if text is None:
            detail = data.get("error") if isinstance(data, dict) else None
            return GenerationResult.failure(UpstreamEnvelopeError(detail or "Empty API response"))

        return GenerationResult.success(text)

    async def close(self) -> None:
        """Close the async HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
