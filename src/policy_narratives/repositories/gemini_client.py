"""Direct Gemini upstream client.

Calls the Gemini ``generateContent`` REST endpoint with the API key held
by this process. Used in development and by the /api/generate endpoint,
which is the only place the key lives in production.

Requires:
    GEMINI_API_KEY set in the environment (or passed explicitly)
"""

import logging
import os
from typing import Any

import httpx

from policy_narratives.config import settings
from policy_narratives.entities import GenerationResult
from policy_narratives.errors import (
    ConfigurationMissing,
    UpstreamEnvelopeError,
    UpstreamTransportError,
)

logger = logging.getLogger(__name__)


def extract_gemini_text(payload: Any) -> str | None:
    """Pull the generated text out of a Gemini response envelope.

    Expected shape: ``{"candidates": [{"content": {"parts": [{"text": ...}]}}]}``.
    Text parts of the first candidate are concatenated and trimmed.

    Returns:
        The trimmed text, or None if the envelope holds none
    """
    if not isinstance(payload, dict):
        return None
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return None
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return None
    text = "".join(p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str))
    return text.strip() or None


class GeminiUpstreamClient:
    """Gemini implementation of the UpstreamClient protocol.

    This class satisfies the UpstreamClient protocol through structural
    typing - no explicit inheritance needed.

    The credential is resolved on every call, so configuring the key at
    runtime takes effect without rebuilding the client. A missing key
    short-circuits before any network I/O.

    Example:
        ```python
        client = GeminiUpstreamClient.create(max_output_tokens=200)
        result = await client.generate("Summarise Salem's groundwater outlook.")
        if result.ok:
            print(result.text)
        ```
    """

    def __init__(
        self,
        api_key: str | None = None,
        model_name: str | None = None,
        base_url: str | None = None,
        max_output_tokens: int | None = None,
        temperature: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Gemini client.

        Args:
            api_key: Fixed API key. If None, GEMINI_API_KEY is read on each call.
            model_name: Gemini model. Defaults to settings.gemini_model.
            base_url: API base URL. Defaults to settings.gemini_base_url.
            max_output_tokens: Output bound. Defaults to settings.dossier_max_output_tokens.
            temperature: Sampling temperature. Defaults to settings.temperature.
            timeout: Per-call timeout in seconds. Defaults to settings.upstream_timeout.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._api_key = api_key
        self._model_name = model_name or settings.gemini_model
        self._base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self._max_output_tokens = max_output_tokens or settings.dossier_max_output_tokens
        self._temperature = settings.temperature if temperature is None else temperature
        self._timeout = timeout or settings.upstream_timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def create(
        cls,
        max_output_tokens: int | None = None,
        api_key: str | None = None,
    ) -> "GeminiUpstreamClient":
        """Factory method to create GeminiUpstreamClient with defaults.

        Args:
            max_output_tokens: Output bound. If None, uses settings.
            api_key: Fixed API key. If None, read from the environment per call.

        Returns:
            Configured GeminiUpstreamClient
        """
        return cls(api_key=api_key, max_output_tokens=max_output_tokens)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    @property
    def model_name(self) -> str:
        return self._model_name

    @property
    def max_output_tokens(self) -> int:
        return self._max_output_tokens

    def _resolve_api_key(self) -> str | None:
        return self._api_key or os.getenv("GEMINI_API_KEY") or None

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "maxOutputTokens": self._max_output_tokens,
                "temperature": self._temperature,
            },
        }

    async def generate(self, prompt: str) -> GenerationResult:
        """Generate text for one prompt.

        Args:
            prompt: Non-empty prompt string

        Returns:
            GenerationResult with trimmed text, or one of ConfigurationMissing,
            UpstreamTransportError, UpstreamEnvelopeError
        """
        if not prompt or not prompt.strip():
            raise ValueError("prompt must be a non-empty string")

        api_key = self._resolve_api_key()
        if not api_key:
            logger.info("GEMINI_API_KEY not configured; skipping upstream call")
            return GenerationResult.failure(ConfigurationMissing("GEMINI_API_KEY is not set"))

        url = f"{self._base_url}/models/{self._model_name}:generateContent"

        try:
            response = await self.client.post(
                url,
                params={"key": api_key},
                json=self._build_payload(prompt),
            )
        except httpx.HTTPError as e:
            logger.warning("Gemini request failed: %s", e)
            return GenerationResult.failure(UpstreamTransportError(f"Gemini request failed: {e}"))

        if not response.is_success:
            logger.warning("Gemini returned HTTP %s", response.status_code)
            return GenerationResult.failure(
                UpstreamTransportError(
                    f"Gemini {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code,
                )
            )

        try:
            data = response.json()
        except ValueError as e:
            return GenerationResult.failure(UpstreamEnvelopeError(f"Gemini returned non-JSON body: {e}"))

        text = extract_gemini_text(data)
        if text is None:
            logger.warning("Gemini response had no extractable text")
            return GenerationResult.failure(UpstreamEnvelopeError("Empty response from Gemini"))

        return GenerationResult.success(text)

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None
