"""Upstream text-generation client protocol.

Implementations:
- GeminiUpstreamClient: calls Gemini directly with the API key
- ProxyUpstreamClient: posts the prompt to this project's /api/generate endpoint
"""

from typing import Protocol, runtime_checkable

from policy_narratives.entities import GenerationResult


@runtime_checkable
class UpstreamClient(Protocol):
    """Protocol for a single-prompt text generator.

    Output length and temperature are fixed when the client is built,
    never supplied per call. Implementations never raise for upstream
    failures and never retry; a failed call is reported once through
    the returned ``GenerationResult``.
    """

    async def generate(self, prompt: str) -> GenerationResult:
        """Generate text for one prompt.

        Args:
            prompt: Non-empty prompt string

        Returns:
            GenerationResult holding trimmed text or an UpstreamError
        """
        ...
