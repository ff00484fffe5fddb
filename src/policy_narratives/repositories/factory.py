"""Configuration-driven construction of repositories.

Business logic never branches on the environment; the upstream route
and the durable medium are chosen here, once, at construction time.
"""

from policy_narratives.config import Settings, settings as default_settings
from policy_narratives.protocols import ResultStore, UpstreamClient

from .file_store import FileResultStore
from .gemini_client import GeminiUpstreamClient
from .proxy_client import Purpose, ProxyUpstreamClient
from .redis_store import RedisResultStore


def create_upstream_client(purpose: Purpose, settings: Settings | None = None) -> UpstreamClient:
    """Build the upstream client for narratives or dossier sections.

    Args:
        purpose: "narrative" (short brief) or "dossier" (one section)
        settings: Settings to read. Defaults to the global settings.

    Returns:
        GeminiUpstreamClient in "direct" mode, ProxyUpstreamClient in "proxy" mode
    """
    settings = settings or default_settings
    if settings.upstream_mode == "proxy":
        return ProxyUpstreamClient(
            url=settings.upstream_proxy_url,
            purpose=purpose,
            timeout=settings.upstream_timeout,
        )

    max_tokens = (
        settings.narrative_max_output_tokens if purpose == "narrative" else settings.dossier_max_output_tokens
    )
    return GeminiUpstreamClient(
        model_name=settings.gemini_model,
        base_url=settings.gemini_base_url,
        max_output_tokens=max_tokens,
        temperature=settings.temperature,
        timeout=settings.upstream_timeout,
    )


def create_result_store(settings: Settings | None = None) -> ResultStore:
    """Build the durable result store selected by CACHE_BACKEND."""
    settings = settings or default_settings
    if settings.cache_backend == "redis":
        return RedisResultStore.create(key_prefix=settings.cache_key_prefix)
    return FileResultStore.create(path=settings.cache_file_path)
