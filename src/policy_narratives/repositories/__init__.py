"""Repository layer for data access.

This layer abstracts external dependencies (Gemini, Redis, local files,
precomputed CSV data) behind protocol-based interfaces. This enables:
- Swapping the upstream route (direct vs. proxy) by configuration
- Swapping the durable medium (Redis vs. JSON file)
- Unit testing with fake implementations

The repositories are protocol-based (structural typing), not inheritance-based.
"""

from policy_narratives.protocols import ResultStore, UpstreamClient

from .district_catalog import DistrictCatalog
from .factory import create_result_store, create_upstream_client
from .file_store import FileResultStore
from .gemini_client import GeminiUpstreamClient, extract_gemini_text
from .proxy_client import ProxyUpstreamClient, extract_proxy_text
from .redis_store import RedisResultStore

__all__ = [
    "DistrictCatalog",
    "FileResultStore",
    "GeminiUpstreamClient",
    "ProxyUpstreamClient",
    "RedisResultStore",
    "ResultStore",
    "UpstreamClient",
    "create_result_store",
    "create_upstream_client",
    "extract_gemini_text",
    "extract_proxy_text",
]
