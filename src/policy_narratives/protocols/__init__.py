"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Swapping the upstream route (direct Gemini call vs. our own proxy endpoint)
- Swapping the durable result medium (Redis vs. a local JSON file)
- Unit testing with fake implementations
"""

from .result_store import ResultStore
from .upstream_client import UpstreamClient

__all__ = [
    "ResultStore",
    "UpstreamClient",
]
