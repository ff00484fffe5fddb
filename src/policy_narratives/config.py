import os
from dataclasses import dataclass
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()

UPSTREAM_MODES = ("direct", "proxy")
CACHE_BACKENDS = ("redis", "file")


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Gemini
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    gemini_base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )

    # Upstream routing: "direct" calls Gemini with the key, "proxy" calls our own API
    upstream_mode: str = os.getenv("UPSTREAM_MODE", "direct")
    upstream_proxy_url: str = os.getenv("UPSTREAM_PROXY_URL", "http://localhost:8000/api/generate")
    upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "15"))

    # Generation constants
    narrative_max_output_tokens: int = int(os.getenv("NARRATIVE_MAX_OUTPUT_TOKENS", "150"))
    dossier_max_output_tokens: int = int(os.getenv("DOSSIER_MAX_OUTPUT_TOKENS", "200"))
    temperature: float = float(os.getenv("GENERATION_TEMPERATURE", "0.3"))

    # Rate limiting
    session_cap: int = int(os.getenv("SESSION_CAP", "10"))
    cooldown_seconds: float = float(os.getenv("COOLDOWN_SECONDS", "60"))
    # 4.5s between sections keeps a 4-section dossier under a 15 RPM free tier
    inter_call_delay: float = float(os.getenv("INTER_CALL_DELAY_SECONDS", "4.5"))

    # Result cache
    cache_backend: str = os.getenv("CACHE_BACKEND", "file")
    cache_file_path: str = os.getenv("CACHE_FILE_PATH", ".cache/narratives.json")
    cache_key_prefix: str = os.getenv("CACHE_KEY_PREFIX", "policy_narratives")

    # Redis
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")

    # Precomputed district data (CSV produced by the forecasting pipeline)
    district_data_path: str | None = os.getenv("DISTRICT_DATA_PATH")

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    api_reload: bool = os.getenv("API_RELOAD", "true").lower() == "true"

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.upstream_mode not in UPSTREAM_MODES:
            raise ValueError(f"UPSTREAM_MODE must be one of {UPSTREAM_MODES}, got {self.upstream_mode!r}")

        if self.cache_backend not in CACHE_BACKENDS:
            raise ValueError(f"CACHE_BACKEND must be one of {CACHE_BACKENDS}, got {self.cache_backend!r}")

        if self.session_cap < 0:
            raise ValueError("SESSION_CAP must be >= 0")

        if self.cooldown_seconds < 0 or self.inter_call_delay < 0:
            raise ValueError("COOLDOWN_SECONDS and INTER_CALL_DELAY_SECONDS must be >= 0")

        if not 0 <= self.temperature <= 2:
            raise ValueError("GENERATION_TEMPERATURE must be between 0 and 2")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client() -> redis.Redis:
    """Create a Redis client instance."""
    return redis.from_url(
        settings.redis_url,
        password=settings.redis_password,
        decode_responses=True,
    )
