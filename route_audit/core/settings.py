from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Performance logging (console)
    PERF_LOG_ENABLED: bool = True
    # Log slow operations (requests / matching passes) at WARNING when >= this threshold.
    PERF_LOG_SLOW_MS: int = 250
    # Internal (non-request) spans: matching, suggestions, analysis.
    PERF_LOG_INNER_ENABLED: bool = True
    # If true, logs all internal spans (can be noisy). If false, logs only slow spans.
    PERF_LOG_INNER_ALWAYS: bool = False

    # The prefix an HTTP client base URL already supplies (e.g. axios baseURL ".../api").
    API_PREFIX: str = "/api"

    # Path comparison
    # More than this many literal/literal segment mismatches means the two paths belong to
    # different route families (parameter-count-mismatch) rather than a single typo.
    PATH_FAMILY_MISMATCH_THRESHOLD: int = 2

    # Suggestions
    # Candidates must score strictly above this similarity.
    SUGGESTION_MIN_SIMILARITY: float = 0.7
    SUGGESTION_MAX_PER_CALL: int = 3
    # Paths whose segment counts differ by more than this are never "close".
    SIMILARITY_MAX_SEGMENT_DIFF: int = 2

    # CORS
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # API security (optional)
    # When enabled, every write under /api/ requires the `x-api-key` header.
    REQUIRE_API_KEY: bool = False
    API_KEY: str | None = None


settings = Settings()
