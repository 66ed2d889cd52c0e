"""
Configuration settings for dic.

Uses Pydantic Settings to load environment variables for the Google search
credentials, the pipeline knobs (concurrency, per-task timeout, key column),
the cache backends, and logging. CLI flags override these per run through
`Settings.model_copy(update=...)`.
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dic.domain.models import FailurePolicy

GOOGLE_SEARCH_ENDPOINT = "https://www.googleapis.com/customsearch/v1"


class Settings(BaseSettings):
    # Google Custom Search
    google_api_key: str = Field("", alias="GOOGLE_SPEECH_KEY")
    google_cx: str = Field("", alias="GOOGLE_SPEECH_CX")
    google_endpoint: str = Field(GOOGLE_SEARCH_ENDPOINT, alias="GOOGLE_SEARCH_ENDPOINT")

    # Pipeline
    concurrency: int = Field(10, alias="DIC_CONCURRENCY", ge=1)
    task_timeout: float = Field(5.0, alias="DIC_TASK_TIMEOUT", gt=0)
    key_column: int = Field(2, alias="DIC_KEY_COLUMN", ge=0)
    delimiter: str = Field(",", alias="DIC_DELIMITER")
    failure_policy: FailurePolicy = Field(FailurePolicy.SENTINEL, alias="DIC_FAILURE_POLICY")
    sentinel: str = Field("", alias="DIC_SENTINEL")

    # Caching
    redis_addr: str = Field("", alias="DIC_REDIS_ADDR")
    redis_db: int = Field(1, alias="DIC_REDIS_DB", ge=0)
    local_cache: bool = Field(False, alias="DIC_LOCAL_CACHE")
    local_cache_ttl: float = Field(300.0, alias="DIC_LOCAL_CACHE_TTL", gt=0)
    cache_namespace: str = Field("dic", alias="DIC_CACHE_NAMESPACE")

    # Application
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    json_logs: bool = Field(False, alias="LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("delimiter")
    @classmethod
    def _single_char_delimiter(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("delimiter must be a single character")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["GOOGLE_SEARCH_ENDPOINT", "Settings", "get_settings"]
