"""Runtime settings, read from ``API_PLAYGROUND_*`` environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="API_PLAYGROUND_", case_sensitive=False, extra="ignore")

    log_level: str = Field(default="WARNING")
    llm_model: str = Field(default="gpt-4o-mini")
    store_path: str = Field(default="~/.api-playground/contexts.json")

    max_endpoints: int = Field(default=200, ge=1)
    max_document_bytes: int = Field(default=2 * 1024 * 1024, ge=1024)
    fetch_timeout_sec: float = Field(default=20.0, gt=0)
    request_timeout_sec: float = Field(default=30.0, gt=0)
    max_injected_tokens: int = Field(default=2000, ge=1)

    cache_ttl_sec: float = Field(default=3600.0, gt=0)
    cache_max_size: int = Field(default=100, ge=1)


@lru_cache
def get_settings() -> Settings:
    return Settings()
