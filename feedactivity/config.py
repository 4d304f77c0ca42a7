from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from ``FEEDACTIVITY_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="FEEDACTIVITY_")

    log_level: str = "info"
    log_json: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
