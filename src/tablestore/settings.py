"""
tablestore.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for the API and the store.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    All knobs are read from `TABLESTORE_*` environment variables.
    Defaults match a local single-process deployment.
    """

    model_config = SettingsConfigDict(env_prefix="TABLESTORE_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "tablestore"
    log_level: str = "INFO"
    # "console" is easier to read locally; "json" is what log shippers expect.
    log_format: Literal["json", "console"] = "json"

    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8090, ge=1, le=65535)

    # Persistence
    snapshot_path: Path = Path("db.json")
    # False keeps a mutation in memory even when saving it failed.
    rollback_on_persist_failure: bool = False

    @property
    def listen_address(self) -> str:
        return f"{self.api_host}:{self.api_port}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Tests construct `Settings(...)` directly instead of going through the cache.
