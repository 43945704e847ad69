"""Configuration for the operator host."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", env_file=".env", case_sensitive=False, extra="ignore")

    service_name: str = Field(default="operator-host")
    service_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    operators_dir: str = Field(default="operators")
    docs_server_url: Optional[str] = Field(default=None)
    cors_origins: str = Field(default="*")

    auth_enabled: bool = Field(default=False)
    auth_base_url: str = Field(default="https://api.example.com")
    auth_timeout_seconds: float = Field(default=10)
    auth_cache_seconds: int = Field(default=300)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    def cors_origin_list(self) -> List[str]:
        origins = [item.strip() for item in self.cors_origins.split(",") if item.strip()]
        return origins or ["*"]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
