from __future__ import annotations

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="GOVGUARD_")

    app_name: str = "govguard"
    log_level: str = "INFO"

    # Reject malformed or unknown snapshot fields instead of trusting the caller.
    security_strict_validation: bool = True
    # Sandbox values used by the demo snapshot when no project store is configured.
    security_demo_cloud_provider: str = "aws"
    security_demo_region: str = "us-east-1"
    security_demo_instance_type: str = "t3.large"


@lru_cache
def get_settings() -> Settings:
    return Settings()
