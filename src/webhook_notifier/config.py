from __future__ import annotations

import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


load_dotenv()


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    webhook_url: Optional[str] = Field(None, validation_alias="SLACK_WEBHOOK_URL")
    webhook_secret_name: Optional[str] = Field(None, validation_alias="SLACK_WEBHOOK_SECRET_NAME")
    secret_project_id: Optional[str] = Field(None, validation_alias="SECRET_PROJECT_ID")
    gcp_project: Optional[str] = Field(None, validation_alias="GCP_PROJECT")

    proxy_address: Optional[str] = Field(None, validation_alias="SLACK_PROXY_ADDRESS")
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")

    notify_enabled: bool = Field(True, validation_alias="NOTIFY_ENABLED")
    notify_level: str = Field("ERROR", validation_alias="NOTIFY_LEVEL")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")

    app_port: int = Field(8080, validation_alias="PORT")

    @field_validator("notify_level", "log_level", mode="before")
    @classmethod
    def parse_level(cls, value: str) -> str:
        level = str(value).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("proxy_address", mode="before")
    @classmethod
    def blank_proxy(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()


def get_settings() -> Settings:
    return Settings()
