"""Application configuration models."""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .models import ServiceType


class InstanceSeed(BaseModel):
    """Service instance declared through configuration."""

    id: str = Field(min_length=1, max_length=64)
    label: str = Field(min_length=1, max_length=120)
    service: ServiceType
    base_url: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    enabled: bool = True

    @field_validator("service", mode="before")
    @classmethod
    def _lower_service(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Arr Calendar", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(
        default="sqlite+aiosqlite:///./arrcalendar.db", alias="DATABASE_URL"
    )

    arr_request_timeout: float = Field(
        default=15.0, alias="ARR_REQUEST_TIMEOUT", gt=0, le=300
    )
    arr_max_retries: int = Field(default=2, alias="ARR_MAX_RETRIES", ge=0, le=10)
    arr_max_concurrency: int = Field(
        default=4, alias="ARR_MAX_CONCURRENCY", ge=1, le=64
    )

    service_instances: Annotated[tuple[InstanceSeed, ...], NoDecode] = Field(
        default=(), alias="SERVICE_INSTANCES"
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value

    @field_validator("service_instances", mode="before")
    @classmethod
    def _parse_service_instances(cls, value: object) -> object:
        """Accept a JSON document as well as already decoded lists."""

        if value is None:
            return ()
        if isinstance(value, str):
            if not value.strip():
                return ()
            try:
                return json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError("SERVICE_INSTANCES must be a JSON list") from exc
        return value

    @model_validator(mode="after")
    def _ensure_unique_instances(self) -> "Settings":
        seen: set[str] = set()
        for seed in self.service_instances:
            if seed.id in seen:
                raise ValueError(f"Duplicate service instance id: {seed.id}")
            seen.add(seed.id)
        return self

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
