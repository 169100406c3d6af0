"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Theatrical Catalogue", alias="APP_NAME")
    server_host: str = Field(default="0.0.0.0", alias="HOST")
    server_port: int = Field(default=7000, alias="PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    tmdb_api_key: str | None = Field(default=None, alias="TMDB_API_KEY")
    tmdb_api_url: HttpUrl = Field(
        default="https://api.themoviedb.org/3", alias="TMDB_API_URL"
    )
    tmdb_image_url: HttpUrl = Field(
        default="https://image.tmdb.org/t/p", alias="TMDB_IMAGE_URL"
    )

    tmdb_list_timeout: float = Field(default=12.0, alias="TMDB_LIST_TIMEOUT", gt=0)
    tmdb_detail_timeout: float = Field(
        default=6.0, alias="TMDB_DETAIL_TIMEOUT", gt=0
    )
    tmdb_external_id_timeout: float = Field(
        default=8.0, alias="TMDB_EXTERNAL_ID_TIMEOUT", gt=0
    )
    tmdb_meta_timeout: float = Field(default=10.0, alias="TMDB_META_TIMEOUT", gt=0)
    lookup_concurrency: int = Field(
        default=8, alias="LOOKUP_CONCURRENCY", ge=1, le=64
    )

    cache_enabled: bool = Field(default=True, alias="CACHE_ENABLED")
    response_cache_seconds: int = Field(default=1_800, alias="CACHE_TTL", ge=1)
    cache_check_period: int = Field(
        default=300, alias="CACHE_CHECK_PERIOD", ge=1
    )
    cache_max_entries: int = Field(
        default=1_000, alias="CACHE_MAX_ENTRIES", ge=1, le=1_000_000
    )
    positive_cache_seconds: int = Field(
        default=86_400, alias="POSITIVE_CACHE_TTL", ge=1
    )
    negative_cache_seconds: int = Field(
        default=3_600, alias="NEGATIVE_CACHE_TTL", ge=1
    )
    page_size_cache_seconds: int = Field(
        default=86_400, alias="PAGE_SIZE_TTL", ge=1
    )
    meta_cache_seconds: int = Field(default=86_400, alias="META_CACHE_TTL", ge=1)

    default_page_size: int = Field(
        default=20, alias="DEFAULT_PAGE_SIZE", ge=1, le=1_000
    )
    aggregation_floor: int = Field(
        default=25, alias="AGGREGATION_FLOOR", ge=1, le=1_000
    )
    composite_page_length: int = Field(
        default=20, alias="COMPOSITE_PAGE_LENGTH", ge=1, le=1_000
    )

    classifier_language: str = Field(default="hi", alias="CLASSIFIER_LANGUAGE")
    classifier_region: str = Field(default="IN", alias="CLASSIFIER_REGION")
    classifier_fail_open: bool = Field(default=False, alias="CLASSIFIER_FAIL_OPEN")
    classify_search_results: bool = Field(
        default=True, alias="CLASSIFY_SEARCH_RESULTS"
    )

    release_date_utc_offset_minutes: int = Field(
        default=330,
        alias="RELEASE_DATE_UTC_OFFSET_MINUTES",
        ge=-12 * 60,
        le=14 * 60,
    )

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator("classifier_language", mode="before")
    @classmethod
    def _normalise_language(cls, value: object) -> object:
        """Language codes are ISO 639-1 and compared lower-case."""

        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("classifier_region", mode="before")
    @classmethod
    def _normalise_region(cls, value: object) -> object:
        """Territory codes are ISO 3166-1 and compared upper-case."""

        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: object) -> str:
        if value is None:
            return "INFO"
        level = str(value).strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("Unknown LOG_LEVEL configured")
        return level

    @property
    def poster_base_url(self) -> str:
        return f"{str(self.tmdb_image_url).rstrip('/')}/w500"

    @property
    def backdrop_base_url(self) -> str:
        return f"{str(self.tmdb_image_url).rstrip('/')}/original"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
