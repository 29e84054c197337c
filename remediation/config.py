"""
Configuration settings for the catalog remediation jobs.

Uses Pydantic Settings to load environment variables for database connections,
logging, the fixed generating principal, resolver thresholds, and the external
collaborator endpoints used while repairing records.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("character_catalog", alias="DB_NAME")
    db_statement_timeout_ms: int = Field(30_000, alias="DB_STATEMENT_TIMEOUT_MS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Catalog identities
    bot_user_id: str = Field("00000000-0000-0000-0000-000000000001", alias="BOT_USER_ID")
    placeholder_first_name: str = Field("Character", alias="PLACEHOLDER_FIRST_NAME")
    unknown_species_id: str = Field(
        "b09b64de-bc83-4c70-9008-0e4a6b43fa48", alias="UNKNOWN_SPECIES_ID"
    )

    # Correction jobs
    correction_enabled: bool = Field(True, alias="CORRECTION_ENABLED")
    correction_data_daily_limit: int = Field(10, alias="CORRECTION_DATA_DAILY_LIMIT")
    correction_avatar_daily_limit: int = Field(5, alias="CORRECTION_AVATAR_DAILY_LIMIT")
    correction_item_delay_seconds: float = Field(2.0, alias="CORRECTION_ITEM_DELAY_SECONDS")

    # Species resolution (normalized edit distance, 0.0 = identical)
    fuzzy_admission_threshold: float = Field(0.4, alias="FUZZY_ADMISSION_THRESHOLD")
    fuzzy_accept_threshold: float = Field(0.3, alias="FUZZY_ACCEPT_THRESHOLD")
    species_synonyms_file: Optional[Path] = Field(None, alias="SPECIES_SYNONYMS_FILE")

    # External collaborators
    generation_api_url: str = Field("http://localhost:8100", alias="GENERATION_API_URL")
    generation_timeout_seconds: float = Field(120.0, alias="GENERATION_TIMEOUT_SECONDS")
    image_api_url: str = Field("http://localhost:8188", alias="IMAGE_API_URL")
    image_timeout_seconds: float = Field(300.0, alias="IMAGE_TIMEOUT_SECONDS")
    storage_api_url: str = Field("http://localhost:9000", alias="STORAGE_API_URL")
    storage_timeout_seconds: float = Field(60.0, alias="STORAGE_TIMEOUT_SECONDS")
    collaborator_api_key: Optional[str] = Field(None, alias="COLLABORATOR_API_KEY")
    language_hint: str = Field("en", alias="LANGUAGE_HINT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
