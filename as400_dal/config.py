"""
Configuration settings for the AS400 data-access layer.

Uses Pydantic Settings to load environment variables for the ODBC connection,
schema-name remapping, value normalization and logging.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Connection
    driver: str = Field("IBM i Access ODBC Driver", alias="AS400_DRIVER")
    system: str = Field("localhost", alias="AS400_SYSTEM")
    user: str = Field("", alias="AS400_USER")
    password: SecretStr = Field(SecretStr(""), alias="AS400_PASSWORD")
    commit_mode: str = Field("2", alias="AS400_COMMIT_MODE")
    extended_dynamic: str = Field("1", alias="AS400_EXTENDED_DYNAMIC")
    package_library: str = Field("", alias="AS400_PACKAGE_LIBRARY")
    translate_hex: str = Field("1", alias="AS400_TRANSLATE_HEX")
    database: str = Field("", alias="AS400_DATABASE")
    default_libraries: str = Field("", alias="AS400_DEFAULT_LIBRARIES")
    connect_timeout: int = Field(30, alias="AS400_CONNECT_TIMEOUT")

    # Logical -> physical schema names, e.g. {"DICADCDE": "ICADCDE"}
    schema_mapping: Dict[str, str] = Field(default_factory=dict, alias="AS400_SCHEMA_MAPPING")

    # Encoding used to repair text that is not valid UTF-8
    legacy_encoding: str = Field("latin-1", alias="AS400_LEGACY_ENCODING")
    # Decode bytes values as text; leave off when tables carry BLOB or BINARY columns
    decode_bytes: bool = Field(False, alias="AS400_DECODE_BYTES")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

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
