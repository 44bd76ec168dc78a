from fastapi import Request
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.helpers.file_paths import UPLOADS_DIR


class Settings(BaseSettings):
    """
    Application settings read from environment variables and .env.
    Each field can be given by its field name or its env name
    (DATABASE_URL, PROGRESS_CLAMP_PERCENT, ...).
    """
    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    database_url: str = Field(
        default="", validation_alias=AliasChoices("database_url", "DATABASE_URL")
    )
    base_url: str = Field(
        default="http://localhost:8000", validation_alias=AliasChoices("base_url", "BASE_URL")
    )
    uploads_dir: str = Field(
        default=UPLOADS_DIR, validation_alias=AliasChoices("uploads_dir", "UPLOADS_DIR")
    )
    sql_echo: bool = Field(
        default=False, validation_alias=AliasChoices("sql_echo", "SQL_ECHO")
    )
    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("log_level", "LOG_LEVEL")
    )
    clamp_progress_percent: bool = Field(
        default=False,
        validation_alias=AliasChoices("clamp_progress_percent", "PROGRESS_CLAMP_PERCENT"),
    )
    create_tables_on_startup: bool = Field(
        default=True,
        validation_alias=AliasChoices("create_tables_on_startup", "CREATE_TABLES_ON_STARTUP"),
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


def get_settings() -> Settings:
    """
    Build Settings from the process environment (and .env if present).
    Raises ValueError when DATABASE_URL is missing.
    """
    settings = Settings()

    if not settings.database_url:
        raise ValueError("❌ DATABASE_URL is not set in the .env file")

    return settings


# ---------------------------
# Dependency for FastAPI
# ---------------------------
def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
