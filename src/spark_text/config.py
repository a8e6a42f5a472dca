"""Configuration management for Spark Text."""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from spark_text.options import (
    HTMLOptions,
    MarkdownOptions,
    SalvageOptions,
    TextOptions,
    WordOptions,
)


class Settings(BaseSettings):
    """Application configuration via environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Document defaults
    default_title: str = Field(
        default="Documento",
        alias="SPARK_TEXT_TITLE",
    )
    locale: str = Field(
        default="es",
        alias="SPARK_TEXT_LOCALE",
    )
    app_name: str = Field(
        default="Text Code Spark",
        alias="SPARK_TEXT_APP_NAME",
    )

    # Processing settings
    max_input_bytes: int = Field(
        default=20 * 1024 * 1024,
        alias="SPARK_TEXT_MAX_INPUT_BYTES",
    )
    max_workers: int = Field(
        default=4,
        alias="SPARK_TEXT_MAX_WORKERS",
    )
    markdown_respect_start: bool = Field(
        default=False,
        alias="SPARK_TEXT_MARKDOWN_RESPECT_START",
    )

    log_level: str = Field(
        default="WARNING",
        alias="SPARK_TEXT_LOG_LEVEL",
    )

    @field_validator("max_workers")
    @classmethod
    def _at_least_one_worker(cls, value: int) -> int:
        return max(1, value)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    # Options for the individual converters

    def markdown_options(self) -> MarkdownOptions:
        return MarkdownOptions(
            respect_start=self.markdown_respect_start,
            locale=self.locale,
        )

    def text_options(self) -> TextOptions:
        return TextOptions(locale=self.locale)

    def word_options(self) -> WordOptions:
        return WordOptions(locale=self.locale, app_name=self.app_name)

    def html_options(self) -> HTMLOptions:
        return HTMLOptions(locale=self.locale, app_name=self.app_name)

    def salvage_options(self) -> SalvageOptions:
        return SalvageOptions(
            locale=self.locale,
            max_input_bytes=self.max_input_bytes,
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if needed."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load settings from an optional specific .env file."""
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
