"""
Configuration management for translate-locales.

Handles loading configuration from YAML files and environment variables.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from translate_locales.gateway.base import Formality, TranslationSettings

# Load .env file if present (before Settings initialization)
load_dotenv()


class TranslationProvider(str, Enum):
    """Available translation providers."""

    DEEPL = "deepl"
    OPENROUTER = "openrouter"


class PathsConfig(BaseModel):
    """Configuration for file paths."""

    database_path: Path = Field(default=Path("./translate_locales.duckdb"))

    @field_validator("database_path")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Expand user home directory and make path absolute."""
        return Path(v).expanduser().resolve()


class LocalizationConfig(BaseModel):
    """Locales documents are kept in."""

    locale_codes: list[str] = Field(default_factory=lambda: ["en"], min_length=1)
    default_locale: str = Field(default="en")

    @model_validator(mode="after")
    def check_default_locale(self) -> LocalizationConfig:
        """The default locale must be one of the configured locales."""
        if self.default_locale not in self.locale_codes:
            raise ValueError(
                f"default_locale '{self.default_locale}' is not in locale_codes {self.locale_codes}"
            )
        return self


class TranslationSettingsConfig(BaseModel):
    """Provider options applied to every translation request."""

    formality: Formality = Field(default=Formality.DEFAULT)
    preserve_formatting: bool = Field(default=True)
    split_sentences: str = Field(default="nonewlines")
    context: str | None = Field(default=None)
    glossary_id: str | None = Field(default=None)

    def to_settings(self) -> TranslationSettings:
        """Build the immutable settings value handed to gateways."""
        return TranslationSettings(
            formality=self.formality,
            preserve_formatting=self.preserve_formatting,
            split_sentences=self.split_sentences,
            context=self.context,
            glossary_id=self.glossary_id,
        )


class TranslationConfig(BaseModel):
    """Configuration for translation."""

    # Provider selection: "deepl" (machine translation) or "openrouter" (LLM)
    provider: TranslationProvider = Field(default=TranslationProvider.DEEPL)
    fallback_provider: TranslationProvider | None = Field(default=None)
    # Model for the openrouter provider
    model: str = Field(default="default")
    fallback_model: str | None = Field(default=None)
    deepl_api_key: str = Field(default="")
    openrouter_api_key: str = Field(default="")
    timeout_seconds: int = Field(default=30, ge=1, le=300)
    max_retries: int = Field(default=1, ge=1, le=10)
    settings: TranslationSettingsConfig = Field(default_factory=TranslationSettingsConfig)


class CollectionConfig(BaseModel):
    """Translatable fields of one collection."""

    fields: list[str] = Field(default_factory=list)
    auto_translate: bool = Field(default=True)

    @field_validator("fields")
    @classmethod
    def check_paths(cls, v: list[str]) -> list[str]:
        """Reject empty path segments such as ``a..b``."""
        for path in v:
            if not path or any(not segment for segment in path.split(".")):
                raise ValueError(f"Invalid field path: '{path}'")
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO")
    file: Path | None = Field(default=Path("./logs/translate_locales.log"))
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    max_file_size_mb: int = Field(default=10, ge=1, le=100)
    backup_count: int = Field(default=5, ge=1, le=20)
    console: bool = Field(default=True)


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = Field(default="translate-locales")
    description: str = Field(default="")


class Settings(BaseSettings):
    """Main settings class that combines all configurations."""

    model_config = SettingsConfigDict(
        env_prefix="",  # No prefix for simpler env vars
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    localization: LocalizationConfig = Field(default_factory=LocalizationConfig)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    collections: dict[str, CollectionConfig] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable fallbacks for API keys."""
        super().__init__(**data)
        # Override API keys from environment if not set in config
        if not self.translation.deepl_api_key:
            self.translation.deepl_api_key = os.getenv("DEEPL_API_KEY", "")
        if not self.translation.openrouter_api_key:
            self.translation.openrouter_api_key = os.getenv("OPENROUTER_API_KEY", "")

    def collection(self, key: str) -> CollectionConfig:
        """
        Get the configuration of a collection.

        Raises:
            KeyError: If the collection is not configured.
        """
        try:
            return self.collections[key]
        except KeyError:
            configured = sorted(self.collections)
            raise KeyError(f"Collection '{key}' is not configured. Known: {configured}") from None

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Build settings from a YAML file; a missing file yields the defaults."""
        path = Path(path)
        if not path.exists():
            return cls()

        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls(**_expand_env(raw))


_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _expand_env(value: Any) -> Any:
    """Replace ``${NAME}`` references anywhere in strings, dicts and lists."""
    if isinstance(value, dict):
        return {key: _expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env(item) for item in value]
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda match: os.getenv(match.group(1), ""), value)
    return value


CONFIG_FILE_NAMES = ("config.yaml", "config.yml", ".translate-locales.yaml")


def load_config(path: Path | str | None = None) -> Settings:
    """
    Load settings from a YAML file, or from the first config file found in
    the working directory (``CONFIG_FILE_NAMES``), or return the defaults.
    """
    if path is None:
        path = next((Path(name) for name in CONFIG_FILE_NAMES if Path(name).exists()), None)
    return Settings.from_yaml(path) if path is not None else Settings()


DEFAULT_CONFIG = """# translate-locales configuration
project:
  name: "my-content-site"

paths:
  database_path: "./data/content.duckdb"

localization:
  # Every locale documents are kept in
  locale_codes: ["en", "lt", "de"]
  # Locale content is authored in
  default_locale: "en"

translation:
  # "deepl" or "openrouter"
  provider: "deepl"
  # Optional second provider used when the first one fails
  # fallback_provider: "openrouter"
  deepl_api_key: "${DEEPL_API_KEY}"
  # openrouter_api_key: "${OPENROUTER_API_KEY}"
  timeout_seconds: 30
  settings:
    formality: "default"
    preserve_formatting: true

# Translatable field paths per collection (dotted paths reach into groups)
collections:
  cases:
    fields: ["title", "subtitle", "content", "strategies", "firstSection.text"]
  products:
    fields: ["title", "description"]

logging:
  level: "INFO"
  file: "./logs/translate_locales.log"
"""


def create_default_config(path: Path | str = "config.yaml") -> None:
    """Create a default configuration file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(DEFAULT_CONFIG)
