"""
Configuration management for publish-docs-ai.

Handles loading configuration from YAML files and environment variables.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file if present (before Settings initialization)
load_dotenv()


class LLMProvider(str, Enum):
    """Available LLM providers."""

    GEMINI = "gemini"
    OPENROUTER = "openrouter"


class StatusPropertyType(str, Enum):
    """Notion property type backing the publication status."""

    SELECT = "select"
    STATUS = "status"


class PathsConfig(BaseModel):
    """Configuration for file paths."""

    content_dir: Path = Field(default=Path("./content"))
    # Hugo section below each language directory (content/<lang>/<section>)
    section: str = Field(default="posts")
    images_dir: Path = Field(default=Path("./static/images/posts"))
    database_path: Path = Field(default=Path("./publish_docs.db"))
    logs: Path = Field(default=Path("./logs"))

    @field_validator("content_dir", "images_dir", "database_path", "logs")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Expand user home directory and make path absolute."""
        return Path(v).expanduser().resolve()


class NotionConfig(BaseModel):
    """Configuration for the Notion content database."""

    api_key: str = Field(default="")
    database_id: str = Field(default="")
    api_version: str = Field(default="2022-06-28")
    base_url: str = Field(default="https://api.notion.com/v1")
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)

    # Database property names
    title_property: str = Field(default="Title")
    slug_property: str = Field(default="Slug")
    tags_property: str = Field(default="Tags")
    date_property: str = Field(default="PublishedDate")
    status_property: str = Field(default="Status")
    status_type: StatusPropertyType = Field(default=StatusPropertyType.SELECT)

    # Status gate values
    ready_value: str = Field(default="Ready to Publish")
    published_value: str = Field(default="Published")


class TranslationConfig(BaseModel):
    """Configuration for translation."""

    provider: LLMProvider = Field(default=LLMProvider.GEMINI)
    model: str = Field(default="default")
    api_key: str = Field(default="")
    # Overrides the provider's default OpenAI-compatible endpoint
    base_url: str | None = Field(default=None)
    source_language: str = Field(default="ko")
    target_languages: list[str] = Field(default_factory=lambda: ["ja"])
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    max_tokens: int = Field(default=4096, ge=256, le=32000)
    timeout_seconds: float = Field(default=120.0, ge=1.0, le=600.0)
    # Failed fragments are not retried within a run
    max_retries: int = Field(default=1, ge=1, le=10)
    concurrent_fragments: int = Field(default=1, ge=1, le=16)

    @field_validator("target_languages")
    @classmethod
    def require_targets(cls, v: list[str]) -> list[str]:
        """Reject an empty target language list."""
        if not v:
            raise ValueError("at least one target language is required")
        return v


class ImagesConfig(BaseModel):
    """Configuration for embedded images."""

    download: bool = Field(default=True)
    url_prefix: str = Field(default="/images/posts")
    timeout_seconds: float = Field(default=60.0, ge=1.0, le=600.0)


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO")
    file: Path = Field(default=Path("./logs/publish.log"))
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    max_file_size_mb: int = Field(default=10, ge=1, le=100)
    backup_count: int = Field(default=5, ge=1, le=20)


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = Field(default="publish-project")
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
    notion: NotionConfig = Field(default_factory=NotionConfig)
    translation: TranslationConfig = Field(default_factory=TranslationConfig)
    images: ImagesConfig = Field(default_factory=ImagesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def __init__(self, **data: Any) -> None:
        """Initialize with environment variable fallbacks for API keys."""
        super().__init__(**data)
        # Override credentials from environment if not set in config
        if not self.notion.api_key:
            self.notion.api_key = os.getenv("NOTION_API_KEY", "")
        if not self.notion.database_id:
            self.notion.database_id = os.getenv("NOTION_DATABASE_ID", "")
        if not self.translation.api_key:
            env_var = {
                LLMProvider.GEMINI: "GEMINI_API_KEY",
                LLMProvider.OPENROUTER: "OPENROUTER_API_KEY",
            }[self.translation.provider]
            self.translation.api_key = os.getenv(env_var, "")

    @classmethod
    def from_yaml(cls, path: Path | str) -> Settings:
        """Load settings from a YAML file, with environment variable overrides."""
        path = Path(path)
        if not path.exists():
            # Return defaults if file doesn't exist
            return cls()

        with open(path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}

        # Process environment variable substitutions in YAML values
        yaml_config = _substitute_env_vars(yaml_config)

        return cls(**yaml_config)


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively substitute ${ENV_VAR} patterns in config values."""
    result = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _substitute_env_vars(value)
        elif isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_var = value[2:-1]
            result[key] = os.getenv(env_var, "")
        elif isinstance(value, list):
            result[key] = [
                _substitute_env_vars(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def load_config(path: Path | str | None = None) -> Settings:
    """
    Load configuration from YAML file or return defaults.

    Args:
        path: Path to YAML config file. If None, looks for config.yaml in current directory.

    Returns:
        Settings instance with merged YAML and environment configurations.
    """
    if path is None:
        default_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path(".publish-docs.yaml"),
        ]
        for p in default_paths:
            if p.exists():
                path = p
                break

    if path is not None:
        return Settings.from_yaml(path)

    return Settings()


DEFAULT_CONFIG = """# publish-docs-ai configuration
project:
  name: "my-blog"

paths:
  # Hugo content root; artifacts land in <content_dir>/<lang>/<section>
  content_dir: ./content
  section: posts
  images_dir: ./static/images/posts
  database_path: ./publish_docs.db
  logs: ./logs

notion:
  api_key: ${NOTION_API_KEY}
  database_id: ${NOTION_DATABASE_ID}
  title_property: Title
  slug_property: Slug
  tags_property: Tags
  date_property: PublishedDate
  status_property: Status
  # "select" or "status", depending on the Notion property type
  status_type: select
  ready_value: Ready to Publish
  published_value: Published

translation:
  # "gemini" or "openrouter"
  provider: gemini
  model: default
  api_key: ${GEMINI_API_KEY}
  source_language: ko
  target_languages:
    - ja
  temperature: 0.3
  timeout_seconds: 120
  # Fragments translated in parallel within one document (1 = sequential)
  concurrent_fragments: 1

images:
  # Download Notion images into images_dir and reference them locally
  download: true
  url_prefix: /images/posts

logging:
  level: INFO
  file: ./logs/publish.log
"""


def create_default_config(path: Path | str = "config.yaml") -> None:
    """Create a default configuration file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(DEFAULT_CONFIG)
