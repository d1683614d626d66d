"""
Tests for settings loading and logging setup.
"""

import logging

import pytest
from pydantic import ValidationError

from publish_docs_ai.config import (
    LLMProvider,
    LoggingConfig,
    Settings,
    StatusPropertyType,
    TranslationConfig,
    create_default_config,
    load_config,
)
from publish_docs_ai.log import PACKAGE_LOGGER, setup_logging


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("NOTION_API_KEY", "NOTION_DATABASE_ID", "GEMINI_API_KEY", "OPENROUTER_API_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Defaults, YAML and environment fallbacks."""

    def test_defaults(self):
        settings = Settings()

        assert settings.translation.provider is LLMProvider.GEMINI
        assert settings.translation.source_language == "ko"
        assert settings.translation.target_languages == ["ja"]
        assert settings.translation.max_retries == 1
        assert settings.notion.ready_value == "Ready to Publish"
        assert settings.notion.published_value == "Published"
        assert settings.paths.section == "posts"

    def test_env_fallbacks(self, monkeypatch):
        monkeypatch.setenv("NOTION_API_KEY", "secret_abc")
        monkeypatch.setenv("NOTION_DATABASE_ID", "db-1")
        monkeypatch.setenv("GEMINI_API_KEY", "gem-key")

        settings = Settings()

        assert settings.notion.api_key == "secret_abc"
        assert settings.notion.database_id == "db-1"
        assert settings.translation.api_key == "gem-key"

    def test_openrouter_key_fallback(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
        settings = Settings(translation={"provider": "openrouter"})
        assert settings.translation.api_key == "or-key"

    def test_yaml_with_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MY_NOTION_KEY", "from-env")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            """
notion:
  api_key: ${MY_NOTION_KEY}
  database_id: abc
  status_type: status
translation:
  target_languages: [ja, en]
  concurrent_fragments: 4
paths:
  section: blog
""",
            encoding="utf-8",
        )

        settings = load_config(config_file)

        assert settings.notion.api_key == "from-env"
        assert settings.notion.status_type is StatusPropertyType.STATUS
        assert settings.translation.target_languages == ["ja", "en"]
        assert settings.translation.concurrent_fragments == 4
        assert settings.paths.section == "blog"

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = Settings.from_yaml(tmp_path / "absent.yaml")
        assert settings.paths.section == "posts"

    def test_empty_target_languages_rejected(self):
        with pytest.raises(ValidationError):
            TranslationConfig(target_languages=[])

    def test_default_config_loads(self, tmp_path, monkeypatch):
        monkeypatch.setenv("NOTION_API_KEY", "k")
        path = tmp_path / "config.yaml"

        create_default_config(path)
        settings = load_config(path)

        assert settings.project.name == "my-blog"
        assert settings.notion.api_key == "k"
        assert settings.images.url_prefix == "/images/posts"


class TestLogging:
    """Rich console plus rotating file."""

    def test_setup_logging_writes_file(self, tmp_path):
        log_file = tmp_path / "logs" / "publish.log"
        logger = setup_logging(LoggingConfig(level="DEBUG", file=log_file))
        logging.getLogger(f"{PACKAGE_LOGGER}.test").info("hello from test")
        for handler in logger.handlers:
            handler.flush()

        assert "hello from test" in log_file.read_text(encoding="utf-8")
        assert len(logger.handlers) == 2

        setup_logging(LoggingConfig(file=log_file))
        assert len(logger.handlers) == 2
