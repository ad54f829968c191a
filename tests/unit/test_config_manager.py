from pathlib import Path

import pytest
import yaml

from truthordare.models.config import AISettings, AppConfig, GenerationSettings
from truthordare.services.config_manager import ConfigManager, ConfigValidationError

SHIPPED_CONFIG = Path(__file__).resolve().parents[2] / "config" / "app_config.yaml"


@pytest.fixture(autouse=True)
def clean_ai_env(monkeypatch):
    for name in (
        "OPENAI_API_KEY",
        "GROQ_API_KEY",
        "AI_API_URL",
        "GROQ_API_URL",
        "AI_MODEL",
        "GROQ_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_config(tmp_path):
    def _write(content):
        config_file = tmp_path / "app_config.yaml"
        if isinstance(content, str):
            config_file.write_text(content)
        else:
            with open(config_file, "w") as f:
                yaml.dump(content, f)
        return config_file

    return _write


def test_load_valid_config(write_config):
    config_file = write_config(
        {
            "database": {"url": "sqlite+aiosqlite:///jobs.db"},
            "scheduler": {
                "timezone": "Europe/Madrid",
                "cleanup": {"retention_months": 6},
                "generation": {"count_per_combination": 8, "backoff": "exponential"},
            },
        }
    )

    config = ConfigManager(config_path=str(config_file), load_env=False).load_config()

    assert config.database.url == "sqlite+aiosqlite:///jobs.db"
    assert config.scheduler.timezone == "Europe/Madrid"
    assert config.scheduler.cleanup.retention_months == 6
    assert config.scheduler.cleanup.schedule == "0 0 * * 0"
    assert config.scheduler.generation.count_per_combination == 8
    assert config.scheduler.generation.retry_config().backoff == "exponential"


def test_missing_file_uses_defaults(tmp_path):
    manager = ConfigManager(config_path=str(tmp_path / "nonexistent.yaml"), load_env=False)

    config = manager.load_config()

    assert config == AppConfig()


def test_env_substitution(write_config, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-123")
    monkeypatch.setenv("JOBS_DB_URL", "sqlite+aiosqlite:///from-env.db")
    config_file = write_config(
        'database:\n  url: "${JOBS_DB_URL}"\nai:\n  api_key: "${OPENAI_API_KEY}"\n'
    )

    config = ConfigManager(config_path=str(config_file), load_env=False).load_config()

    assert config.database.url == "sqlite+aiosqlite:///from-env.db"
    assert config.ai.api_key == "sk-test-123"


def test_unset_secret_treated_as_empty(write_config):
    config_file = write_config('ai:\n  api_key: "${OPENAI_API_KEY}"\n')

    config = ConfigManager(config_path=str(config_file), load_env=False).load_config()

    assert config.ai.api_key == ""


def test_invalid_values_raise(write_config):
    config_file = write_config({"scheduler": {"generation": {"max_retries": 0}}})

    with pytest.raises(ConfigValidationError, match="Invalid configuration"):
        ConfigManager(config_path=str(config_file), load_env=False).load_config()


def test_invalid_yaml_raises(write_config):
    config_file = write_config("scheduler: [unclosed")

    with pytest.raises(ConfigValidationError, match="Failed to parse YAML"):
        ConfigManager(config_path=str(config_file), load_env=False).load_config()


def test_non_mapping_root_raises(write_config):
    config_file = write_config("- just\n- a list\n")

    with pytest.raises(ConfigValidationError, match="must be a mapping"):
        ConfigManager(config_path=str(config_file), load_env=False).load_config()


def test_config_is_cached_until_reload(write_config):
    config_file = write_config({"scheduler": {"cleanup": {"retention_months": 3}}})
    manager = ConfigManager(config_path=str(config_file), load_env=False)
    first = manager.load_config()

    write_config({"scheduler": {"cleanup": {"retention_months": 9}}})

    assert manager.load_config() is first
    assert manager.reload().scheduler.cleanup.retention_months == 9


def test_shipped_config_is_valid():
    config = ConfigManager(config_path=str(SHIPPED_CONFIG), load_env=False).load_config()

    assert config.scheduler.cleanup.retention_months == 2
    assert config.scheduler.generation.schedule == "0 2 * * 0"


def test_ai_settings_env_fallback(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk-fallback")
    monkeypatch.setenv("GROQ_MODEL", "llama-test")

    settings = AISettings()

    assert settings.api_key == "gsk-fallback"
    assert settings.model == "llama-test"
    assert settings.api_url.endswith("/chat/completions")


def test_openai_key_takes_precedence(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-primary")
    monkeypatch.setenv("GROQ_API_KEY", "gsk-secondary")

    assert AISettings().api_key == "sk-primary"


def test_generation_retry_config():
    retry = GenerationSettings(max_retries=4, retry_delay_seconds=30).retry_config()

    assert retry.max_attempts == 4
    assert retry.base_delay_seconds == 30
    assert retry.backoff == "fixed"
