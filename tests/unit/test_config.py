"""Tests for settings models and YAML loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from autoapply.core.config import ApplyConfig, BrowserConfig, OracleConfig, Settings


class TestDefaults:
    def test_settings_defaults(self) -> None:
        settings = Settings()
        assert settings.database.path == "data/autoapply.db"
        assert settings.browser.timeout_ms == 30000
        assert settings.browser.login_retries == 1
        assert settings.scheduler.tick_interval_s == 60.0
        assert settings.oracle.provider == "gemini"

    def test_apply_defaults(self) -> None:
        apply = ApplyConfig()
        assert apply.max_chat_attempts == 10
        assert apply.apply_button_timeout_ms == 5000
        assert apply.success_phrase == "You have successfully applied to"


class TestValidation:
    def test_timeout_floor(self) -> None:
        with pytest.raises(ValidationError):
            BrowserConfig(timeout_ms=10)

    def test_login_retries_bounded(self) -> None:
        with pytest.raises(ValidationError):
            BrowserConfig(login_retries=5)

    def test_unknown_oracle_provider(self) -> None:
        with pytest.raises(ValidationError, match="Unknown oracle provider"):
            OracleConfig(provider="bard")

    def test_provider_normalized(self) -> None:
        assert OracleConfig(provider=" OpenAI ").provider == "openai"

    def test_empty_success_phrase(self) -> None:
        with pytest.raises(ValidationError, match="success_phrase"):
            ApplyConfig(success_phrase="  ")

    def test_chat_attempts_bounded(self) -> None:
        with pytest.raises(ValidationError):
            ApplyConfig(max_chat_attempts=0)


class TestFromYaml:
    def test_loads_sections(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text(
            "browser:\n"
            "  headless: false\n"
            "  timeout_ms: 45000\n"
            "apply:\n"
            "  max_chat_attempts: 4\n"
            "oracle:\n"
            "  provider: anthropic\n"
            "  model: claude-test\n",
        )
        settings = Settings.from_yaml(path)
        assert settings.browser.headless is False
        assert settings.browser.timeout_ms == 45000
        assert settings.apply.max_chat_attempts == 4
        assert settings.oracle.provider == "anthropic"
        assert settings.oracle.model == "claude-test"

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("")
        assert Settings.from_yaml(path) == Settings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_example_file_is_valid(self) -> None:
        example = Path(__file__).parent.parent.parent / "config" / "settings.example.yaml"
        settings = Settings.from_yaml(example)
        assert settings.oracle.instruction_cache == "cache/system-instruction.json"
