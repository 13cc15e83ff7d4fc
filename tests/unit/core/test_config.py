"""Tests for configuration management."""

from __future__ import annotations

from pathlib import Path

import pytest

from gm_mechanics.core.config import (
    AIProviderSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from gm_mechanics.core.exceptions import ConfigurationError


class TestAIProviderSettings:
    """Tests for the content generator settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test OpenRouter is the default provider."""
        monkeypatch.delenv("GM_MECHANICS_OPENROUTER_API_KEY", raising=False)

        settings = AIProviderSettings()

        assert settings.default_provider == "openrouter"
        assert settings.base_url == "https://openrouter.ai/api/v1"
        assert settings.temperature == 0.7

    def test_missing_openrouter_key_is_tolerated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing OpenRouter key does not fail settings loading."""
        monkeypatch.delenv("GM_MECHANICS_OPENROUTER_API_KEY", raising=False)

        settings = AIProviderSettings()

        assert settings.openrouter_api_key is None

    def test_openai_provider_requires_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test selecting OpenAI without a key raises ConfigurationError."""
        monkeypatch.delenv("GM_MECHANICS_OPENAI_API_KEY", raising=False)

        with pytest.raises(ConfigurationError):
            AIProviderSettings(default_provider="openai")

    def test_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test API keys are read from the environment as secrets."""
        monkeypatch.setenv("GM_MECHANICS_OPENROUTER_API_KEY", "sk-or-test")

        settings = AIProviderSettings()

        assert settings.openrouter_api_key is not None
        assert settings.openrouter_api_key.get_secret_value() == "sk-or-test"
        assert "sk-or-test" not in repr(settings)


class TestGameSettings:
    """Tests for rules and spawning settings."""

    def test_defaults(self) -> None:
        settings = GameSettings()

        assert settings.min_generation_name_length == 3
        assert settings.placeholder_hp == 10
        assert settings.placeholder_ac == 10
        assert settings.default_dexterity == 10
        assert "monster" in settings.generic_monster_ids

    def test_generic_ids_normalized(self) -> None:
        """Test generic identifiers are lower-cased and stripped."""
        settings = GameSettings(generic_monster_ids=[" Enemy ", "FOE", ""])

        assert settings.generic_monster_ids == ["enemy", "foe"]

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test game settings read the GAME prefix."""
        monkeypatch.setenv("GM_MECHANICS_GAME_MONSTER_GENERATION_ENABLED", "false")

        assert GameSettings().monster_generation_enabled is False


class TestStorageSettings:
    """Tests for world store settings."""

    def test_custom_path(self, tmp_path: Path) -> None:
        settings = StorageSettings(world_db_path=tmp_path / "worlds.db")

        assert settings.world_db_path == tmp_path / "worlds.db"


class TestGetSettings:
    """Tests for the settings singleton."""

    def test_cached(self) -> None:
        """Test get_settings returns the same instance."""
        assert get_settings() is get_settings()

    def test_clear_cache(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test clearing the cache reloads from the environment."""
        first = get_settings()
        monkeypatch.setenv("GM_MECHANICS_LOG_LEVEL", "DEBUG")
        clear_settings_cache()

        second = get_settings()

        assert second is not first
        assert second.log_level == "DEBUG"

    def test_invalid_settings_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test invalid configuration surfaces as ConfigurationError."""
        monkeypatch.setenv("GM_MECHANICS_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            get_settings()

    def test_nested_sections(self) -> None:
        settings = Settings()

        assert isinstance(settings.game, GameSettings)
        assert isinstance(settings.storage, StorageSettings)
