"""Configuration management for the combat and mechanics core.

Settings are loaded with pydantic-settings from environment variables and an
optional ``.env`` file. API keys are held as ``SecretStr``.

Example:
    >>> from gm_mechanics.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.game.min_generation_name_length
    3

Environment Variables:
    GM_MECHANICS_OPENROUTER_API_KEY: Key for the monster content generator
    GM_MECHANICS_GENERATION_MODEL: Chat model used for monster generation
    GM_MECHANICS_WORLD_DB_PATH: SQLite file backing the world store
    GM_MECHANICS_GAME_MONSTER_GENERATION_ENABLED: Toggle async generation
    GM_MECHANICS_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gm_mechanics.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Connection settings for the monster content generator.

    Attributes:
        openrouter_api_key: OpenRouter API key (primary provider).
        openai_api_key: OpenAI API key, used when ``default_provider`` is openai.
        default_provider: Which provider the generator talks to.
        base_url: Chat-completions endpoint for the OpenRouter provider.
        generation_model: Model identifier used for monster generation.
        temperature: Sampling temperature for generated stat blocks.
        timeout_seconds: Request timeout.
    """

    model_config = SettingsConfigDict(
        env_prefix="GM_MECHANICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openrouter_api_key: SecretStr | None = Field(
        default=None,
        description="OpenRouter API key (primary)",
    )
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="OpenAI API key",
    )
    default_provider: Literal["openrouter", "openai"] = Field(
        default="openrouter",
        description="Provider used by the content generator",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenRouter chat-completions base URL",
    )
    generation_model: str = Field(
        default="google/gemini-2.0-flash-001",
        description="Model used to generate monster templates",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for generation",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="Generation request timeout",
    )

    @model_validator(mode="after")
    def validate_api_key_for_provider(self) -> "AIProviderSettings":
        """Require a key when OpenAI is explicitly selected.

        A missing OpenRouter key is tolerated: generation then fails at call
        time, is logged, and combat continues against placeholder templates.

        Raises:
            ConfigurationError: If openai is the provider but has no key.
        """
        if self.default_provider == "openai" and not self.openai_api_key:
            raise ConfigurationError(
                "OpenAI is set as default provider but OPENAI_API_KEY is not configured",
                config_key="openai_api_key",
            )
        return self


class StorageSettings(BaseSettings):
    """Location of the persistent world store.

    Attributes:
        world_db_path: SQLite file holding per-world monster lists.
    """

    model_config = SettingsConfigDict(
        env_prefix="GM_MECHANICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    world_db_path: Path = Field(
        default=Path("data/worlds.db"),
        description="Path to the SQLite world store",
    )


class GameSettings(BaseSettings):
    """Rules and spawning behavior.

    Attributes:
        monster_generation_enabled: Request full templates for unknown monsters.
        min_generation_name_length: Identifiers shorter than this never trigger generation.
        generic_monster_ids: Identifiers too generic to generate a template for.
        default_dexterity: DEX score assumed when a combatant has none.
        placeholder_hp: Hit points of a placeholder template.
        placeholder_ac: Armor class of a placeholder template.
    """

    model_config = SettingsConfigDict(
        env_prefix="GM_MECHANICS_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    monster_generation_enabled: bool = Field(
        default=True,
        description="Request generated templates for unknown monsters",
    )
    min_generation_name_length: int = Field(
        default=3,
        ge=1,
        le=32,
        description="Minimum identifier length that triggers generation",
    )
    generic_monster_ids: list[str] = Field(
        default_factory=lambda: [
            "enemy",
            "enemies",
            "monster",
            "creature",
            "foe",
            "npc",
            "unknown",
            "placeholder",
        ],
        description="Identifiers that never trigger generation",
    )
    default_dexterity: int = Field(
        default=10,
        ge=1,
        le=30,
        description="DEX score when a combatant has none",
    )
    placeholder_hp: int = Field(default=10, ge=1, description="Placeholder template HP")
    placeholder_ac: int = Field(default=10, ge=1, description="Placeholder template AC")

    @field_validator("generic_monster_ids", mode="after")
    @classmethod
    def normalize_generic_ids(cls, value: list[str]) -> list[str]:
        """Lower-case and strip the generic identifier list."""
        return [v.strip().lower() for v in value if v.strip()]


class Settings(BaseSettings):
    """Aggregate application settings.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Application logging level.
        ai: Content generator settings.
        storage: World store settings.
        game: Rules and spawning settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="GM_MECHANICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="GM Mechanics Core",
        description="Application name",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    game: GameSettings = Field(default_factory=GameSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the cached settings singleton.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "StorageSettings",
    "GameSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
