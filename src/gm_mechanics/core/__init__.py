"""Core infrastructure: configuration, logging, constants and exceptions.

Exports:
    Exceptions:
        GmMechanicsError: Base exception for all package errors.
        DiceRollError, StorageError, MonsterGenerationError, ...

    Configuration:
        Settings: Aggregate application settings.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up structlog and stdlib logging.
        get_logger: Get a configured logger instance.
        bind_context / unbind_context / clear_context: Manage log context.
"""

from __future__ import annotations

from gm_mechanics.core.config import (
    AIProviderSettings,
    GameSettings,
    Settings,
    StorageSettings,
    clear_settings_cache,
    get_settings,
)
from gm_mechanics.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    ConfigurationError,
    DiceRollError,
    GameEngineError,
    GmMechanicsError,
    MonsterGenerationError,
    StorageError,
)
from gm_mechanics.core.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)


__all__ = [
    # Exceptions
    "GmMechanicsError",
    "GameEngineError",
    "DiceRollError",
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "AIRateLimitError",
    "MonsterGenerationError",
    "StorageError",
    "ConfigurationError",
    # Configuration
    "Settings",
    "AIProviderSettings",
    "StorageSettings",
    "GameSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
]
