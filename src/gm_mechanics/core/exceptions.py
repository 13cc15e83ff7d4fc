"""Exception hierarchy for the combat and mechanics core.

Expected combat conditions (unknown targets, missing encounter state,
failed monster generation) are reported through return values and logs,
never raised to the narration layer. The exceptions below are used at the
collaborator boundaries: dice notation, the content generator, the world
store and configuration loading.

Example:
    >>> from gm_mechanics.core.exceptions import DiceRollError
    >>> raise DiceRollError("Invalid dice expression", expression="2d")
"""

from __future__ import annotations

from typing import Any


class GmMechanicsError(Exception):
    """Base exception for all errors raised by this package.

    Attributes:
        message: Human-readable error description.
        details: Additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the message with any provided details."""
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Exceptions
# =============================================================================


class GameEngineError(GmMechanicsError):
    """Base exception for rules and combat state errors."""


class DiceRollError(GameEngineError):
    """Raised when a dice expression cannot be parsed or rolled."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending expression.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


# =============================================================================
# AI Content Generation Exceptions
# =============================================================================


class AIControlError(GmMechanicsError):
    """Base exception for content-generator failures."""

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AIConnectionError(AIControlError):
    """Raised when the generation endpoint cannot be reached."""


class AIResponseError(AIControlError):
    """Raised when a generation response is not a usable monster template."""


class AIRateLimitError(AIControlError):
    """Raised when the generation endpoint rate-limits the client."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with retry timing.

        Args:
            message: Human-readable error description.
            retry_after_seconds: Seconds to wait before retrying.
            model: Name of the AI model involved.
            provider: Name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        super().__init__(message, model=model, provider=provider, details=combined_details)


class MonsterGenerationError(AIResponseError):
    """Raised when generated output does not validate as a monster template."""

    def __init__(
        self,
        message: str,
        *,
        monster_name: str | None = None,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the requested monster name.

        Args:
            message: Human-readable error description.
            monster_name: The monster the generator was asked for.
            model: Name of the AI model involved.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if monster_name:
            combined_details["monster_name"] = monster_name
        super().__init__(message, model=model, details=combined_details)


# =============================================================================
# Storage & Configuration Exceptions
# =============================================================================


class StorageError(GmMechanicsError):
    """Raised when the world store cannot be read or written."""

    def __init__(
        self,
        message: str,
        *,
        world_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if world_id:
            combined_details["world_id"] = world_id
        super().__init__(message, details=combined_details)


class ConfigurationError(GmMechanicsError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the offending configuration key.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


__all__ = [
    "GmMechanicsError",
    # Game engine
    "GameEngineError",
    "DiceRollError",
    # AI content generation
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "AIRateLimitError",
    "MonsterGenerationError",
    # Storage / configuration
    "StorageError",
    "ConfigurationError",
]
