"""Per-game state record the combat core mutates."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from gm_mechanics.models.combat import CombatEncounter
from gm_mechanics.models.messages import SystemMessage


class GameState(BaseModel):
    """State of one running game.

    Attributes:
        id: Game identifier.
        world_id: World the game is played in.
        combat: The encounter record, None only if the caller stripped it.
        messages: Transcript of system messages produced so far.
        current_hp: Player hit points as last reported by the sheet owner.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str = Field(default_factory=lambda: uuid4().hex)
    world_id: str | None = Field(default=None, alias="worldId")
    combat: CombatEncounter | None = Field(default_factory=CombatEncounter)
    messages: list[SystemMessage] = Field(default_factory=list)
    current_hp: int | None = Field(default=None, alias="currentHP")

    def add_messages(self, messages: list[SystemMessage]) -> None:
        self.messages.extend(messages)


__all__ = [
    "GameState",
]
