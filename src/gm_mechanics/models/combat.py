"""Pydantic V2 schemas for a combat encounter.

An encounter is owned by the game-state record and holds the initiative
order and every enemy spawned into it. Enemies are never removed while the
encounter runs; a dead enemy keeps its entry, marked with the ``Dead``
condition and a renamed initiative entry.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from gm_mechanics.core.constants import DEAD_CONDITION
from gm_mechanics.models.abilities import normalize_ability_scores
from gm_mechanics.models.defenses import DamageDefenses
from gm_mechanics.models.monsters import MonsterAction
from gm_mechanics.models.rolls import RollResult


class CombatantKind(StrEnum):
    """Initiative entry types."""

    PLAYER = "player"
    NPC = "npc"


class HitPoints(BaseModel):
    """Current and maximum hit points."""

    model_config = ConfigDict(validate_assignment=True)

    current: int = Field(description="Current HP")
    max: int = Field(ge=0, description="Maximum HP")


class Enemy(DamageDefenses):
    """A monster instance spawned into the encounter.

    Attributes:
        id: Unique within the encounter (template id, spawn time, random suffix).
        template_id: The template the enemy was spawned from.
        name: Display name, numbered when the template repeats (``Goblin 2``).
        hp: Hit points; ``current`` is clamped to 0 on death.
        ac: Armor class.
        stats: Ability scores keyed by short name.
        conditions: Active conditions; ``Dead`` is appended on death.
        actions: Actions copied from the template.
    """

    id: str = Field(min_length=1, description="Enemy identifier")
    template_id: str = Field(alias="templateId", description="Source template id")
    name: str = Field(min_length=1, description="Display name")
    hp: HitPoints
    ac: int = Field(default=10, ge=0, description="Armor class")
    stats: dict[str, int] = Field(default_factory=dict)
    conditions: list[str] = Field(default_factory=list)
    actions: list[MonsterAction] = Field(default_factory=list)

    @field_validator("stats", mode="before")
    @classmethod
    def normalize_stats(cls, value: Any) -> dict[str, int]:
        return normalize_ability_scores(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_dead(self) -> bool:
        return DEAD_CONDITION in self.conditions


class InitiativeEntry(BaseModel):
    """An entry in the initiative order.

    Attributes:
        id: Stable identifier, unique within the encounter.
        name: Display name; gains a ``(Dead)`` suffix when the enemy dies.
        type: Player or npc.
        roll: The initiative roll.
        total: Sort key, the roll total.
        enemy_id: Linked enemy, present only for npc entries.
        rolled_at: When the entry was rolled.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str = Field(min_length=1, description="Entry identifier")
    name: str = Field(description="Display name")
    type: CombatantKind = Field(description="Player or npc")
    roll: RollResult | None = Field(default=None, description="Initiative roll")
    total: int = Field(description="Initiative total")
    enemy_id: str | None = Field(default=None, alias="enemyId")
    rolled_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_player(self) -> bool:
        return self.type == CombatantKind.PLAYER


class CombatEncounter(BaseModel):
    """The single active encounter of a game.

    Attributes:
        active: Whether combat is running.
        round: Current round, 1-based while active and 0 when inactive.
        initiative: Turn order, sorted descending by total.
        current_turn_index: Index of the acting entry (0 when empty).
        enemies: Every enemy spawned into the encounter, alive or dead.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    active: bool = Field(default=False)
    round: int = Field(default=0, ge=0)
    initiative: list[InitiativeEntry] = Field(default_factory=list)
    current_turn_index: int = Field(default=0, ge=0, alias="currentTurnIndex")
    enemies: list[Enemy] = Field(default_factory=list)

    def find_enemy(self, enemy_id: str | None) -> Enemy | None:
        if enemy_id is None:
            return None
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def entry_for_enemy(self, enemy_id: str) -> InitiativeEntry | None:
        for entry in self.initiative:
            if entry.enemy_id == enemy_id:
                return entry
        return None

    def is_dead_npc(self, entry: InitiativeEntry) -> bool:
        """Whether an entry belongs to a dead enemy. Players never count as dead."""
        if entry.is_player:
            return False
        enemy = self.find_enemy(entry.enemy_id)
        return enemy is not None and enemy.is_dead

    def reset(self) -> None:
        """Return to the inactive, empty state."""
        self.active = False
        self.round = 0
        self.initiative = []
        self.current_turn_index = 0
        self.enemies = []


__all__ = [
    "CombatantKind",
    "HitPoints",
    "Enemy",
    "InitiativeEntry",
    "CombatEncounter",
]
