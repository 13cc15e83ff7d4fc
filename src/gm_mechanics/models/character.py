"""Player character view used by the mechanics core.

The character sheet itself belongs to the surrounding application. This
model is the slice the core reads: ability scores, save proficiencies,
defenses, temporary HP and the spell being concentrated on. The core never
writes the player's hit points; damage to the player is returned to the
caller instead.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from gm_mechanics.models.abilities import (
    ability_modifier,
    ability_score,
    canonical_ability,
    normalize_ability_scores,
)
from gm_mechanics.models.defenses import DamageDefenses


class Character(DamageDefenses):
    """The player character as seen by the combat core.

    Attributes:
        name: Display name.
        stats: Ability scores keyed by short name (``dex``, ``con``, ...).
        proficiency_bonus: Bonus added to proficient saving throws.
        saving_throws: Abilities with save proficiency (short names).
        concentration: Spell currently concentrated on, if any.
        current_hp: Current hit points (read only).
        max_hp: Maximum hit points (read only).
    """

    name: str = Field(default="Player", description="Display name")
    stats: dict[str, int] = Field(default_factory=dict, description="Ability scores")
    proficiency_bonus: int = Field(
        default=0,
        ge=0,
        le=10,
        alias="proficiencyBonus",
        description="Proficiency bonus",
    )
    saving_throws: list[str] = Field(
        default_factory=list,
        alias="savingThrows",
        description="Save proficiencies",
    )
    concentration: str | None = Field(default=None, description="Concentration spell")
    current_hp: int | None = Field(default=None, alias="currentHP")
    max_hp: int | None = Field(default=None, alias="maxHP")

    @field_validator("stats", mode="before")
    @classmethod
    def normalize_stats(cls, value: Any) -> dict[str, int]:
        return normalize_ability_scores(value)

    @field_validator("saving_throws", mode="before")
    @classmethod
    def normalize_saves(cls, value: Any) -> list[str]:
        """Accept a list or a comma-separated string of ability names."""
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        saves: list[str] = []
        for item in value:
            if not isinstance(item, str):
                continue
            short = canonical_ability(item)
            if short and short not in saves:
                saves.append(short)
        return saves

    def score(self, ability: str) -> int:
        """Ability score, defaulting to 10 when the sheet omits it."""
        return ability_score(self.stats, ability)

    def modifier(self, ability: str) -> int:
        return ability_modifier(self.score(ability))

    def save_bonus(self, ability: str) -> int:
        """Saving throw bonus: modifier plus proficiency if proficient."""
        short = canonical_ability(ability) or ability
        bonus = self.modifier(short)
        if short in self.saving_throws:
            bonus += self.proficiency_bonus
        return bonus


__all__ = [
    "Character",
]
