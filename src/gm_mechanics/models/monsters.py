"""Monster template schemas.

Templates are read-only stat blocks. They come from three places: a world's
custom monster list, the built-in catalog and the content generator. The
generator returns camelCase JSON (``hitDice``, ``needsGeneration``), so
both spellings are accepted on input.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gm_mechanics.core.constants import DEFAULT_ABILITY_SCORE
from gm_mechanics.models.abilities import ability_score, normalize_ability_scores
from gm_mechanics.models.defenses import DefenseSets


class MonsterAction(BaseModel):
    """A single action from a monster's stat block.

    Attributes:
        name: Action name (``Scimitar``).
        desc: Free-text description shown to the narration layer.
        damage: Damage dice notation, if the action deals damage.
        damage_type: Damage type of ``damage``.
        to_hit: Attack bonus, if the action is an attack.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(description="Action name")
    desc: str = Field(default="", description="Action description")
    damage: str | None = Field(default=None, description="Damage dice notation")
    damage_type: str | None = Field(default=None, alias="damageType")
    to_hit: int | None = Field(default=None, alias="toHit")


class MonsterTemplate(DefenseSets):
    """A monster stat block that enemies are spawned from.

    Attributes:
        id: Identifier used by spawn directives (``goblin``).
        name: Display name.
        type: Creature type (``humanoid``, ``undead``).
        cr: Challenge rating as text (``1/4``, ``10``).
        ac: Armor class.
        hp: Average hit points; spawned enemies use this value.
        hit_dice: Hit dice notation, informational only.
        stats: Ability scores keyed by short name.
        actions: Stat block actions.
        needs_generation: True for a placeholder awaiting a generated template.
    """

    id: str = Field(min_length=1, description="Template identifier")
    name: str = Field(min_length=1, description="Display name")
    type: str = Field(default="Unknown", description="Creature type")
    cr: str = Field(default="0", description="Challenge rating")
    ac: int = Field(default=10, ge=0, description="Armor class")
    hp: int = Field(default=10, ge=0, description="Average hit points")
    hit_dice: str | None = Field(default=None, alias="hitDice")
    stats: dict[str, int] = Field(default_factory=dict, description="Ability scores")
    actions: list[MonsterAction] = Field(default_factory=list)
    needs_generation: bool = Field(default=False, alias="needsGeneration")

    @field_validator("cr", mode="before")
    @classmethod
    def coerce_cr(cls, value: Any) -> str:
        """Accept numeric challenge ratings (``0.25``, ``2``)."""
        if value is None:
            return "0"
        if isinstance(value, float):
            fractions = {0.125: "1/8", 0.25: "1/4", 0.5: "1/2"}
            if value in fractions:
                return fractions[value]
            if value.is_integer():
                return str(int(value))
        return str(value)

    @field_validator("stats", mode="before")
    @classmethod
    def normalize_stats(cls, value: Any) -> dict[str, int]:
        return normalize_ability_scores(value)

    @property
    def dexterity(self) -> int:
        return ability_score(self.stats, "dex", DEFAULT_ABILITY_SCORE)

    def matches(self, key: str) -> bool:
        """Case-insensitive match against id or name."""
        needle = key.strip().lower()
        return needle in (self.id.lower(), self.name.lower())


__all__ = [
    "MonsterAction",
    "MonsterTemplate",
]
