"""Dice roll result schema.

A ``RollResult`` is the DiceService contract: the individual kept dice,
the flat modifier, the total and the notation that produced them. Roll
results are embedded in initiative entries and system message metadata,
so the model is frozen and JSON-serializable.
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, computed_field


_SINGLE_D20 = re.compile(r"^\s*1?d20\b", re.IGNORECASE)


class RollType(StrEnum):
    """How the primary dice term was rolled."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


class RollResult(BaseModel):
    """Result of a dice roll.

    Attributes:
        notation: The dice notation that was rolled (e.g. ``1d20+3``).
        rolls: Individual kept dice values, in notation order.
        modifier: Flat modifier applied on top of the dice.
        total: Final total.
        roll_type: Normal, advantage or disadvantage.
        discarded_rolls: Dice from the discarded roll (advantage/disadvantage).
        label: Optional description, e.g. ``con saving throw``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    notation: str = Field(description="Dice notation rolled")
    rolls: list[int] = Field(default_factory=list, description="Kept dice values")
    modifier: int = Field(default=0, description="Flat modifier")
    total: int = Field(description="Final total")
    roll_type: RollType = Field(default=RollType.NORMAL)
    discarded_rolls: list[int] = Field(default_factory=list, description="Discarded dice")
    label: str | None = Field(default=None, description="What the roll was for")

    @computed_field(description="First kept die, if any")
    @property
    def natural(self) -> int | None:
        return self.rolls[0] if self.rolls else None

    @property
    def is_single_d20(self) -> bool:
        """Whether the primary term is a single d20."""
        return bool(_SINGLE_D20.match(self.notation)) and len(self.rolls) >= 1

    @property
    def is_nat20(self) -> bool:
        return self.is_single_d20 and self.rolls[0] == 20

    @property
    def is_nat1(self) -> bool:
        return self.is_single_d20 and self.rolls[0] == 1


__all__ = [
    "RollType",
    "RollResult",
]
