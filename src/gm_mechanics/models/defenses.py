"""Damage-type defenses shared by characters, enemies and templates.

Damage types are stored lower-cased and de-duplicated so that lookups in
the resistance calculator are plain membership tests.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_damage_types(value: Any) -> list[str]:
    """Lower-case, strip and de-duplicate a damage-type collection.

    Accepts a list/tuple/set of strings, a comma-separated string, or None.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, Iterable):
        return []

    seen: list[str] = []
    for item in value:
        if not isinstance(item, str):
            continue
        damage_type = item.strip().lower()
        if damage_type and damage_type not in seen:
            seen.append(damage_type)
    return seen


class DefenseSets(BaseModel):
    """Resistances, immunities and vulnerabilities.

    Attributes:
        resistances: Damage types halved (rounded down).
        immunities: Damage types reduced to zero.
        vulnerabilities: Damage types doubled.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    resistances: list[str] = Field(default_factory=list, description="Halved damage types")
    immunities: list[str] = Field(default_factory=list, description="Ignored damage types")
    vulnerabilities: list[str] = Field(default_factory=list, description="Doubled damage types")

    @field_validator("resistances", "immunities", "vulnerabilities", mode="before")
    @classmethod
    def normalize_types(cls, value: Any) -> list[str]:
        return normalize_damage_types(value)


class DamageDefenses(DefenseSets):
    """Defense sets plus a temporary hit point buffer.

    Attributes:
        temp_hp: Non-stacking buffer consumed before real hit points.
    """

    temp_hp: int = Field(default=0, ge=0, alias="tempHP", description="Temporary hit points")


__all__ = [
    "normalize_damage_types",
    "DefenseSets",
    "DamageDefenses",
]
