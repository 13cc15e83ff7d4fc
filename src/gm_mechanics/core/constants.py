"""Rules and presentation constants shared across the engine."""

from __future__ import annotations

# =============================================================================
# Abilities
# =============================================================================

ABILITY_ALIASES = {
    "str": "str",
    "strength": "str",
    "dex": "dex",
    "dexterity": "dex",
    "con": "con",
    "constitution": "con",
    "int": "int",
    "intelligence": "int",
    "wis": "wis",
    "wisdom": "wis",
    "cha": "cha",
    "charisma": "cha",
}
"""Accepted spellings (lower-cased) mapped to the canonical short name."""

DEFAULT_ABILITY_SCORE = 10
"""Score assumed for an ability a stat block does not list."""

# =============================================================================
# Combat
# =============================================================================

DEAD_CONDITION = "Dead"
"""Condition appended to an enemy reduced to 0 HP."""

DEAD_SUFFIX = " (Dead)"
"""Suffix appended to the initiative name of a dead enemy."""

PLAYER_TARGET_ALIASES = frozenset({"player", "you"})
"""Damage targets that refer to the player character."""

PLAYER_INITIATIVE_ID = "init_player"
"""Initiative entry id of the player character."""

CONCENTRATION_BASE_DC = 10
"""Minimum concentration save DC."""

INITIATIVE_DIE = "1d20"
"""Die rolled for initiative, saves and attacks."""


__all__ = [
    "ABILITY_ALIASES",
    "DEFAULT_ABILITY_SCORE",
    "DEAD_CONDITION",
    "DEAD_SUFFIX",
    "PLAYER_TARGET_ALIASES",
    "PLAYER_INITIATIVE_ID",
    "CONCENTRATION_BASE_DC",
    "INITIATIVE_DIE",
]
