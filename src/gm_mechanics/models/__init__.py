"""Pydantic models for the combat and mechanics core.

This package contains the validated records the engine reads and mutates:
rolls, characters, monster templates, worlds, encounters and the per-game
state record, plus the system messages returned to the narration layer.
"""

from gm_mechanics.models.abilities import (
    ability_modifier,
    ability_score,
    canonical_ability,
    normalize_ability_scores,
)
from gm_mechanics.models.character import Character
from gm_mechanics.models.combat import (
    CombatantKind,
    CombatEncounter,
    Enemy,
    HitPoints,
    InitiativeEntry,
)
from gm_mechanics.models.defenses import DamageDefenses, DefenseSets, normalize_damage_types
from gm_mechanics.models.game_state import GameState
from gm_mechanics.models.messages import SystemMessage, system_message
from gm_mechanics.models.monsters import MonsterAction, MonsterTemplate
from gm_mechanics.models.rolls import RollResult, RollType
from gm_mechanics.models.world import World


__all__ = [
    # Abilities
    "ability_modifier",
    "ability_score",
    "canonical_ability",
    "normalize_ability_scores",
    # Rolls
    "RollResult",
    "RollType",
    # Defenses
    "DamageDefenses",
    "DefenseSets",
    "normalize_damage_types",
    # Entities
    "Character",
    "MonsterAction",
    "MonsterTemplate",
    "World",
    # Combat
    "CombatantKind",
    "CombatEncounter",
    "Enemy",
    "HitPoints",
    "InitiativeEntry",
    # State
    "GameState",
    "SystemMessage",
    "system_message",
]
