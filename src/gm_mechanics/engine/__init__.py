"""Combat engine for the mechanics core.

Submodules:
    dice: Dice rolling backed by the d20 library
    mechanics: Resistance, temp HP, critical hit and concentration rules
    initiative: Initiative order and turn advancement
    monsters: Template resolution and generated-template rescaling
    generator: Async monster generation and its event inbox
    combat: The encounter state machine
    directives: Structured directives from the narration layer

Example:
    >>> from gm_mechanics.engine import CombatSession, DirectiveProcessor
    >>> from gm_mechanics.models import Character, GameState
    >>>
    >>> session = CombatSession()
    >>> processor = DirectiveProcessor(session)
    >>> state = GameState(world_id="greyhawk")
    >>> outcome = processor.process(
    ...     state,
    ...     [{"kind": "spawn_enemy", "monster_id": "goblin"}, {"kind": "start_combat"}],
    ...     Character(name="Aria", stats={"dex": 14}),
    ... )
"""

from __future__ import annotations

from gm_mechanics.engine.combat import CombatSession
from gm_mechanics.engine.dice import DiceRoller, d20_notation, format_modifier, format_roll
from gm_mechanics.engine.directives import (
    AdvanceTurn,
    Damage,
    DefenseChange,
    Directive,
    DirectiveOutcome,
    DirectiveProcessor,
    EndCombat,
    PlayerDamage,
    SpawnEnemy,
    StartCombat,
    TempHP,
    parse_directives,
)
from gm_mechanics.engine.generator import (
    GenerationRequest,
    MonsterGenerationService,
    MonsterGenerator,
    MonsterIdentified,
    WorldContext,
)
from gm_mechanics.engine.initiative import InitiativeTracker
from gm_mechanics.engine.mechanics import (
    ConcentrationResult,
    CriticalHitResult,
    DamageModifier,
    DamageResolution,
    DefenseKind,
    ResistanceResult,
    RollEvent,
    TempHPResult,
    apply_critical_hit,
    apply_damage_with_type,
    apply_temp_hp,
    calculate_damage_after_resistance,
    check_concentration,
    double_damage_dice,
    set_defense,
)
from gm_mechanics.engine.monsters import EnemyRegistry, apply_generated_template, slugify


__all__ = [
    # Dice
    "DiceRoller",
    "d20_notation",
    "format_modifier",
    "format_roll",
    # Mechanics
    "ConcentrationResult",
    "CriticalHitResult",
    "DamageModifier",
    "DamageResolution",
    "DefenseKind",
    "ResistanceResult",
    "RollEvent",
    "TempHPResult",
    "apply_critical_hit",
    "apply_damage_with_type",
    "apply_temp_hp",
    "calculate_damage_after_resistance",
    "check_concentration",
    "double_damage_dice",
    "set_defense",
    # Initiative
    "InitiativeTracker",
    # Monsters
    "EnemyRegistry",
    "apply_generated_template",
    "slugify",
    # Generation
    "GenerationRequest",
    "MonsterGenerationService",
    "MonsterGenerator",
    "MonsterIdentified",
    "WorldContext",
    # Session
    "CombatSession",
    # Directives
    "AdvanceTurn",
    "Damage",
    "DefenseChange",
    "Directive",
    "DirectiveOutcome",
    "DirectiveProcessor",
    "EndCombat",
    "PlayerDamage",
    "SpawnEnemy",
    "StartCombat",
    "TempHP",
    "parse_directives",
]
