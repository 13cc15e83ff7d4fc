"""GM Mechanics - combat and rules core for AI-narrated tabletop play.

The narration model tells the story; this package owns the numbers. Hit
points, initiative order, damage types and concentration are computed
here from structured directives, and the results go back to the model as
system messages it must treat as ground truth.

Example:
    >>> from gm_mechanics import CombatSession, GameState, Character
    >>>
    >>> session = CombatSession()
    >>> state = GameState(world_id="greyhawk")
    >>> goblin = session.spawn_enemy(state, None, "goblin")
    >>> messages = session.start_combat(state, Character(name="Aria", stats={"dex": 14}))
    >>> session.apply_damage(state, "goblin", 5)
    'Goblin takes 5 damage. [HP: 2/7]'

Modules:
    core: Configuration, logging, constants and exceptions.
    models: Pydantic V2 schemas for rolls, characters, monsters and encounters.
    data: The built-in monster catalog.
    engine: Dice, damage rules, initiative, spawning and the combat session.
    storage: World stores for monster templates.
"""

from __future__ import annotations

from gm_mechanics.core.config import Settings, get_settings
from gm_mechanics.core.exceptions import GmMechanicsError
from gm_mechanics.core.logging import configure_logging, get_logger
from gm_mechanics.engine import (
    CombatSession,
    DiceRoller,
    DirectiveProcessor,
    EnemyRegistry,
    MonsterGenerationService,
    apply_critical_hit,
    apply_damage_with_type,
    check_concentration,
)
from gm_mechanics.models import (
    Character,
    CombatEncounter,
    Enemy,
    GameState,
    MonsterTemplate,
    RollResult,
    SystemMessage,
    World,
)
from gm_mechanics.storage import InMemoryWorldStore, SqliteWorldStore


__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "Settings",
    "get_settings",
    "GmMechanicsError",
    "configure_logging",
    "get_logger",
    # Models
    "Character",
    "CombatEncounter",
    "Enemy",
    "GameState",
    "MonsterTemplate",
    "RollResult",
    "SystemMessage",
    "World",
    # Engine
    "CombatSession",
    "DiceRoller",
    "DirectiveProcessor",
    "EnemyRegistry",
    "MonsterGenerationService",
    "apply_critical_hit",
    "apply_damage_with_type",
    "check_concentration",
    # Storage
    "InMemoryWorldStore",
    "SqliteWorldStore",
]
