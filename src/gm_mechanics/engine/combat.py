"""Combat session: the encounter state machine.

A ``CombatSession`` binds the initiative tracker, the enemy registry and
the damage rules to a game's ``GameState``. It owns one generation inbox,
so each running game should have its own session.

States are ``inactive -> active -> inactive``. Spawning may happen before
combat starts; ``start_combat`` keeps enemies already spawned and only
re-rolls the player.

Expected failures never raise: a missing target comes back as a
``"Could not find target: X"`` string, and a missing encounter or
character is logged and yields an empty result.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from gm_mechanics.core.config import GameSettings, get_settings
from gm_mechanics.core.constants import (
    DEAD_CONDITION,
    DEAD_SUFFIX,
    PLAYER_INITIATIVE_ID,
    PLAYER_TARGET_ALIASES,
)
from gm_mechanics.core.logging import get_logger
from gm_mechanics.engine.dice import DiceRoller, format_roll
from gm_mechanics.engine.generator import MonsterGenerationService, MonsterIdentified
from gm_mechanics.engine.initiative import InitiativeTracker
from gm_mechanics.engine.mechanics import apply_damage_with_type, apply_temp_hp
from gm_mechanics.engine.monsters import EnemyRegistry, apply_generated_template
from gm_mechanics.models.abilities import ability_score
from gm_mechanics.models.character import Character
from gm_mechanics.models.combat import (
    CombatantKind,
    CombatEncounter,
    Enemy,
    HitPoints,
    InitiativeEntry,
)
from gm_mechanics.models.game_state import GameState
from gm_mechanics.models.messages import SystemMessage, system_message
from gm_mechanics.models.world import World
from gm_mechanics.storage.world_store import WorldStore, upsert_monster


logger = get_logger(__name__)


def is_player_target(target_id: str) -> bool:
    return target_id.strip().lower() in PLAYER_TARGET_ALIASES


def not_found_message(target_id: str) -> str:
    return f"Could not find target: {target_id}"


def _roll_metadata(entry: InitiativeEntry, actor_type: str) -> dict[str, Any]:
    return {
        "dice_roll": entry.roll.model_dump(mode="json") if entry.roll else None,
        "type": "initiative",
        "actor_type": actor_type,
        "actor_name": entry.name,
        "roll_id": f"roll_{uuid4().hex[:8]}",
    }


class CombatSession:
    """Run combat encounters for one game.

    Example:
        >>> session = CombatSession()
        >>> state = GameState(world_id="w1")
        >>> messages = session.start_combat(state, Character(name="Aria"), None, "Goblins!")
        >>> state.combat.active
        True
    """

    def __init__(
        self,
        *,
        roller: DiceRoller | None = None,
        registry: EnemyRegistry | None = None,
        generation: MonsterGenerationService | None = None,
        world_store: WorldStore | None = None,
        settings: GameSettings | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            roller: Dice roller for initiative.
            registry: Template resolver; built from the other arguments if omitted.
            generation: Generation service whose inbox this session drains.
            world_store: Store that placeholders and generated templates go to.
            settings: Game settings; defaults to the application settings.
        """
        self._settings = settings or get_settings().game
        self.roller = roller or DiceRoller()
        self.world_store = world_store

        if registry is not None:
            generation = generation or registry.generation
        elif generation is None and self._settings.monster_generation_enabled:
            generation = MonsterGenerationService()
        self.generation = generation
        self.registry = registry or EnemyRegistry(
            generation=self.generation,
            world_store=world_store,
            settings=self._settings,
        )

    def tracker(self, encounter: CombatEncounter) -> InitiativeTracker:
        return InitiativeTracker(encounter, self.roller)

    # -------------------------------------------------------------------------
    # Start / End
    # -------------------------------------------------------------------------

    def start_combat(
        self,
        game_state: GameState | None,
        character: Character | None,
        world: World | None = None,
        description: str = "",
    ) -> list[SystemMessage]:
        """Start an encounter and roll the player's initiative.

        Enemies spawned before this call keep their entries. Any existing
        player entry is replaced by a fresh roll.

        Returns:
            Initiative messages (player first, then enemies already in the
            order), the turn-order announcement and the combat-start message.
            Empty if the game state or character is missing.
        """
        if game_state is None or game_state.combat is None:
            logger.error("Cannot start combat: game state has no encounter record")
            return []
        if character is None:
            logger.error("Cannot start combat: no character", game_id=game_state.id)
            return []

        encounter = game_state.combat
        if encounter.active:
            logger.warning("Combat already active, re-rolling player initiative", game_id=game_state.id)

        tracker = self.tracker(encounter)
        tracker.remove_player_entries()

        player_name = character.name or "Player"
        player_entry = tracker.roll_entry(
            PLAYER_INITIATIVE_ID,
            player_name,
            CombatantKind.PLAYER,
            character.score("dex"),
        )
        encounter.initiative.append(player_entry)
        tracker.sort()
        encounter.active = True
        encounter.round = 1
        encounter.current_turn_index = 0

        messages = [
            system_message(
                f"⚔️ Initiative (You): {format_roll(player_entry.roll)}",
                **_roll_metadata(player_entry, "player"),
            )
        ]
        for entry in encounter.initiative:
            if entry.is_player:
                continue
            messages.append(self._npc_initiative_message(entry))

        first = encounter.initiative[0]
        turn_order = "🎯 You go first! What do you do?" if first.is_player else f"🎯 {first.name} goes first!"
        messages.append(
            system_message(
                turn_order,
                turn_order=True,
                first_actor=str(first.type),
                first_actor_name=first.name,
                ephemeral=True,
            )
        )
        messages.append(
            system_message(
                f"⚔️ Combat has begun! {description or ''}".strip(),
                combat_event="start",
            )
        )

        logger.info(
            "Combat started",
            game_id=game_state.id,
            world=world.id if world else None,
            combatants=len(encounter.initiative),
            first=first.name,
        )
        return messages

    def end_combat(self, game_state: GameState | None, outcome: str = "") -> SystemMessage | None:
        """End the encounter. Initiative and enemies are cleared entirely."""
        if game_state is None or game_state.combat is None:
            logger.error("Cannot end combat: game state has no encounter record")
            return None

        game_state.combat.reset()
        logger.info("Combat ended", game_id=game_state.id, outcome=outcome)
        return system_message(f"✓ Combat ended: {outcome}".rstrip(), combat_event="end")

    # -------------------------------------------------------------------------
    # Spawning
    # -------------------------------------------------------------------------

    def spawn_enemy(
        self,
        game_state: GameState | None,
        world: World | None,
        monster_id: str,
        name_override: str | None = None,
    ) -> Enemy | None:
        """Spawn an enemy from a template and roll its initiative.

        Creates the encounter record if the game has none. Unknown monster
        ids spawn from a placeholder template.

        Returns:
            The new enemy, or None if there is no game state.
        """
        if game_state is None:
            logger.error("Cannot spawn enemy: no game state", monster=monster_id)
            return None
        if game_state.combat is None:
            game_state.combat = CombatEncounter()
        encounter = game_state.combat

        template = self.registry.resolve(
            monster_id,
            world,
            name_override,
            world_id=game_state.world_id,
        )

        base_name = name_override or template.name
        siblings = sum(1 for e in encounter.enemies if e.template_id == template.id)
        name = base_name if siblings == 0 else f"{base_name} {siblings + 1}"

        enemy = Enemy(
            id=f"{template.id}_{int(time.time() * 1000)}_{uuid4().hex[:6]}",
            template_id=template.id,
            name=name,
            hp=HitPoints(current=template.hp, max=template.hp),
            ac=template.ac,
            stats=dict(template.stats),
            resistances=list(template.resistances),
            immunities=list(template.immunities),
            vulnerabilities=list(template.vulnerabilities),
            actions=[action.model_copy() for action in template.actions],
        )
        encounter.enemies.append(enemy)

        tracker = self.tracker(encounter)
        entry = tracker.roll_entry(
            f"init_{enemy.id}",
            enemy.name,
            CombatantKind.NPC,
            ability_score(enemy.stats, "dex", self._settings.default_dexterity),
            enemy_id=enemy.id,
        )
        tracker.add(entry)

        logger.info(
            "Enemy spawned",
            enemy=enemy.name,
            template=template.id,
            hp=enemy.hp.max,
            ac=enemy.ac,
            placeholder=template.needs_generation,
        )
        return enemy

    def spawn_messages(self, game_state: GameState, enemy: Enemy) -> list[SystemMessage]:
        """Announcement for a spawned enemy, plus its initiative if combat is running."""
        messages = [system_message(f"⚔️ **{enemy.name}** joins the battle!", enemy_id=enemy.id)]
        encounter = game_state.combat
        if encounter is not None and encounter.active:
            entry = encounter.entry_for_enemy(enemy.id)
            if entry is not None:
                messages.append(self._npc_initiative_message(entry))
        return messages

    def _npc_initiative_message(self, entry: InitiativeEntry) -> SystemMessage:
        roll_text = format_roll(entry.roll) if entry.roll else str(entry.total)
        return system_message(
            f"⚔️ Initiative ({entry.name}): {roll_text}",
            **_roll_metadata(entry, "npc"),
        )

    # -------------------------------------------------------------------------
    # Damage
    # -------------------------------------------------------------------------

    def find_enemy(self, game_state: GameState | None, target_id: str) -> Enemy | None:
        """Find an enemy by exact id, exact name, then name substring.

        All matching is case-insensitive except the id. The substring
        fallback takes the first enemy in spawn order and is logged.
        """
        if game_state is None or game_state.combat is None:
            return None
        needle = target_id.strip()
        if not needle:
            return None
        enemies = game_state.combat.enemies
        lowered = needle.lower()

        for enemy in enemies:
            if enemy.id == needle:
                return enemy
        for enemy in enemies:
            if enemy.name.lower() == lowered:
                return enemy
        for enemy in enemies:
            if lowered in enemy.name.lower():
                logger.warning("Fuzzy target match", target=target_id, matched=enemy.name)
                return enemy
        return None

    def apply_damage(self, game_state: GameState | None, target_id: str, amount: int) -> str | None:
        """Subtract hit points from an enemy.

        No resistance handling happens here; pass an amount already run
        through ``apply_damage_with_type`` when damage is typed.

        Returns:
            None for the player (route the damage to the sheet owner), a
            not-found string for an unknown target, otherwise
            ``"<name> takes N damage. [HP: c/m]"`` or ``"... [DEAD]"``.
        """
        if is_player_target(target_id):
            return None
        if game_state is None or game_state.combat is None:
            logger.error("Cannot apply damage: game state has no encounter record", target=target_id)
            return not_found_message(target_id)

        enemy = self.find_enemy(game_state, target_id)
        if enemy is None:
            logger.warning("Damage target not found", target=target_id)
            return not_found_message(target_id)

        amount = max(0, amount)
        remaining = enemy.hp.current - amount
        if remaining <= 0:
            enemy.hp.current = 0
            self._mark_dead(game_state.combat, enemy)
        else:
            enemy.hp.current = remaining

        logger.info("Damage applied", enemy=enemy.name, amount=amount, hp=enemy.hp.current)

        if enemy.is_dead:
            return f"{enemy.name} takes {amount} damage. [DEAD]"
        return f"{enemy.name} takes {amount} damage. [HP: {enemy.hp.current}/{enemy.hp.max}]"

    def _mark_dead(self, encounter: CombatEncounter, enemy: Enemy) -> None:
        if DEAD_CONDITION not in enemy.conditions:
            enemy.conditions.append(DEAD_CONDITION)
            logger.info("Enemy died", enemy=enemy.name)
        entry = encounter.entry_for_enemy(enemy.id)
        if entry is not None and not entry.name.endswith(DEAD_SUFFIX):
            entry.name = f"{entry.name}{DEAD_SUFFIX}"

    def apply_typed_damage(
        self,
        game_state: GameState | None,
        target_id: str,
        amount: int,
        damage_type: str | None = None,
    ) -> str | None:
        """Apply damage to an enemy through its defenses and temp HP.

        Returns:
            None for the player, a not-found string, or the damage status
            followed by the defense annotation, e.g.
            ``"Skeleton takes 10 damage. [HP: 3/13] (Vulnerable)"``.
        """
        if is_player_target(target_id):
            return None
        enemy = self.find_enemy(game_state, target_id)
        if enemy is None:
            logger.warning("Damage target not found", target=target_id)
            return not_found_message(target_id)

        resolution = apply_damage_with_type(enemy, amount, damage_type)
        if resolution.temp_hp_removed:
            enemy.temp_hp = max(0, enemy.temp_hp - resolution.temp_hp_removed)

        status = self.apply_damage(game_state, enemy.id, resolution.actual_damage)
        if resolution.message:
            return f"{status} {resolution.message}"
        return status

    def grant_temp_hp(self, game_state: GameState | None, target_id: str, amount: int) -> str | None:
        """Offer temporary hit points to an enemy. None for the player."""
        if is_player_target(target_id):
            return None
        enemy = self.find_enemy(game_state, target_id)
        if enemy is None:
            return not_found_message(target_id)

        result = apply_temp_hp(enemy, amount)
        enemy.temp_hp = result.new_temp_hp
        return f"🛡️ **Temporary HP** ({enemy.name}): {result.message}"

    # -------------------------------------------------------------------------
    # Turns
    # -------------------------------------------------------------------------

    def advance_turn(self, game_state: GameState | None) -> SystemMessage | None:
        """Advance to the next living combatant.

        Returns:
            A turn announcement, or None if combat is inactive or empty.
        """
        if game_state is None or game_state.combat is None:
            return None
        encounter = game_state.combat
        tracker = self.tracker(encounter)

        entry = tracker.advance()
        if entry is None:
            return None

        return system_message(
            f"🔄 Round {encounter.round}{tracker.turn_description()}",
            turn_order=True,
            round=encounter.round,
            actor_type=str(entry.type),
            actor_name=entry.name,
        )

    def current_turn_description(self, game_state: GameState | None) -> str:
        """Suffix naming whose turn it is, empty when combat is not running."""
        if game_state is None or game_state.combat is None or not game_state.combat.active:
            return ""
        return self.tracker(game_state.combat).turn_description()

    # -------------------------------------------------------------------------
    # Generated Templates
    # -------------------------------------------------------------------------

    def apply_pending_updates(
        self,
        game_state: GameState | None,
        world: World | None = None,
    ) -> list[SystemMessage]:
        """Merge finished monster generations into the world and the encounter.

        Each template is written to the world store (and to ``world`` when
        it is the same world). Live enemies spawned from the placeholder
        are rescaled. Identification messages are appended to
        ``game_state.messages`` and also returned.
        """
        if self.generation is None:
            return []

        messages: list[SystemMessage] = []
        for event in self.generation.collect():
            message = self._apply_identified(event, game_state, world)
            if message is not None:
                messages.append(message)

        if game_state is not None and messages:
            game_state.add_messages(messages)
        return messages

    async def settle(self, game_state: GameState | None, world: World | None = None) -> list[SystemMessage]:
        """Wait for outstanding generations, then apply them."""
        if self.generation is not None:
            await self.generation.drain()
        return self.apply_pending_updates(game_state, world)

    def _apply_identified(
        self,
        event: MonsterIdentified,
        game_state: GameState | None,
        world: World | None,
    ) -> SystemMessage | None:
        template = event.template

        if self.world_store is not None:
            stored = template.model_copy(deep=True)
            self.world_store.update(event.world_id, lambda w: upsert_monster(w, stored))
        if world is not None and world.id == event.world_id:
            upsert_monster(world, template.model_copy(deep=True))

        if game_state is None:
            return None
        if game_state.world_id is not None and game_state.world_id != event.world_id:
            return None

        updated = apply_generated_template(game_state.combat, template)
        if not updated:
            logger.debug("No live enemies for generated template", template=template.id)
            return None

        return system_message(
            f"✨ **Monster Identified**: {template.name}\nType: {template.type} (CR {template.cr})",
            monster_update=True,
            template_id=template.id,
            enemy_ids=[enemy.id for enemy in updated],
        )


__all__ = [
    "CombatSession",
    "is_player_target",
    "not_found_message",
]
