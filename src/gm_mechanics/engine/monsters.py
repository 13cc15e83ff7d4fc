"""Monster template resolution and generated-template rescaling.

``EnemyRegistry.resolve`` looks a monster up in three tiers:

1. The world's own monster list.
2. The built-in catalog.
3. A placeholder template, synthesized on the spot and flagged
   ``needs_generation`` while a full template is generated in the background.

When a generated template arrives, ``apply_generated_template`` updates
live enemies spawned from the placeholder while preserving damage they
have already taken.
"""

from __future__ import annotations

import re

from gm_mechanics.core.config import GameSettings, get_settings
from gm_mechanics.core.logging import get_logger
from gm_mechanics.data.monsters import find_catalog_monster
from gm_mechanics.engine.generator import GenerationRequest, MonsterGenerationService, WorldContext
from gm_mechanics.models.combat import CombatEncounter, Enemy
from gm_mechanics.models.monsters import MonsterTemplate
from gm_mechanics.models.world import World
from gm_mechanics.storage.world_store import WorldStore, upsert_monster


logger = get_logger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lower-case identifier form of a name (``"Void Spider"`` -> ``"void_spider"``)."""
    return _NON_SLUG.sub("_", name.strip().lower()).strip("_")


# =============================================================================
# Rescaling
# =============================================================================


def rescale_enemy(enemy: Enemy, template: MonsterTemplate) -> None:
    """Move an enemy onto a new template, keeping the damage it has taken.

    An undamaged enemy goes to the new maximum. A damaged one keeps the
    same absolute damage, but never drops below 1 HP from the update.
    """
    old_max = enemy.hp.max
    new_max = template.hp

    if enemy.hp.current == old_max:
        current = new_max
    else:
        damage_taken = old_max - enemy.hp.current
        current = max(1, new_max - damage_taken)

    enemy.hp.max = new_max
    enemy.hp.current = current
    enemy.ac = template.ac
    enemy.stats = dict(template.stats)
    enemy.resistances = list(template.resistances)
    enemy.immunities = list(template.immunities)
    enemy.vulnerabilities = list(template.vulnerabilities)
    enemy.actions = [action.model_copy() for action in template.actions]


def apply_generated_template(
    encounter: CombatEncounter | None,
    template: MonsterTemplate,
) -> list[Enemy]:
    """Rescale every live enemy spawned from ``template.id``.

    Dead enemies are left alone. An ended encounter has no enemies, so a
    late template is a no-op here.

    Returns:
        The enemies that were updated.
    """
    if encounter is None:
        return []

    key = template.id.lower()
    updated: list[Enemy] = []
    for enemy in encounter.enemies:
        if enemy.template_id.lower() != key or enemy.is_dead:
            continue
        old_max = enemy.hp.max
        rescale_enemy(enemy, template)
        updated.append(enemy)
        logger.info(
            "Enemy rescaled",
            enemy=enemy.name,
            old_max=old_max,
            new_max=enemy.hp.max,
            current=enemy.hp.current,
        )
    return updated


# =============================================================================
# Registry
# =============================================================================


class EnemyRegistry:
    """Resolve monster identifiers to templates.

    Attributes:
        generation: Service used to request generated templates, or None to
            never request generation.
        world_store: Store that placeholder templates are persisted to.
    """

    def __init__(
        self,
        *,
        generation: MonsterGenerationService | None = None,
        world_store: WorldStore | None = None,
        settings: GameSettings | None = None,
    ) -> None:
        self.generation = generation
        self.world_store = world_store
        self._settings = settings or get_settings().game

    def resolve(
        self,
        monster_id: str,
        world: World | None,
        name_override: str | None = None,
        *,
        world_id: str | None = None,
    ) -> MonsterTemplate:
        """Resolve a monster id to a template.

        Never raises for an unknown id; the caller always gets a usable
        template.

        Args:
            monster_id: Identifier or name used by the narration layer.
            world: World whose monster list is checked first.
            name_override: Display name for a placeholder.
            world_id: World to generate for when ``world`` is not loaded.

        Returns:
            A copy of the resolved template.
        """
        if world is not None:
            found = world.find_monster(monster_id)
            if found is not None:
                if found.needs_generation:
                    self._request_generation(found.id, name_override or found.name, world)
                logger.debug("Template resolved from world", monster=monster_id, world=world.id)
                return found.model_copy(deep=True)

        catalog = find_catalog_monster(monster_id)
        if catalog is not None:
            logger.debug("Template resolved from catalog", monster=monster_id)
            return catalog

        placeholder = self.placeholder(monster_id, name_override)
        logger.info(
            "Unknown monster, using placeholder",
            monster=monster_id,
            name=placeholder.name,
        )

        if world is not None:
            upsert_monster(world, placeholder.model_copy(deep=True))
            if self.world_store is not None:
                stored = placeholder.model_copy(deep=True)
                self.world_store.update(world.id, lambda w: self._store_placeholder(w, stored))

        self._request_generation(placeholder.id, placeholder.name, world, world_id)
        return placeholder

    def placeholder(self, monster_id: str, name_override: str | None = None) -> MonsterTemplate:
        """Build a minimal stand-in template flagged for generation."""
        settings = self._settings
        return MonsterTemplate(
            id=monster_id,
            name=name_override or monster_id,
            hp=settings.placeholder_hp,
            ac=settings.placeholder_ac,
            stats={"dex": settings.default_dexterity},
            actions=[],
            needs_generation=True,
        )

    @staticmethod
    def _store_placeholder(world: World, placeholder: MonsterTemplate) -> None:
        if world.find_monster(placeholder.id) is None:
            upsert_monster(world, placeholder)

    def should_generate(self, monster_id: str) -> bool:
        """Whether an id is specific enough to be worth generating."""
        settings = self._settings
        if not settings.monster_generation_enabled:
            return False
        slug = slugify(monster_id)
        if len(slug) < settings.min_generation_name_length:
            return False
        return slug not in settings.generic_monster_ids

    def _request_generation(
        self,
        monster_id: str,
        monster_name: str,
        world: World | None,
        world_id: str | None = None,
    ) -> None:
        if self.generation is None or not self.should_generate(monster_id):
            return

        if world is not None:
            context = WorldContext.from_world(world)
        elif world_id is not None:
            context = WorldContext(world_id=world_id)
        else:
            logger.info("Monster generation skipped: no world", monster=monster_id)
            return

        self.generation.request(
            GenerationRequest(
                monster_id=monster_id,
                monster_name=monster_name,
                world=context,
            )
        )


__all__ = [
    "slugify",
    "rescale_enemy",
    "apply_generated_template",
    "EnemyRegistry",
]
