"""Pytest configuration and shared fixtures.

This module provides common fixtures for the combat core test suite: a
scripted dice roller for deterministic rolls, a fake monster generator
that never touches the network, and sample characters, worlds and games.
"""

from __future__ import annotations

import re
from collections import deque
from typing import TYPE_CHECKING, Any

import pytest

from gm_mechanics.core.config import GameSettings
from gm_mechanics.engine.combat import CombatSession
from gm_mechanics.engine.dice import DiceRoller
from gm_mechanics.engine.generator import MonsterGenerationService, WorldContext
from gm_mechanics.models import Character, GameState, MonsterTemplate, World
from gm_mechanics.storage import InMemoryWorldStore


if TYPE_CHECKING:
    from collections.abc import Generator


_TERM = re.compile(r"([+-]?)(\d*d\d+|\d+)", re.IGNORECASE)


# =============================================================================
# Test Doubles
# =============================================================================


class ScriptedDiceRoller(DiceRoller):
    """Dice roller that returns queued die faces instead of random ones.

    Each die pops the next queued value; with the queue empty every die
    shows ``default`` (capped at the die size). Flat modifiers are added
    as written, so ``1d20+2`` with a queued 15 totals 17.
    """

    def __init__(self, default: int = 10) -> None:
        super().__init__()
        self.default = default
        self._queue: deque[int] = deque()
        self.notations: list[str] = []

    def queue(self, *values: int) -> None:
        self._queue.extend(values)

    def _next_die(self, sides: int) -> int:
        if self._queue:
            return self._queue.popleft()
        return min(self.default, sides)

    def _roll_once(self, notation: str) -> tuple[list[int], int]:
        self.notations.append(notation)
        compact = notation.replace(" ", "")
        terms = _TERM.findall(compact)
        if not terms or "".join(sign + body for sign, body in terms) != compact:
            return super()._roll_once(notation)

        dice: list[int] = []
        total = 0
        for sign, body in terms:
            factor = -1 if sign == "-" else 1
            if "d" in body.lower():
                count_text, sides_text = body.lower().split("d")
                count = int(count_text) if count_text else 1
                faces = [self._next_die(int(sides_text)) for _ in range(count)]
                dice.extend(faces)
                total += factor * sum(faces)
            else:
                total += factor * int(body)
        return dice, total


class FakeMonsterGenerator:
    """Async generator returning canned templates.

    Attributes:
        calls: ``(monster_name, monster_id)`` for every request.
        fail: When True every call raises.
    """

    def __init__(self, templates: dict[str, dict[str, Any]] | None = None) -> None:
        self.templates = templates or {}
        self.calls: list[tuple[str, str | None]] = []
        self.fail = False

    async def generate(
        self,
        monster_name: str,
        world: WorldContext,
        *,
        monster_id: str | None = None,
    ) -> MonsterTemplate:
        self.calls.append((monster_name, monster_id))
        if self.fail:
            raise RuntimeError("generator offline")

        data = {
            "id": monster_id or monster_name,
            "name": monster_name,
            "type": "Monstrosity",
            "cr": "2",
            "ac": 14,
            "hp": 30,
            "stats": {"str": 16, "dex": 12, "con": 14},
            "resistances": ["poison"],
            "actions": [{"name": "Bite", "desc": "Melee Weapon Attack."}],
        }
        data.update(self.templates.get(monster_name, {}))
        return MonsterTemplate.model_validate(data)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from gm_mechanics.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def game_settings() -> GameSettings:
    """Provide default game settings independent of the environment."""
    return GameSettings(monster_generation_enabled=True)


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Provide a real, seeded dice roller."""
    return DiceRoller(seed=42)


@pytest.fixture
def scripted_roller() -> ScriptedDiceRoller:
    """Provide a dice roller with scripted faces (default 10)."""
    return ScriptedDiceRoller()


@pytest.fixture
def fake_generator() -> FakeMonsterGenerator:
    return FakeMonsterGenerator()


@pytest.fixture
def generation_service(fake_generator: FakeMonsterGenerator) -> MonsterGenerationService:
    return MonsterGenerationService(fake_generator)


@pytest.fixture
def world_store(sample_world: World) -> InMemoryWorldStore:
    return InMemoryWorldStore([sample_world])


@pytest.fixture
def session(
    scripted_roller: ScriptedDiceRoller,
    generation_service: MonsterGenerationService,
    world_store: InMemoryWorldStore,
    game_settings: GameSettings,
) -> CombatSession:
    """Provide a combat session wired to test doubles."""
    return CombatSession(
        roller=scripted_roller,
        generation=generation_service,
        world_store=world_store,
        settings=game_settings,
    )


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_character() -> Character:
    """Provide a player character with DEX 14 and CON save proficiency."""
    return Character(
        name="Aria",
        stats={
            "strength": 10,
            "dexterity": 14,
            "constitution": 14,
            "intelligence": 12,
            "wisdom": 13,
            "charisma": 8,
        },
        proficiency_bonus=2,
        saving_throws=["con"],
    )


@pytest.fixture
def sample_world() -> World:
    """Provide a world with one custom monster."""
    return World(
        id="w1",
        name="Greyhawk",
        brief_description="A city of thieves and wizards.",
        monsters=[
            MonsterTemplate(
                id="sewer_rat_king",
                name="Sewer Rat King",
                type="Beast",
                cr="1",
                ac=12,
                hp=18,
                stats={"dex": 16},
            )
        ],
    )


@pytest.fixture
def game_state() -> GameState:
    """Provide an empty game in world ``w1``."""
    return GameState(id="g1", world_id="w1")
