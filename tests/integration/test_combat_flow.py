"""Integration tests for a full combat flow."""

from __future__ import annotations

import asyncio

import pytest

from gm_mechanics.core.config import GameSettings
from gm_mechanics.engine import CombatSession, DiceRoller, DirectiveProcessor, MonsterGenerationService
from gm_mechanics.models import Character, GameState, World
from gm_mechanics.storage import SqliteWorldStore


@pytest.fixture
def live_session(
    fake_generator,
    tmp_path,
    sample_world: World,
) -> CombatSession:
    """A session with real dice and a SQLite world store."""
    store = SqliteWorldStore(tmp_path / "worlds.db")
    store.save(sample_world)
    return CombatSession(
        roller=DiceRoller(seed=7),
        generation=MonsterGenerationService(fake_generator),
        world_store=store,
        settings=GameSettings(monster_generation_enabled=True),
    )


class TestCombatFlow:
    """End-to-end encounter scenarios."""

    def test_goblin_fight(
        self,
        live_session: CombatSession,
        game_state: GameState,
        sample_character: Character,
        sample_world: World,
    ) -> None:
        """Test a goblin fight from initiative to victory."""
        processor = DirectiveProcessor(live_session)

        outcome = processor.process(
            game_state,
            [
                {"kind": "spawn_enemy", "monster_id": "goblin"},
                {"kind": "start_combat", "description": "A goblin leaps from the brush."},
            ],
            sample_character,
            sample_world,
        )

        player_entry = next(e for e in game_state.combat.initiative if e.is_player)
        assert player_entry.roll.notation == "1d20+2"
        assert outcome.messages[0].content.startswith("⚔️ Initiative (You): 🎲 1d20+2:")
        assert game_state.combat.round == 1

        goblin = game_state.combat.enemies[0]
        first = processor.process(game_state, [{"kind": "damage", "target": goblin.id, "amount": 5}])
        assert first.messages[0].content == "⚔️ Goblin takes 5 damage. [HP: 2/7]"

        second = processor.process(game_state, [{"kind": "damage", "target": "Goblin", "amount": 5}])
        assert second.messages[0].content == "⚔️ Goblin takes 5 damage. [DEAD]"
        assert goblin.conditions == ["Dead"]
        assert goblin.hp.current == 0

        turn = processor.process(game_state, [{"kind": "advance_turn"}])
        assert turn.messages[0].content.endswith(" • Your turn")

        end = processor.process(game_state, [{"kind": "end_combat", "outcome": "Victory"}])
        assert end.messages[0].content == "✓ Combat ended: Victory"
        assert game_state.combat.enemies == []

    def test_unknown_monster_is_generated(
        self,
        live_session: CombatSession,
        game_state: GameState,
        sample_character: Character,
        sample_world: World,
        fake_generator,
    ) -> None:
        """Test an unknown monster spawns at once and is upgraded later."""
        processor = DirectiveProcessor(live_session)

        outcome = processor.process(
            game_state,
            [
                {"kind": "start_combat"},
                {"kind": "spawn_enemy", "monster_id": "unknown_monster", "name": "Bandit Leader"},
                {"kind": "damage", "target": "Bandit Leader", "amount": 3},
            ],
            sample_character,
            sample_world,
        )

        leader = outcome.spawned[0]
        assert leader.name == "Bandit Leader"
        assert leader.hp.current == 7
        assert leader.hp.max == 10

        stored = live_session.world_store.get("w1")
        assert stored.find_monster("unknown_monster").needs_generation

        messages = asyncio.run(live_session.settle(game_state, sample_world))

        assert fake_generator.calls == [("Bandit Leader", "unknown_monster")]
        assert messages[0].content.startswith("✨ **Monster Identified**: Bandit Leader")
        assert leader.hp.max == 30
        assert leader.hp.current == 27
        assert live_session.world_store.get("w1").find_monster("unknown_monster").needs_generation is False

    def test_generation_failure_keeps_placeholder(
        self,
        live_session: CombatSession,
        game_state: GameState,
        sample_world: World,
        fake_generator,
    ) -> None:
        """Test a generator outage leaves combat running on the placeholder."""
        fake_generator.fail = True
        enemy = live_session.spawn_enemy(game_state, sample_world, "void_spider", "Void Spider")

        messages = asyncio.run(live_session.settle(game_state, sample_world))

        assert messages == []
        assert enemy.hp.max == 10
        assert live_session.world_store.get("w1").find_monster("void_spider").needs_generation

    def test_reinforcements_across_rounds(
        self,
        live_session: CombatSession,
        game_state: GameState,
        sample_character: Character,
        sample_world: World,
    ) -> None:
        processor = DirectiveProcessor(live_session)
        processor.process(game_state, [{"kind": "start_combat"}], sample_character, sample_world)

        for _ in range(4):
            processor.process(game_state, [{"kind": "advance_turn"}])
        processor.process(
            game_state,
            [{"kind": "spawn_enemy", "monster_id": "orc"}, {"kind": "spawn_enemy", "monster_id": "orc"}],
            world=sample_world,
        )

        assert game_state.combat.round == 5
        assert [enemy.name for enemy in game_state.combat.enemies] == ["Orc", "Orc 2"]
        assert len(game_state.combat.initiative) == 3
        totals = [entry.total for entry in game_state.combat.initiative]
        assert totals == sorted(totals, reverse=True)
