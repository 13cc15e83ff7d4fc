"""Tests for encounter, roll and message schemas."""

from __future__ import annotations

from gm_mechanics.models import (
    CombatantKind,
    CombatEncounter,
    Enemy,
    GameState,
    HitPoints,
    InitiativeEntry,
    RollResult,
    RollType,
    system_message,
)


def make_enemy(enemy_id: str = "goblin_1", dead: bool = False) -> Enemy:
    return Enemy(
        id=enemy_id,
        template_id="goblin",
        name="Goblin",
        hp=HitPoints(current=0 if dead else 7, max=7),
        conditions=["Dead"] if dead else [],
    )


class TestRollResult:
    """Tests for the RollResult schema."""

    def test_nat20(self) -> None:
        result = RollResult(notation="1d20+2", rolls=[20], modifier=2, total=22)

        assert result.is_nat20
        assert not result.is_nat1
        assert result.natural == 20

    def test_nat1_plain_d20(self) -> None:
        assert RollResult(notation="d20", rolls=[1], total=1).is_nat1

    def test_not_single_d20(self) -> None:
        """Test a 20 on another die is not a natural 20."""
        result = RollResult(notation="2d20", rolls=[20, 3], total=23)

        assert not result.is_single_d20
        assert not result.is_nat20

    def test_serializes_computed_natural(self) -> None:
        data = RollResult(notation="1d20", rolls=[7], total=7, roll_type=RollType.ADVANTAGE).model_dump(
            mode="json"
        )

        assert data["natural"] == 7
        assert data["roll_type"] == "advantage"


class TestEnemy:
    """Tests for the Enemy schema."""

    def test_is_dead(self) -> None:
        assert make_enemy(dead=True).is_dead
        assert not make_enemy().is_dead

    def test_template_id_alias(self) -> None:
        enemy = Enemy.model_validate(
            {"id": "e", "templateId": "orc", "name": "Orc", "hp": {"current": 15, "max": 15}}
        )

        assert enemy.template_id == "orc"


class TestCombatEncounter:
    """Tests for the CombatEncounter schema."""

    def test_defaults(self) -> None:
        encounter = CombatEncounter()

        assert not encounter.active
        assert encounter.round == 0
        assert encounter.initiative == []
        assert encounter.current_turn_index == 0

    def test_entry_lookup(self) -> None:
        enemy = make_enemy()
        entry = InitiativeEntry(
            id="init_goblin_1", name="Goblin", type=CombatantKind.NPC, total=12, enemy_id=enemy.id
        )
        encounter = CombatEncounter(enemies=[enemy], initiative=[entry])

        assert encounter.find_enemy("goblin_1") is enemy
        assert encounter.find_enemy(None) is None
        assert encounter.entry_for_enemy("goblin_1") is entry

    def test_is_dead_npc(self) -> None:
        """Test only entries of dead enemies count as dead."""
        dead = make_enemy("g_dead", dead=True)
        player = InitiativeEntry(id="init_player", name="Aria", type=CombatantKind.PLAYER, total=5)
        npc = InitiativeEntry(id="init_g", name="Goblin", type=CombatantKind.NPC, total=9, enemy_id="g_dead")
        encounter = CombatEncounter(enemies=[dead], initiative=[player, npc])

        assert encounter.is_dead_npc(npc)
        assert not encounter.is_dead_npc(player)

    def test_reset(self) -> None:
        encounter = CombatEncounter(active=True, round=3, current_turn_index=1, enemies=[make_enemy()])

        encounter.reset()

        assert encounter == CombatEncounter()


class TestMessagesAndState:
    """Tests for system messages and the game state record."""

    def test_system_message(self) -> None:
        message = system_message("hello", hidden=True, enemy_id="e1")

        assert message.role == "system"
        assert message.hidden
        assert message.metadata == {"enemy_id": "e1"}
        assert message.id.startswith("msg_")

    def test_message_ids_unique(self) -> None:
        assert system_message("a").id != system_message("a").id

    def test_game_state_defaults(self) -> None:
        state = GameState.model_validate({"worldId": "w1"})

        assert state.world_id == "w1"
        assert isinstance(state.combat, CombatEncounter)
        assert state.messages == []

    def test_add_messages(self, game_state: GameState) -> None:
        game_state.add_messages([system_message("one"), system_message("two")])

        assert [m.content for m in game_state.messages] == ["one", "two"]
