"""Structured directives from the narration layer and their processing.

The narration layer emits a list of directives per message. Directives
are validated with pydantic, so they can arrive as model instances or as
plain dictionaries tagged with ``kind``:

    >>> parse_directives([{"kind": "spawn_enemy", "monster_id": "goblin"}])
    [SpawnEnemy(kind='spawn_enemy', monster_id='goblin', name=None)]

``DirectiveProcessor.process`` runs them in order against one game. A
malformed directive or a dice failure only drops the directive that hit
it; the rest still run.

The player's character sheet is never modified in place. The processor
works on a copy and returns it, together with the damage the player took,
for the sheet owner to persist.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from gm_mechanics.core.exceptions import DiceRollError
from gm_mechanics.core.logging import bind_context, get_logger, unbind_context
from gm_mechanics.engine.combat import CombatSession, is_player_target, not_found_message
from gm_mechanics.engine.mechanics import (
    ConcentrationResult,
    DamageResolution,
    DefenseKind,
    RollEvent,
    apply_damage_with_type,
    apply_temp_hp,
    check_concentration,
    set_defense,
)
from gm_mechanics.models.character import Character
from gm_mechanics.models.combat import Enemy
from gm_mechanics.models.game_state import GameState
from gm_mechanics.models.messages import SystemMessage, system_message
from gm_mechanics.models.world import World


logger = get_logger(__name__)

Amount = int | str


# =============================================================================
# Directives
# =============================================================================


class _Directive(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class StartCombat(_Directive):
    kind: Literal["start_combat"] = "start_combat"
    description: str = ""


class SpawnEnemy(_Directive):
    kind: Literal["spawn_enemy"] = "spawn_enemy"
    monster_id: str = Field(min_length=1)
    name: str | None = None


class Damage(_Directive):
    """Damage to ``target``; ``amount`` may be dice notation (``"2d6+1"``)."""

    kind: Literal["damage"] = "damage"
    target: str = Field(min_length=1)
    amount: Amount
    damage_type: str | None = None


class TempHP(_Directive):
    kind: Literal["temp_hp"] = "temp_hp"
    target: str = Field(min_length=1)
    amount: Amount


class DefenseChange(_Directive):
    """Apply or remove a resistance, immunity or vulnerability."""

    kind: Literal["defense"] = "defense"
    target: str = Field(min_length=1)
    defense: DefenseKind
    damage_type: str = Field(min_length=1)
    apply: bool = True


class AdvanceTurn(_Directive):
    kind: Literal["advance_turn"] = "advance_turn"


class EndCombat(_Directive):
    kind: Literal["end_combat"] = "end_combat"
    outcome: str = ""


Directive = Annotated[
    Union[StartCombat, SpawnEnemy, Damage, TempHP, DefenseChange, AdvanceTurn, EndCombat],
    Field(discriminator="kind"),
]

_DIRECTIVE = TypeAdapter(Directive)
_DIRECTIVE_LIST = TypeAdapter(list[Directive])


def parse_directives(raw: Sequence[Any]) -> list[Directive]:
    """Validate a list of directive dictionaries or instances.

    Raises:
        pydantic.ValidationError: If any directive is malformed.
    """
    return _DIRECTIVE_LIST.validate_python(list(raw))


# =============================================================================
# Outcome
# =============================================================================


@dataclass(frozen=True)
class PlayerDamage:
    """Damage the player took, for the sheet owner to apply.

    Attributes:
        amount: Rolled or given damage before defenses.
        damage_type: Damage type, if any.
        resolution: Damage after defenses and temp HP.
        concentration: The concentration save, if one was required.
    """

    amount: int
    damage_type: str | None
    resolution: DamageResolution
    concentration: ConcentrationResult | None = None


@dataclass
class DirectiveOutcome:
    """Everything one batch of directives produced.

    Attributes:
        messages: System messages, in order; already appended to the game.
        player_damage: Damage records for the player.
        character: Updated copy of the player character, or None.
        spawned: Enemies spawned by the batch.
    """

    messages: list[SystemMessage] = field(default_factory=list)
    player_damage: list[PlayerDamage] = field(default_factory=list)
    character: Character | None = None
    spawned: list[Enemy] = field(default_factory=list)


# =============================================================================
# Processor
# =============================================================================


class DirectiveProcessor:
    """Apply directives to a game through a ``CombatSession``."""

    def __init__(
        self,
        session: CombatSession,
        *,
        on_roll: Callable[[RollEvent], None] | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            session: The game's combat session.
            on_roll: Called with every save rolled on the player's behalf.
        """
        self.session = session
        self.on_roll = on_roll

    def resolve_amount(self, amount: Amount) -> int:
        """Turn a number or dice notation into a damage amount.

        Raises:
            DiceRollError: If the amount is neither a number nor valid notation.
        """
        if isinstance(amount, int):
            return max(0, amount)

        text = amount.strip()
        if "d" in text.lower():
            return max(0, self.session.roller.roll(text, label="damage").total)
        try:
            return max(0, int(text))
        except ValueError as exc:
            raise DiceRollError(f"Invalid amount: {amount!r}", expression=amount) from exc

    def process(
        self,
        game_state: GameState,
        directives: Sequence[Directive | dict[str, Any]],
        character: Character | None = None,
        world: World | None = None,
    ) -> DirectiveOutcome:
        """Run a batch of directives in order.

        Messages are appended to ``game_state.messages``. Identification
        messages from finished monster generations are merged in after the
        batch.

        Args:
            game_state: The game to mutate.
            directives: Directive models or dictionaries.
            character: The player character, read only.
            world: The game's world.
        """
        outcome = DirectiveOutcome(
            character=character.model_copy(deep=True) if character is not None else None,
        )

        bind_context(game_id=game_state.id)
        try:
            for raw in directives:
                try:
                    directive = _DIRECTIVE.validate_python(raw)
                except PydanticValidationError as exc:
                    messages = [self._malformed(raw, exc)]
                    outcome.messages.extend(messages)
                    game_state.add_messages(messages)
                    continue

                try:
                    messages = self._dispatch(directive, game_state, outcome, world)
                except DiceRollError as exc:
                    logger.warning(
                        "Directive failed on dice roll",
                        directive=directive.kind,
                        error=exc.message,
                    )
                    messages = [
                        system_message(
                            f"⚠️ Could not resolve {directive.kind}: {exc.message}",
                            error=True,
                            directive=directive.kind,
                            **exc.details,
                        )
                    ]
                outcome.messages.extend(messages)
                game_state.add_messages(messages)
        finally:
            unbind_context("game_id")

        outcome.messages.extend(self.session.apply_pending_updates(game_state, world))
        return outcome

    @staticmethod
    def _malformed(raw: Any, exc: PydanticValidationError) -> SystemMessage:
        kind = raw.get("kind") if isinstance(raw, dict) else getattr(raw, "kind", None)
        errors = [
            f"{'.'.join(str(part) for part in error['loc']) or 'directive'}: {error['msg']}"
            for error in exc.errors()
        ]
        logger.warning("Malformed directive ignored", directive=kind, errors=errors)
        return system_message(
            f"⚠️ Ignored malformed {kind or 'directive'}: {'; '.join(errors)}",
            error=True,
            directive=kind,
        )

    def _dispatch(
        self,
        directive: Directive,
        game_state: GameState,
        outcome: DirectiveOutcome,
        world: World | None,
    ) -> list[SystemMessage]:
        session = self.session

        if isinstance(directive, StartCombat):
            return session.start_combat(game_state, outcome.character, world, directive.description)

        if isinstance(directive, SpawnEnemy):
            enemy = session.spawn_enemy(game_state, world, directive.monster_id, directive.name)
            if enemy is None:
                return []
            outcome.spawned.append(enemy)
            return session.spawn_messages(game_state, enemy)

        if isinstance(directive, Damage):
            return self._damage(directive, game_state, outcome)

        if isinstance(directive, TempHP):
            return self._temp_hp(directive, game_state, outcome)

        if isinstance(directive, DefenseChange):
            return self._defense(directive, game_state, outcome)

        if isinstance(directive, AdvanceTurn):
            message = session.advance_turn(game_state)
            return [message] if message is not None else []

        if isinstance(directive, EndCombat):
            message = session.end_combat(game_state, directive.outcome)
            return [message] if message is not None else []

        logger.error("Unhandled directive", directive=directive)
        return []

    def _damage(
        self,
        directive: Damage,
        game_state: GameState,
        outcome: DirectiveOutcome,
    ) -> list[SystemMessage]:
        amount = self.resolve_amount(directive.amount)

        if not is_player_target(directive.target):
            enemy = self.session.find_enemy(game_state, directive.target)
            if enemy is None:
                return [system_message(not_found_message(directive.target), target=directive.target)]
            status = self.session.apply_typed_damage(game_state, enemy.id, amount, directive.damage_type)
            return [system_message(f"⚔️ {status}", enemy_id=enemy.id, damage_type=directive.damage_type)]

        character = outcome.character
        if character is None:
            logger.error("Player damage without a character", amount=amount)
            return []

        resolution = apply_damage_with_type(character, amount, directive.damage_type)
        if resolution.temp_hp_removed:
            character.temp_hp = max(0, character.temp_hp - resolution.temp_hp_removed)

        text = f"⚔️ **You take {resolution.actual_damage} damage**"
        if resolution.message:
            text = f"{text} {resolution.message}"
        messages = [system_message(text, player_damage=resolution.actual_damage)]

        concentration = None
        if resolution.actual_damage > 0 and character.concentration:
            concentration = check_concentration(
                character,
                resolution.actual_damage,
                roller=self.session.roller,
                on_roll=self.on_roll,
            )
            if concentration.concentration_broken:
                messages.append(
                    system_message(
                        f"💔 **Concentration Broken!**\n{concentration.message}",
                        spell=character.concentration,
                    )
                )
                character.concentration = None

        outcome.player_damage.append(
            PlayerDamage(
                amount=amount,
                damage_type=directive.damage_type,
                resolution=resolution,
                concentration=concentration,
            )
        )
        return messages

    def _temp_hp(
        self,
        directive: TempHP,
        game_state: GameState,
        outcome: DirectiveOutcome,
    ) -> list[SystemMessage]:
        amount = self.resolve_amount(directive.amount)

        if not is_player_target(directive.target):
            text = self.session.grant_temp_hp(game_state, directive.target, amount)
            return [system_message(text)] if text else []

        character = outcome.character
        if character is None:
            logger.error("Player temp HP without a character", amount=amount)
            return []

        result = apply_temp_hp(character, amount)
        character.temp_hp = result.new_temp_hp
        return [system_message(f"🛡️ **Temporary HP**: {result.message}")]

    def _defense(
        self,
        directive: DefenseChange,
        game_state: GameState,
        outcome: DirectiveOutcome,
    ) -> list[SystemMessage]:
        if is_player_target(directive.target):
            if outcome.character is None:
                logger.error("Player defense change without a character")
                return []
            text = set_defense(outcome.character, directive.defense, directive.damage_type, directive.apply)
        else:
            enemy = self.session.find_enemy(game_state, directive.target)
            if enemy is None:
                return [system_message(not_found_message(directive.target), target=directive.target)]
            text = set_defense(
                enemy,
                directive.defense,
                directive.damage_type,
                directive.apply,
                subject=enemy.name,
            )
        return [system_message(text)] if text else []


__all__ = [
    "StartCombat",
    "SpawnEnemy",
    "Damage",
    "TempHP",
    "DefenseChange",
    "AdvanceTurn",
    "EndCombat",
    "Directive",
    "parse_directives",
    "PlayerDamage",
    "DirectiveOutcome",
    "DirectiveProcessor",
]
