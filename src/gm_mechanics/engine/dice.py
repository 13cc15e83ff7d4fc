"""Dice rolling for combat mechanics.

This module is the DiceService the engine consumes: notation in, a
structured ``RollResult`` out. Rolling is delegated to the d20 library;
advantage and disadvantage roll the primary (leading) die term twice and
keep the higher or lower result; the rest of the notation is rolled once.
The discarded dice are reported as well.
"""

from __future__ import annotations

import re
from typing import Any

import d20

from gm_mechanics.core.constants import INITIATIVE_DIE
from gm_mechanics.core.exceptions import DiceRollError
from gm_mechanics.core.logging import get_logger
from gm_mechanics.models.abilities import ability_modifier, canonical_ability
from gm_mechanics.models.character import Character
from gm_mechanics.models.rolls import RollResult, RollType


logger = get_logger(__name__)

_PRIMARY_TERM = re.compile(r"^(\d*d\d+)(?=\s*(?:[+-]|$))(.*)$", re.IGNORECASE)


def format_modifier(modifier: int) -> str:
    """Render a modifier as a signed notation suffix (``+2``, ``-1``, ``+0``)."""
    return f"+{modifier}" if modifier >= 0 else str(modifier)


def d20_notation(modifier: int) -> str:
    """Build ``1d20+X`` notation for a check, save or initiative roll."""
    return f"{INITIATIVE_DIE}{format_modifier(modifier)}"


class DiceRoller:
    """Dice rolling backed by the d20 library.

    Example:
        >>> roller = DiceRoller()
        >>> result = roller.roll("1d20+5")
        >>> 6 <= result.total <= 25
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            import random

            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(
        self,
        notation: str,
        *,
        roll_type: RollType = RollType.NORMAL,
        label: str | None = None,
    ) -> RollResult:
        """Roll dice according to the given notation.

        Args:
            notation: Dice notation (e.g. ``1d20+5``, ``2d6+3``, ``1d8+1d6``).
            roll_type: Normal, advantage or disadvantage.
            label: Optional description carried on the result.

        Returns:
            The structured roll result.

        Raises:
            DiceRollError: If the notation is empty or invalid.
        """
        if not notation or not notation.strip():
            raise DiceRollError("Empty dice expression", expression=notation)

        notation = notation.strip()
        if roll_type == RollType.NORMAL:
            rolls, total = self._roll_once(notation)
            discarded: list[int] = []
        else:
            primary, rest = self.split_primary_term(notation)
            first = self._roll_once(primary)
            second = self._roll_once(primary)
            if roll_type == RollType.ADVANTAGE:
                chosen, other = (first, second) if first[1] >= second[1] else (second, first)
            else:
                chosen, other = (first, second) if first[1] <= second[1] else (second, first)
            rolls, total = list(chosen[0]), chosen[1]
            discarded = other[0]
            if rest:
                rest_rolls, rest_total = self._roll_once(f"0{rest}")
                rolls.extend(rest_rolls)
                total += rest_total

        result = RollResult(
            notation=notation,
            rolls=rolls,
            modifier=total - sum(rolls),
            total=total,
            roll_type=roll_type,
            discarded_rolls=discarded,
            label=label,
        )

        logger.debug(
            "Dice rolled",
            notation=notation,
            total=total,
            rolls=rolls,
            roll_type=str(roll_type),
        )
        return result

    @staticmethod
    def split_primary_term(notation: str) -> tuple[str, str]:
        """Split notation into its leading die term and the remainder.

        ``1d20+1d4+2`` splits into ``("1d20", "+1d4+2")``. Notation that does
        not open with a plain die term is returned whole, with no remainder.
        """
        match = _PRIMARY_TERM.match(notation)
        if match is None:
            return notation, ""
        return match.group(1), match.group(2).strip()

    def _roll_once(self, notation: str) -> tuple[list[int], int]:
        try:
            result = d20.roll(notation)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=notation,
            ) from exc
        return self._extract_dice_values(result.expr), result.total

    def _extract_dice_values(self, expr: Any) -> list[int]:
        """Collect the kept dice values from a d20 expression tree."""
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if getattr(die, "kept", True):
                        values.append(die.number)
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values

    def roll_check(
        self,
        modifier: int,
        *,
        roll_type: RollType = RollType.NORMAL,
        label: str | None = None,
    ) -> RollResult:
        """Roll ``1d20`` plus a modifier."""
        return self.roll(d20_notation(modifier), roll_type=roll_type, label=label)

    def roll_initiative(
        self,
        dexterity_score: int,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> RollResult:
        """Roll initiative as ``1d20 + floor((dex - 10) / 2)``.

        Args:
            dexterity_score: The combatant's DEX score (not its modifier).
            roll_type: Normal, advantage or disadvantage.
        """
        return self.roll_check(
            ability_modifier(dexterity_score),
            roll_type=roll_type,
            label="initiative",
        )

    def roll_saving_throw(
        self,
        character: Character,
        ability: str,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> RollResult:
        """Roll a saving throw using the character's save bonus.

        Args:
            character: The character making the save.
            ability: Ability name in any accepted spelling (``con``, ``Constitution``).
            roll_type: Normal, advantage or disadvantage.
        """
        short = canonical_ability(ability)
        bonus = character.save_bonus(short) if short else 0
        return self.roll_check(
            bonus,
            roll_type=roll_type,
            label=f"{short or ability or 'save'} saving throw",
        )


def format_roll(result: RollResult) -> str:
    """Render a roll for a system message.

    Examples:
        ``🎲 1d20+2: [14] +2 = **16**``
        ``🎲 Advantage: [20] vs [4] +2 = **22** (Nat 20)``
    """
    modifier_text = ""
    if result.modifier:
        modifier_text = f" {format_modifier(result.modifier)}"

    crit_suffix = ""
    if result.is_nat20:
        crit_suffix = " (Nat 20)"
    elif result.is_nat1:
        crit_suffix = " (Nat 1)"

    kept = ", ".join(str(r) for r in result.rolls)
    if result.roll_type != RollType.NORMAL and result.discarded_rolls:
        label = "Advantage" if result.roll_type == RollType.ADVANTAGE else "Disadvantage"
        discarded = ", ".join(str(r) for r in result.discarded_rolls)
        return f"🎲 {label}: [{kept}] vs [{discarded}]{modifier_text} = **{result.total}**{crit_suffix}"

    return f"🎲 {result.notation}: [{kept}]{modifier_text} = **{result.total}**{crit_suffix}"


__all__ = [
    "RollResult",
    "RollType",
    "DiceRoller",
    "format_modifier",
    "d20_notation",
    "format_roll",
]
