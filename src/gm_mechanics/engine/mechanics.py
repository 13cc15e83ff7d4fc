"""Damage-type rules: resistance, temp HP, critical hits and concentration.

Everything here is a stateless rules function. The functions compute what
should happen and return a result record; writing hit points back is the
caller's job (``CombatSession`` for enemies, the sheet owner for the
player).

Example:
    >>> result = calculate_damage_after_resistance(9, "fire", DefenseSets(resistances=["fire"]))
    >>> result.final_damage, result.modifier
    (4, <DamageModifier.RESISTED: 'resisted'>)
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from gm_mechanics.core.constants import CONCENTRATION_BASE_DC
from gm_mechanics.core.logging import get_logger
from gm_mechanics.engine.dice import DiceRoller
from gm_mechanics.models.character import Character
from gm_mechanics.models.defenses import DefenseSets
from gm_mechanics.models.rolls import RollResult


logger = get_logger(__name__)

_DICE_TERM = re.compile(r"(\d*)d(\d+)", re.IGNORECASE)


# =============================================================================
# Result Records
# =============================================================================


class DamageModifier(StrEnum):
    """Which defense changed an incoming damage amount."""

    IMMUNE = "immune"
    VULNERABLE = "vulnerable"
    RESISTED = "resisted"


class DefenseKind(StrEnum):
    """Defense set names, as used by apply/remove directives."""

    RESISTANCE = "resistance"
    IMMUNITY = "immunity"
    VULNERABILITY = "vulnerability"

    @property
    def field_name(self) -> str:
        return {
            DefenseKind.RESISTANCE: "resistances",
            DefenseKind.IMMUNITY: "immunities",
            DefenseKind.VULNERABILITY: "vulnerabilities",
        }[self]


@dataclass(frozen=True)
class ResistanceResult:
    final_damage: int
    modifier: DamageModifier | None = None


@dataclass(frozen=True)
class DamageResolution:
    """Damage after defenses and temp HP.

    Attributes:
        actual_damage: Damage left for real hit points.
        temp_hp_removed: Damage absorbed by temporary hit points.
        resisted: Resistance halved the damage.
        immune: Immunity zeroed the damage.
        vulnerable: Vulnerability doubled the damage.
        message: Annotation such as ``(Resisted, 3 absorbed by temp HP)``,
            empty when nothing notable happened.
    """

    actual_damage: int
    temp_hp_removed: int
    resisted: bool
    immune: bool
    vulnerable: bool
    message: str


@dataclass(frozen=True)
class TempHPResult:
    new_temp_hp: int
    message: str


@dataclass(frozen=True)
class CriticalHitResult:
    is_crit: bool
    damage_notation: str | None
    message: str


@dataclass(frozen=True)
class RollEvent:
    """A roll surfaced to the caller through an ``on_roll`` hook."""

    kind: str
    label: str
    roll: RollResult


@dataclass(frozen=True)
class ConcentrationResult:
    save_dc: int
    save_result: RollResult
    concentration_broken: bool
    message: str


class HasDamage(Protocol):
    """Anything with a damage notation, such as a ``MonsterAction``."""

    damage: str | None


# =============================================================================
# Resistance
# =============================================================================


def calculate_damage_after_resistance(
    damage: int,
    damage_type: str | None,
    defenses: DefenseSets | None,
) -> ResistanceResult:
    """Adjust damage for immunity, vulnerability and resistance.

    The first matching rule wins, in that order. No damage type, or no
    defenses, leaves the amount unchanged.
    """
    if not damage_type or defenses is None:
        return ResistanceResult(final_damage=damage)

    key = damage_type.strip().lower()

    if key in defenses.immunities:
        return ResistanceResult(final_damage=0, modifier=DamageModifier.IMMUNE)
    if key in defenses.vulnerabilities:
        return ResistanceResult(final_damage=damage * 2, modifier=DamageModifier.VULNERABLE)
    if key in defenses.resistances:
        return ResistanceResult(final_damage=damage // 2, modifier=DamageModifier.RESISTED)

    return ResistanceResult(final_damage=damage)


# =============================================================================
# Damage & Temporary HP
# =============================================================================


def apply_damage_with_type(
    target: DefenseSets,
    amount: int,
    damage_type: str | None = None,
) -> DamageResolution:
    """Resolve typed damage against a target's defenses and temp HP.

    The target is not modified.

    Args:
        target: Character or enemy carrying defense sets (and optionally ``temp_hp``).
        amount: Base damage, non-negative.
        damage_type: Damage type such as ``fire``; None for untyped damage.

    Returns:
        The resolution record.
    """
    amount = max(0, amount)
    resistance = calculate_damage_after_resistance(amount, damage_type, target)

    temp_hp = getattr(target, "temp_hp", 0) or 0
    temp_hp_removed = min(temp_hp, resistance.final_damage) if temp_hp > 0 else 0
    actual_damage = resistance.final_damage - temp_hp_removed

    parts: list[str] = []
    if resistance.modifier == DamageModifier.IMMUNE:
        parts.append("Immune")
    elif resistance.modifier == DamageModifier.RESISTED:
        parts.append("Resisted")
    elif resistance.modifier == DamageModifier.VULNERABLE:
        parts.append("Vulnerable")
    if temp_hp_removed > 0:
        parts.append(f"{temp_hp_removed} absorbed by temp HP")

    message = f"({', '.join(parts)})" if parts else ""

    logger.debug(
        "Damage resolved",
        amount=amount,
        damage_type=damage_type,
        actual_damage=actual_damage,
        temp_hp_removed=temp_hp_removed,
        modifier=resistance.modifier,
    )

    return DamageResolution(
        actual_damage=actual_damage,
        temp_hp_removed=temp_hp_removed,
        resisted=resistance.modifier == DamageModifier.RESISTED,
        immune=resistance.modifier == DamageModifier.IMMUNE,
        vulnerable=resistance.modifier == DamageModifier.VULNERABLE,
        message=message,
    )


def apply_temp_hp(target: DefenseSets, amount: int) -> TempHPResult:
    """Offer temporary hit points. They never stack; the higher value wins."""
    current = getattr(target, "temp_hp", 0) or 0

    if amount > current:
        return TempHPResult(
            new_temp_hp=amount,
            message=f"Gained {amount} Temporary HP (replaced {current})",
        )

    return TempHPResult(
        new_temp_hp=current,
        message=f"Existing Temporary HP ({current}) is higher than new amount ({amount})",
    )


# =============================================================================
# Critical Hits
# =============================================================================


def double_damage_dice(notation: str | None) -> str | None:
    """Double every dice count in a notation, leaving flat modifiers alone.

    Examples:
        >>> double_damage_dice("1d8+3")
        '2d8+3'
        >>> double_damage_dice("2d6+1d4+5")
        '4d6+2d4+5'
    """
    if not notation:
        return notation

    def double(match: re.Match[str]) -> str:
        count = int(match.group(1)) if match.group(1) else 1
        return f"{count * 2}d{match.group(2)}"

    return _DICE_TERM.sub(double, notation)


def apply_critical_hit(
    attack: HasDamage,
    roll_result: RollResult,
    *,
    crit_value: int = 20,
) -> CriticalHitResult:
    """Double the attack's damage dice when the attack roll is a natural 20."""
    damage = getattr(attack, "damage", None)
    is_crit = bool(roll_result.rolls) and roll_result.rolls[0] == crit_value

    if not is_crit or not damage:
        return CriticalHitResult(is_crit=False, damage_notation=damage, message="")

    return CriticalHitResult(
        is_crit=True,
        damage_notation=double_damage_dice(damage),
        message="Critical Hit! Damage dice doubled.",
    )


# =============================================================================
# Concentration
# =============================================================================


def concentration_dc(damage_taken: int) -> int:
    """Save DC: 10 or half the damage taken, whichever is higher."""
    return max(CONCENTRATION_BASE_DC, max(0, damage_taken) // 2)


def check_concentration(
    character: Character,
    damage_taken: int,
    *,
    roller: DiceRoller | None = None,
    on_roll: Callable[[RollEvent], None] | None = None,
) -> ConcentrationResult:
    """Roll a Constitution save to keep concentration after taking damage.

    Args:
        character: The concentrating character.
        damage_taken: Damage that got through to hit points.
        roller: Dice roller; a fresh one is used if omitted.
        on_roll: Called synchronously with the save roll.
    """
    save_dc = concentration_dc(damage_taken)
    roller = roller or DiceRoller()

    save_result = roller.roll_saving_throw(character, "con")
    passed = save_result.total >= save_dc
    message = (
        f"Concentration Check DC {save_dc}: Rolled {save_result.total} "
        f"({'Success' if passed else 'Failure'})"
    )

    if on_roll is not None:
        on_roll(
            RollEvent(
                kind="Saving Throw",
                label="Concentration (Constitution)",
                roll=save_result,
            )
        )

    logger.info(
        "Concentration checked",
        character=character.name,
        spell=character.concentration,
        dc=save_dc,
        total=save_result.total,
        broken=not passed,
    )

    return ConcentrationResult(
        save_dc=save_dc,
        save_result=save_result,
        concentration_broken=not passed,
        message=message,
    )


# =============================================================================
# Defense Modifiers
# =============================================================================


_DEFENSE_ACTIONS = {
    DefenseKind.RESISTANCE: ("Resistance Gained", "Resistance Lost"),
    DefenseKind.IMMUNITY: ("Immunity Gained", "Immunity Lost"),
    DefenseKind.VULNERABILITY: ("Vulnerability Gained", "Vulnerability Lost"),
}


def set_defense(
    target: DefenseSets,
    kind: DefenseKind | str,
    damage_type: str,
    apply: bool,
    *,
    subject: str | None = None,
) -> str | None:
    """Add or remove a damage type from one of the target's defense sets.

    Args:
        target: Character or enemy carrying defense sets.
        kind: ``resistance``, ``immunity`` or ``vulnerability``.
        damage_type: Damage type to add or remove.
        apply: True to add, False to remove.
        subject: Display name; None addresses the player as "You".

    Returns:
        A display message, or None if the set already had the requested state.
    """
    kind = DefenseKind(kind)
    key = damage_type.strip().lower()
    if not key:
        return None

    current = list(getattr(target, kind.field_name))
    exists = key in current
    if apply == exists:
        return None

    if apply:
        current.append(key)
    else:
        current.remove(key)
    setattr(target, kind.field_name, current)

    icon = "💔" if kind == DefenseKind.VULNERABILITY else "🛡️"
    gained, lost = _DEFENSE_ACTIONS[kind]
    who = "You are" if subject is None else f"{subject} is"

    if apply:
        return f"{icon} **{gained}**: {who} now {kind} to {damage_type} damage."
    return f"{icon} **{lost}**: {who} no longer {kind} to {damage_type} damage."


__all__ = [
    "DamageModifier",
    "DefenseKind",
    "ResistanceResult",
    "DamageResolution",
    "TempHPResult",
    "CriticalHitResult",
    "RollEvent",
    "ConcentrationResult",
    "calculate_damage_after_resistance",
    "apply_damage_with_type",
    "apply_temp_hp",
    "double_damage_dice",
    "apply_critical_hit",
    "concentration_dc",
    "check_concentration",
    "set_defense",
]
