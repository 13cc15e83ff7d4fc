"""Ability score normalization.

Stat blocks arrive from the narration layer, from generated monster JSON
and from character sheets in several shapes (``dex``, ``Dexterity``,
``DEX``). They are normalized once, at the model boundary, into a mapping
keyed by the canonical short names; every consumer reads that one shape.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from gm_mechanics.core.constants import ABILITY_ALIASES, DEFAULT_ABILITY_SCORE


def canonical_ability(name: str) -> str | None:
    """Map an ability spelling to its short name, or None if unknown.

    Accepts short names, full names and prefixes of full names
    (``"Constitution"``, ``"con"``, ``"const"``), case-insensitively.
    """
    key = name.strip().lower()
    if key in ABILITY_ALIASES:
        return ABILITY_ALIASES[key]
    for alias, short in ABILITY_ALIASES.items():
        if len(key) >= 3 and alias.startswith(key):
            return short
    return None


def normalize_ability_scores(raw: Any) -> dict[str, int]:
    """Normalize a stat block to ``{short_name: score}``.

    Unknown keys and non-numeric values are dropped. Missing abilities are
    not filled in; read them with :func:`ability_score`.
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raw = dict(raw)

    scores: dict[str, int] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            continue
        short = canonical_ability(key)
        if short is None or isinstance(value, bool):
            continue
        try:
            scores[short] = int(value)
        except (TypeError, ValueError):
            continue
    return scores


def ability_score(stats: Mapping[str, int], ability: str, default: int = DEFAULT_ABILITY_SCORE) -> int:
    """Read one ability score from a normalized stat block."""
    short = canonical_ability(ability) or ability
    return stats.get(short, default)


def ability_modifier(score: int) -> int:
    """Ability modifier: ``floor((score - 10) / 2)``."""
    return (score - 10) // 2


__all__ = [
    "canonical_ability",
    "normalize_ability_scores",
    "ability_score",
    "ability_modifier",
]
