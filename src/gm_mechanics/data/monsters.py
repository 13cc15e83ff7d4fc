"""Built-in monster catalog.

The second tier of template resolution: stock stat blocks available in
every world. Entries are stored as plain dictionaries in stat-block shape
and validated into ``MonsterTemplate`` on access, so callers always get a
fresh copy they are free to mutate.
"""

from __future__ import annotations

from typing import Any

from gm_mechanics.models.monsters import MonsterTemplate


MONSTER_CATALOG: dict[str, dict[str, Any]] = {
    # Low level (CR 0-1)
    "goblin": {
        "id": "goblin",
        "name": "Goblin",
        "type": "Humanoid (Goblinoid)",
        "cr": "1/4",
        "ac": 15,
        "hp": 7,
        "hit_dice": "2d6",
        "stats": {"str": 8, "dex": 14, "con": 10, "int": 10, "wis": 8, "cha": 8},
        "actions": [
            {
                "name": "Scimitar",
                "desc": "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 5 (1d6 + 2) slashing damage.",
                "to_hit": 4,
                "damage": "1d6+2",
                "damage_type": "slashing",
            },
            {
                "name": "Shortbow",
                "desc": "Ranged Weapon Attack: +4 to hit, range 80/320 ft., one target. Hit: 5 (1d6 + 2) piercing damage.",
                "to_hit": 4,
                "damage": "1d6+2",
                "damage_type": "piercing",
            },
        ],
    },
    "skeleton": {
        "id": "skeleton",
        "name": "Skeleton",
        "type": "Undead",
        "cr": "1/4",
        "ac": 13,
        "hp": 13,
        "hit_dice": "2d8+4",
        "stats": {"str": 10, "dex": 14, "con": 15, "int": 6, "wis": 8, "cha": 5},
        "vulnerabilities": ["bludgeoning"],
        "immunities": ["poison"],
        "actions": [
            {
                "name": "Shortsword",
                "desc": "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 5 (1d6 + 2) piercing damage.",
                "to_hit": 4,
                "damage": "1d6+2",
                "damage_type": "piercing",
            },
            {
                "name": "Shortbow",
                "desc": "Ranged Weapon Attack: +4 to hit, range 80/320 ft., one target. Hit: 5 (1d6 + 2) piercing damage.",
                "to_hit": 4,
                "damage": "1d6+2",
                "damage_type": "piercing",
            },
        ],
    },
    "zombie": {
        "id": "zombie",
        "name": "Zombie",
        "type": "Undead",
        "cr": "1/4",
        "ac": 8,
        "hp": 22,
        "hit_dice": "3d8+9",
        "stats": {"str": 13, "dex": 6, "con": 16, "int": 3, "wis": 6, "cha": 5},
        "immunities": ["poison"],
        "actions": [
            {
                "name": "Slam",
                "desc": "Melee Weapon Attack: +3 to hit, reach 5 ft., one target. Hit: 4 (1d6 + 1) bludgeoning damage.",
                "to_hit": 3,
                "damage": "1d6+1",
                "damage_type": "bludgeoning",
            },
        ],
    },
    "kobold": {
        "id": "kobold",
        "name": "Kobold",
        "type": "Humanoid (Kobold)",
        "cr": "1/8",
        "ac": 12,
        "hp": 5,
        "hit_dice": "2d6-2",
        "stats": {"str": 7, "dex": 15, "con": 9, "int": 8, "wis": 7, "cha": 8},
        "actions": [
            {
                "name": "Dagger",
                "desc": "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 4 (1d4 + 2) piercing damage.",
                "to_hit": 4,
                "damage": "1d4+2",
                "damage_type": "piercing",
            },
            {
                "name": "Sling",
                "desc": "Ranged Weapon Attack: +4 to hit, range 30/120 ft., one target. Hit: 4 (1d4 + 2) bludgeoning damage.",
                "to_hit": 4,
                "damage": "1d4+2",
                "damage_type": "bludgeoning",
            },
        ],
    },
    "bandit": {
        "id": "bandit",
        "name": "Bandit",
        "type": "Humanoid (Any Race)",
        "cr": "1/8",
        "ac": 12,
        "hp": 11,
        "hit_dice": "2d8+2",
        "stats": {"str": 11, "dex": 12, "con": 12, "int": 10, "wis": 10, "cha": 10},
        "actions": [
            {
                "name": "Scimitar",
                "desc": "Melee Weapon Attack: +3 to hit, reach 5 ft., one target. Hit: 4 (1d6 + 1) slashing damage.",
                "to_hit": 3,
                "damage": "1d6+1",
                "damage_type": "slashing",
            },
            {
                "name": "Light Crossbow",
                "desc": "Ranged Weapon Attack: +3 to hit, range 80/320 ft., one target. Hit: 5 (1d8 + 1) piercing damage.",
                "to_hit": 3,
                "damage": "1d8+1",
                "damage_type": "piercing",
            },
        ],
    },
    # Mid level (CR 1/2-2)
    "orc": {
        "id": "orc",
        "name": "Orc",
        "type": "Humanoid (Orc)",
        "cr": "1/2",
        "ac": 13,
        "hp": 15,
        "hit_dice": "2d8+6",
        "stats": {"str": 16, "dex": 12, "con": 16, "int": 7, "wis": 11, "cha": 10},
        "actions": [
            {
                "name": "Greataxe",
                "desc": "Melee Weapon Attack: +5 to hit, reach 5 ft., one target. Hit: 9 (1d12 + 3) slashing damage.",
                "to_hit": 5,
                "damage": "1d12+3",
                "damage_type": "slashing",
            },
            {
                "name": "Javelin",
                "desc": (
                    "Melee or Ranged Weapon Attack: +5 to hit, reach 5 ft. or range 30/120 ft., "
                    "one target. Hit: 6 (1d6 + 3) piercing damage."
                ),
                "to_hit": 5,
                "damage": "1d6+3",
                "damage_type": "piercing",
            },
        ],
    },
    "bugbear": {
        "id": "bugbear",
        "name": "Bugbear",
        "type": "Humanoid (Goblinoid)",
        "cr": "1",
        "ac": 16,
        "hp": 27,
        "hit_dice": "5d8+5",
        "stats": {"str": 15, "dex": 14, "con": 13, "int": 8, "wis": 11, "cha": 9},
        "actions": [
            {
                "name": "Morningstar",
                "desc": "Melee Weapon Attack: +4 to hit, reach 5 ft., one target. Hit: 11 (2d8 + 2) piercing damage.",
                "to_hit": 4,
                "damage": "2d8+2",
                "damage_type": "piercing",
            },
            {
                "name": "Javelin",
                "desc": (
                    "Melee or Ranged Weapon Attack: +4 to hit, reach 5 ft. or range 30/120 ft., "
                    "one target. Hit: 9 (2d6 + 2) piercing damage."
                ),
                "to_hit": 4,
                "damage": "2d6+2",
                "damage_type": "piercing",
            },
        ],
    },
    "gelatinous_cube": {
        "id": "gelatinous_cube",
        "name": "Gelatinous Cube",
        "type": "Ooze",
        "cr": "2",
        "ac": 6,
        "hp": 84,
        "hit_dice": "8d10+40",
        "stats": {"str": 14, "dex": 3, "con": 20, "int": 1, "wis": 6, "cha": 1},
        "immunities": ["acid", "lightning", "slashing"],
        "actions": [
            {
                "name": "Pseudopod",
                "desc": "Melee Weapon Attack: +4 to hit, reach 5 ft., one creature. Hit: 10 (3d6) acid damage.",
                "to_hit": 4,
                "damage": "3d6",
                "damage_type": "acid",
            },
            {
                "name": "Engulf",
                "desc": (
                    "The cube moves up to its speed. While doing so, it can enter Large or smaller "
                    "creatures' spaces. Whenever the cube enters a creature's space, the creature "
                    "must make a DC 12 Dexterity saving throw."
                ),
            },
        ],
    },
    "ogre": {
        "id": "ogre",
        "name": "Ogre",
        "type": "Giant",
        "cr": "2",
        "ac": 11,
        "hp": 59,
        "hit_dice": "7d10+21",
        "stats": {"str": 19, "dex": 8, "con": 16, "int": 5, "wis": 7, "cha": 7},
        "actions": [
            {
                "name": "Greatclub",
                "desc": "Melee Weapon Attack: +6 to hit, reach 5 ft., one target. Hit: 13 (2d8 + 4) bludgeoning damage.",
                "to_hit": 6,
                "damage": "2d8+4",
                "damage_type": "bludgeoning",
            },
            {
                "name": "Javelin",
                "desc": (
                    "Melee or Ranged Weapon Attack: +6 to hit, reach 5 ft. or range 30/120 ft., "
                    "one target. Hit: 11 (2d6 + 4) piercing damage."
                ),
                "to_hit": 6,
                "damage": "2d6+4",
                "damage_type": "piercing",
            },
        ],
    },
    # Boss (CR 5+)
    "young_red_dragon": {
        "id": "young_red_dragon",
        "name": "Young Red Dragon",
        "type": "Dragon",
        "cr": "10",
        "ac": 18,
        "hp": 178,
        "hit_dice": "17d10+85",
        "stats": {"str": 23, "dex": 10, "con": 21, "int": 14, "wis": 11, "cha": 19},
        "immunities": ["fire"],
        "actions": [
            {
                "name": "Multiattack",
                "desc": "The dragon makes three attacks: one with its bite and two with its claws.",
            },
            {
                "name": "Bite",
                "desc": (
                    "Melee Weapon Attack: +10 to hit, reach 10 ft., one target. "
                    "Hit: 17 (2d10 + 6) piercing damage plus 3 (1d6) fire damage."
                ),
                "to_hit": 10,
                "damage": "2d10+6+1d6",
                "damage_type": "piercing",
            },
            {
                "name": "Claw",
                "desc": "Melee Weapon Attack: +10 to hit, reach 5 ft., one target. Hit: 13 (2d6 + 6) slashing damage.",
                "to_hit": 10,
                "damage": "2d6+6",
                "damage_type": "slashing",
            },
            {
                "name": "Fire Breath (Recharge 5-6)",
                "desc": (
                    "The dragon exhales fire in a 30-foot cone. Each creature in that area must make "
                    "a DC 17 Dexterity saving throw, taking 56 (16d6) fire damage on a failed save, "
                    "or half as much damage on a successful one."
                ),
                "damage": "16d6",
                "damage_type": "fire",
            },
        ],
    },
}


def catalog_ids() -> list[str]:
    """Identifiers of every catalog monster."""
    return list(MONSTER_CATALOG)


def find_catalog_monster(key: str) -> MonsterTemplate | None:
    """Look up a catalog monster by case-insensitive id or name.

    Returns a freshly validated template, or None if nothing matches.
    """
    needle = key.strip().lower()
    if needle in MONSTER_CATALOG:
        return MonsterTemplate.model_validate(MONSTER_CATALOG[needle])
    for raw in MONSTER_CATALOG.values():
        if raw["name"].lower() == needle:
            return MonsterTemplate.model_validate(raw)
    return None


__all__ = [
    "MONSTER_CATALOG",
    "catalog_ids",
    "find_catalog_monster",
]
