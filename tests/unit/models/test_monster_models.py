"""Tests for monster templates, worlds and the built-in catalog."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gm_mechanics.data import MONSTER_CATALOG, catalog_ids, find_catalog_monster
from gm_mechanics.models import MonsterAction, MonsterTemplate, World


class TestMonsterTemplate:
    """Tests for the MonsterTemplate model."""

    def test_camel_case_input(self) -> None:
        """Test generator-style JSON validates."""
        template = MonsterTemplate.model_validate(
            {
                "id": "void_spider",
                "name": "Void Spider",
                "hitDice": "4d10",
                "needsGeneration": True,
                "stats": {"Dexterity": 17},
                "actions": [{"name": "Bite", "damageType": "necrotic", "toHit": 5}],
            }
        )

        assert template.hit_dice == "4d10"
        assert template.needs_generation is True
        assert template.dexterity == 17
        assert template.actions[0].damage_type == "necrotic"
        assert template.actions[0].to_hit == 5

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(0.25, "1/4"), (0.5, "1/2"), (0.125, "1/8"), (3.0, "3"), (2, "2"), ("1/4", "1/4"), (None, "0")],
    )
    def test_cr_coercion(self, raw: object, expected: str) -> None:
        """Test numeric challenge ratings become strings."""
        assert MonsterTemplate(id="x", name="X", cr=raw).cr == expected

    def test_defaults(self) -> None:
        template = MonsterTemplate(id="x", name="X")

        assert template.type == "Unknown"
        assert template.ac == 10
        assert template.hp == 10
        assert template.dexterity == 10
        assert template.needs_generation is False

    def test_requires_id(self) -> None:
        with pytest.raises(ValidationError):
            MonsterTemplate(id="", name="X")

    def test_matches_id_or_name(self) -> None:
        template = MonsterTemplate(id="sewer_rat_king", name="Sewer Rat King")

        assert template.matches("SEWER_RAT_KING")
        assert template.matches("sewer rat king")
        assert not template.matches("rat")

    def test_action_ignores_extra_fields(self) -> None:
        action = MonsterAction.model_validate({"name": "Claw", "reach": "5 ft."})

        assert action.desc == ""
        assert action.damage is None


class TestWorld:
    """Tests for the World model."""

    def test_find_monster(self, sample_world: World) -> None:
        assert sample_world.find_monster("Sewer Rat King") is not None
        assert sample_world.find_monster("goblin") is None

    def test_brief_description_alias(self) -> None:
        world = World.model_validate({"id": "w2", "briefDescription": "Frozen north."})

        assert world.brief_description == "Frozen north."


class TestMonsterCatalog:
    """Tests for the built-in catalog."""

    def test_catalog_contents(self) -> None:
        """Test the stock monsters are all present."""
        assert set(catalog_ids()) == {
            "goblin",
            "skeleton",
            "zombie",
            "kobold",
            "bandit",
            "orc",
            "bugbear",
            "gelatinous_cube",
            "ogre",
            "young_red_dragon",
        }

    def test_every_entry_validates(self) -> None:
        for raw in MONSTER_CATALOG.values():
            template = MonsterTemplate.model_validate(raw)
            assert template.hp > 0
            assert template.needs_generation is False

    def test_goblin(self) -> None:
        goblin = find_catalog_monster("goblin")

        assert goblin is not None
        assert goblin.hp == 7
        assert goblin.ac == 15
        assert goblin.cr == "1/4"
        assert goblin.dexterity == 14
        assert goblin.actions[0].damage == "1d6+2"

    def test_skeleton_defenses(self) -> None:
        skeleton = find_catalog_monster("Skeleton")

        assert skeleton is not None
        assert skeleton.vulnerabilities == ["bludgeoning"]
        assert skeleton.immunities == ["poison"]

    def test_lookup_by_name(self) -> None:
        cube = find_catalog_monster("Gelatinous Cube")

        assert cube is not None
        assert cube.id == "gelatinous_cube"

    def test_unknown(self) -> None:
        assert find_catalog_monster("void_spider") is None

    def test_returns_fresh_copy(self) -> None:
        """Test mutating a returned template leaves the catalog intact."""
        first = find_catalog_monster("orc")
        assert first is not None
        first.hp = 1

        second = find_catalog_monster("orc")
        assert second is not None
        assert second.hp == 15
