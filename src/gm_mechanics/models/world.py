"""World records as seen by the combat core."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gm_mechanics.models.monsters import MonsterTemplate


class World(BaseModel):
    """A campaign world and its custom monster list.

    Attributes:
        id: World identifier used as the world store key.
        name: World name.
        brief_description: One-paragraph setting summary, passed to the generator.
        monsters: World-specific monster templates, checked before the catalog.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    id: str = Field(min_length=1, description="World identifier")
    name: str = Field(default="", description="World name")
    brief_description: str = Field(default="", alias="briefDescription")
    monsters: list[MonsterTemplate] = Field(default_factory=list)

    def find_monster(self, key: str) -> MonsterTemplate | None:
        """Find a template by case-insensitive id or name."""
        for template in self.monsters:
            if template.matches(key):
                return template
        return None


__all__ = [
    "World",
]
