"""Static reference data bundled with the core."""

from gm_mechanics.data.monsters import MONSTER_CATALOG, catalog_ids, find_catalog_monster


__all__ = [
    "MONSTER_CATALOG",
    "catalog_ids",
    "find_catalog_monster",
]
