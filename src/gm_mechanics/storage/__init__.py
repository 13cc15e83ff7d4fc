"""Storage module for world persistence."""

from gm_mechanics.storage.world_store import (
    InMemoryWorldStore,
    SqliteWorldStore,
    WorldStore,
    upsert_monster,
)


__all__ = [
    "InMemoryWorldStore",
    "SqliteWorldStore",
    "WorldStore",
    "upsert_monster",
]
