"""World store: persistent monster-template lists keyed by world id.

Two implementations share the ``WorldStore`` protocol:

- ``InMemoryWorldStore`` for tests and single-process embedding.
- ``SqliteWorldStore`` persisting each world as a JSON document.

Both expose ``update(world_id, fn)``, a read-modify-write primitive. The
generation callback uses it so a late template merges into whatever the
world holds at that moment instead of overwriting it wholesale.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Protocol

from pydantic import ValidationError as PydanticValidationError

from gm_mechanics.core.exceptions import StorageError
from gm_mechanics.core.logging import get_logger
from gm_mechanics.models.monsters import MonsterTemplate
from gm_mechanics.models.world import World

logger = get_logger(__name__)


# =============================================================================
# Helpers
# =============================================================================


def upsert_monster(world: World, template: MonsterTemplate) -> bool:
    """Insert or replace a template in a world's monster list.

    Templates are matched by case-insensitive id.

    Returns:
        True if the template was inserted, False if it replaced one.
    """
    key = template.id.lower()
    monsters = list(world.monsters)
    for index, existing in enumerate(monsters):
        if existing.id.lower() == key:
            monsters[index] = template
            world.monsters = monsters
            return False
    monsters.append(template)
    world.monsters = monsters
    return True


class WorldStore(Protocol):
    """Read/write access to worlds by id."""

    def get(self, world_id: str) -> World | None: ...

    def save(self, world: World) -> None: ...

    def update(self, world_id: str, fn: Callable[[World], None]) -> World: ...


# =============================================================================
# In-Memory Store
# =============================================================================


class InMemoryWorldStore:
    """Thread-safe in-process world store.

    Worlds are stored as copies; callers never hold a reference into the
    store.
    """

    def __init__(self, worlds: list[World] | None = None) -> None:
        self._worlds: dict[str, World] = {}
        self._lock = threading.Lock()
        for world in worlds or []:
            self.save(world)

    def get(self, world_id: str) -> World | None:
        with self._lock:
            world = self._worlds.get(world_id)
            return world.model_copy(deep=True) if world else None

    def save(self, world: World) -> None:
        with self._lock:
            self._worlds[world.id] = world.model_copy(deep=True)

    def update(self, world_id: str, fn: Callable[[World], None]) -> World:
        """Apply ``fn`` to the stored world, creating an empty one if absent."""
        with self._lock:
            world = self._worlds.get(world_id)
            if world is None:
                world = World(id=world_id)
            working = world.model_copy(deep=True)
            fn(working)
            self._worlds[world_id] = working
            return working.model_copy(deep=True)


# =============================================================================
# SQLite Store
# =============================================================================


class SqliteWorldStore:
    """SQLite-backed world store.

    Each row holds one world serialized as JSON. ``update`` runs its
    read-modify-write inside a single ``BEGIN IMMEDIATE`` transaction.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the database file. Parent directories are created.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()
        logger.info("World store initialized", path=str(self.db_path))

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a database connection with proper cleanup."""
        try:
            conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open world store: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StorageError(f"World store operation failed: {exc}") from exc
        except Exception:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS worlds (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL DEFAULT '',
                    world_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    @staticmethod
    def _load(world_id: str, raw: str) -> World:
        try:
            return World.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError) as exc:
            raise StorageError(
                f"Stored world is corrupt: {exc}",
                world_id=world_id,
            ) from exc

    @staticmethod
    def _write(conn: sqlite3.Connection, world: World) -> None:
        conn.execute(
            """
            INSERT OR REPLACE INTO worlds (id, name, world_json, updated_at)
            VALUES (?, ?, ?, ?)
            """,
            (
                world.id,
                world.name,
                world.model_dump_json(by_alias=True),
                datetime.now().isoformat(),
            ),
        )

    def get(self, world_id: str) -> World | None:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT world_json FROM worlds WHERE id = ?",
                (world_id,),
            ).fetchone()
        if row is None:
            return None
        return self._load(world_id, row["world_json"])

    def save(self, world: World) -> None:
        with self._get_connection() as conn:
            self._write(conn, world)
        logger.debug("World saved", world_id=world.id, monsters=len(world.monsters))

    def update(self, world_id: str, fn: Callable[[World], None]) -> World:
        """Apply ``fn`` to the stored world, creating an empty one if absent."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT world_json FROM worlds WHERE id = ?",
                (world_id,),
            ).fetchone()
            world = self._load(world_id, row["world_json"]) if row else World(id=world_id)
            fn(world)
            self._write(conn, world)
        return world

    def delete(self, world_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute("DELETE FROM worlds WHERE id = ?", (world_id,))
            return cursor.rowcount > 0


__all__ = [
    "WorldStore",
    "InMemoryWorldStore",
    "SqliteWorldStore",
    "upsert_monster",
]
