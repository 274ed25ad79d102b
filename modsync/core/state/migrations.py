from __future__ import annotations

import sqlite3
from typing import Callable, List, Tuple


def _m1_create_module_states(c: sqlite3.Connection) -> None:
    c.execute(
        """
        CREATE TABLE IF NOT EXISTS module_states (
          name TEXT PRIMARY KEY,
          version TEXT NOT NULL DEFAULT '1.0.0',
          description TEXT NOT NULL DEFAULT '',
          enabled INTEGER NOT NULL DEFAULT 0,
          status TEXT NOT NULL DEFAULT 'disabled',
          last_enabled_at TEXT,
          last_disabled_at TEXT,
          created_at TEXT,
          updated_at TEXT
        )
        """
    )


def _m2_status_index(c: sqlite3.Connection) -> None:
    c.execute("CREATE INDEX IF NOT EXISTS idx_module_states_status ON module_states(status);")


# (version, migration); applied in order, tracked via PRAGMA user_version
MIGRATIONS: List[Tuple[int, Callable[[sqlite3.Connection], None]]] = [
    (1, _m1_create_module_states),
    (2, _m2_status_index),
]

LATEST_VERSION = MIGRATIONS[-1][0]


def schema_version(c: sqlite3.Connection) -> int:
    row = c.execute("PRAGMA user_version;").fetchone()
    return int(row[0]) if row else 0


def apply_migrations(c: sqlite3.Connection) -> List[int]:
    """Bring the schema up to LATEST_VERSION. Returns the versions applied."""
    applied: List[int] = []
    current = schema_version(c)
    for version, fn in MIGRATIONS:
        if version <= current:
            continue
        fn(c)
        c.execute(f"PRAGMA user_version = {int(version)};")
        applied.append(version)
    return applied
