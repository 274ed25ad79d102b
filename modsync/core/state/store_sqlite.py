from __future__ import annotations

"""
SQLite-backed module state table.

WHY THIS FILE EXISTS:
The state table is the second record of which modules are enabled. It also
answers "which other modules are enabled right now", which the installer
needs before it removes any package.
"""

import os
import sqlite3
from typing import Any, Callable, Dict, List, Optional

from modsync.core.errors import StateStoreError
from modsync.core.state.models import DEFAULT_VERSION, ModuleStateRow, ModuleStatus, default_description, iso_now
from modsync.core.state.migrations import apply_migrations, schema_version

_COLUMNS = (
    "name",
    "version",
    "description",
    "enabled",
    "status",
    "last_enabled_at",
    "last_disabled_at",
    "created_at",
    "updated_at",
)


def _row_to_model(row: sqlite3.Row) -> ModuleStateRow:
    d: Dict[str, Any] = {k: row[k] for k in _COLUMNS}
    d["enabled"] = bool(d["enabled"])
    d["version"] = d["version"] or DEFAULT_VERSION
    d["description"] = d["description"] or ""
    return ModuleStateRow.model_validate(d)


class ModuleStateStore:
    def __init__(self, *, path: str, clock: Callable[[], str] = iso_now, logger=None):
        self.path = path
        self.clock = clock
        self.logger = logger
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._init()

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        return conn

    def _run(self, fn: Callable[[sqlite3.Connection], Any]) -> Any:
        conn = self._conn()
        try:
            with conn:
                return fn(conn)
        except sqlite3.Error as e:
            raise StateStoreError(f"State store error: {e}", path=self.path) from e
        finally:
            conn.close()

    def _init(self) -> None:
        applied = self._run(apply_migrations)
        if applied and self.logger:
            self.logger.info(f"State store schema migrated to v{applied[-1]} ({self.path})")

    def schema_version(self) -> int:
        return int(self._run(schema_version))

    def get(self, name: str) -> Optional[ModuleStateRow]:
        def _q(c: sqlite3.Connection) -> Optional[ModuleStateRow]:
            row = c.execute("SELECT * FROM module_states WHERE name = ?", (str(name),)).fetchone()
            return _row_to_model(row) if row is not None else None

        return self._run(_q)

    def all(self) -> List[ModuleStateRow]:
        def _q(c: sqlite3.Connection) -> List[ModuleStateRow]:
            return [_row_to_model(r) for r in c.execute("SELECT * FROM module_states ORDER BY name").fetchall()]

        return self._run(_q)

    def list_enabled_modules(self) -> List[str]:
        def _q(c: sqlite3.Connection) -> List[str]:
            rows = c.execute("SELECT name FROM module_states WHERE enabled = 1 ORDER BY name").fetchall()
            return [str(r["name"]) for r in rows]

        return self._run(_q)

    def insert(
        self,
        name: str,
        *,
        enabled: bool,
        version: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ModuleStateRow:
        ts = self.clock()
        row = ModuleStateRow(
            name=name,
            version=version or DEFAULT_VERSION,
            description=description or default_description(name),
            enabled=bool(enabled),
            status=ModuleStatus.enabled if enabled else ModuleStatus.disabled,
            last_enabled_at=ts if enabled else None,
            last_disabled_at=None if enabled else ts,
            created_at=ts,
            updated_at=ts,
        )

        def _w(c: sqlite3.Connection) -> None:
            c.execute(
                f"INSERT INTO module_states({', '.join(_COLUMNS)}) VALUES ({', '.join('?' for _ in _COLUMNS)})",
                (
                    row.name,
                    row.version,
                    row.description,
                    1 if row.enabled else 0,
                    row.status.value,
                    row.last_enabled_at,
                    row.last_disabled_at,
                    row.created_at,
                    row.updated_at,
                ),
            )

        self._run(_w)
        return row

    def set_enabled(self, name: str, enabled: bool) -> ModuleStateRow:
        """
        Update an existing row. Enabling stamps last_enabled_at, disabling
        stamps last_disabled_at; updated_at always moves.
        """
        ts = self.clock()
        stamp_col = "last_enabled_at" if enabled else "last_disabled_at"
        status = ModuleStatus.enabled if enabled else ModuleStatus.disabled

        def _w(c: sqlite3.Connection) -> int:
            cur = c.execute(
                f"UPDATE module_states SET enabled = ?, status = ?, {stamp_col} = ?, updated_at = ? WHERE name = ?",
                (1 if enabled else 0, status.value, ts, ts, str(name)),
            )
            return int(cur.rowcount)

        if self._run(_w) == 0:
            raise StateStoreError("No state row to update.", module=name)
        row = self.get(name)
        if row is None:
            raise StateStoreError("State row vanished during update.", module=name)
        return row

    def upsert_enabled(
        self,
        name: str,
        enabled: bool,
        *,
        version: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ModuleStateRow:
        if self.get(name) is None:
            return self.insert(name, enabled=enabled, version=version, description=description)
        return self.set_enabled(name, enabled)
