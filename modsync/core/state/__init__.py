from __future__ import annotations

from modsync.core.state.store_sqlite import ModuleStateStore

__all__ = ["ModuleStateStore"]
