from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from modsync.core.config.io import write_json_atomic
from modsync.core.logger import component_logger
from modsync.core.modules.discovery import ModuleDiscovery
from modsync.core.state.models import iso_now
from modsync.core.state.store_sqlite import ModuleStateStore

INVENTORY_FILENAME = "enabled_modules.json"


class InventorySnapshotWriter:
    """
    Rewrites runtime/enabled_modules.json after a batch changed module state.
    Anything that loads modules at startup reads this file instead of
    scanning module roots itself.
    """

    def __init__(self, *, runtime_dir: str, discovery: ModuleDiscovery, state_store: ModuleStateStore, logger: Any = None):
        self.runtime_dir = str(runtime_dir)
        self.discovery = discovery
        self.state_store = state_store
        self.logger = component_logger("inventory", logger)

    @property
    def path(self) -> str:
        return os.path.join(self.runtime_dir, INVENTORY_FILENAME)

    def snapshot(self, *, trace_id: Optional[str] = None) -> Dict[str, Any]:
        modules: List[Dict[str, Any]] = []
        for name in self.state_store.list_enabled_modules():
            loc = self.discovery.locate(name)
            if loc is None:
                # enabled in the table but gone from disk; nothing to load
                self.logger.warning(f"Enabled module [{name}] not found on disk; left out of inventory")
                continue
            modules.append({"name": name, "path": loc.module_dir, "vendor": loc.is_vendor})
        return {"generated_at": iso_now(), "trace_id": trace_id or "", "modules": modules}

    def __call__(self, *, trace_id: Optional[str] = None) -> str:
        snap = self.snapshot(trace_id=trace_id)
        write_json_atomic(self.path, snap, sort_keys=True)
        self.logger.info(f"Module inventory written ({len(snap['modules'])} enabled): {self.path}")
        return self.path
