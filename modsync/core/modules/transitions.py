from __future__ import annotations

"""
Transition writer: the single place that flips a module's enabled flag.

WHY THIS FILE EXISTS:
Sync, enable, disable and required-module activation all need the same
primitive writes (state row, descriptor, dependency install/removal, domain
event). Keeping them here means the enable path and the sync path cannot drift
apart in timestamps, row defaults or event emission.
"""

from typing import Any, Optional

from modsync.core.events.models import BaseEvent, SourceSubsystem, module_disabled, module_enabled
from modsync.core.logger import component_logger
from modsync.core.modules.descriptor_store import DescriptorStore, LoadedDescriptor
from modsync.core.modules.installer import DependencyInstaller
from modsync.core.state.models import ModuleStateRow
from modsync.core.state.store_sqlite import ModuleStateStore


class TransitionWriter:
    def __init__(
        self,
        *,
        descriptors: DescriptorStore,
        state_store: ModuleStateStore,
        installer: DependencyInstaller,
        event_bus: Any = None,
        logger: Any = None,
    ):
        self.descriptors = descriptors
        self.state_store = state_store
        self.installer = installer
        self.event_bus = event_bus
        self.logger = component_logger("transitions", logger)

    # ---- primitives ----
    def write_state(self, loaded: LoadedDescriptor, enabled: bool) -> ModuleStateRow:
        """Upsert the state row; a new row takes version/description from the descriptor."""
        desc = loaded.descriptor
        return self.state_store.upsert_enabled(
            loaded.name,
            enabled,
            version=desc.version,
            description=desc.description,
        )

    def write_descriptor(self, loaded: LoadedDescriptor, enabled: bool) -> LoadedDescriptor:
        return self.descriptors.set_enabled(loaded, enabled)

    def sync_dependencies(self, module: str, enabled: bool) -> bool:
        if enabled:
            return self.installer.install_dependencies(module)
        return self.installer.remove_dependencies(module)

    def announce(
        self,
        module: str,
        enabled: bool,
        *,
        trace_id: Optional[str] = None,
        source: SourceSubsystem = SourceSubsystem.modules,
    ) -> Optional[BaseEvent]:
        ev = module_enabled(module, trace_id=trace_id, source=source) if enabled else module_disabled(module, trace_id=trace_id, source=source)
        if self.event_bus is None:
            return ev
        try:
            self.event_bus.publish_nowait(ev)
        except Exception as e:  # noqa: BLE001
            self.logger.warning(f"Event publish failed for {ev.event_type} [{module}]: {e}")
        return ev

    # ---- composite transitions ----
    def enable(
        self,
        loaded: LoadedDescriptor,
        *,
        trace_id: Optional[str] = None,
        source: SourceSubsystem = SourceSubsystem.modules,
    ) -> bool:
        """Install packages, then state row, then descriptor, then ModuleEnabled. Returns the install result."""
        deps_ok = self.sync_dependencies(loaded.name, True)
        self.write_state(loaded, True)
        self.write_descriptor(loaded, True)
        self.announce(loaded.name, True, trace_id=trace_id, source=source)
        self.logger.info(f"Module [{loaded.name}] enabled")
        return deps_ok

    def disable(
        self,
        loaded: LoadedDescriptor,
        *,
        trace_id: Optional[str] = None,
        source: SourceSubsystem = SourceSubsystem.modules,
    ) -> bool:
        """
        State row, descriptor and ModuleDisabled first, then package removal.
        The row must already say disabled so the module no longer counts as
        a user of its own packages. Returns the removal result.
        """
        self.write_state(loaded, False)
        self.write_descriptor(loaded, False)
        self.announce(loaded.name, False, trace_id=trace_id, source=source)
        self.logger.info(f"Module [{loaded.name}] disabled")
        return self.sync_dependencies(loaded.name, False)
