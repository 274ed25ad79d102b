from __future__ import annotations

"""
Descriptor store: read/write <module_dir>/module.json.

WHY THIS FILE EXISTS:
Every path that changes a module's enabled flag (sync, enable, disable,
required-module activation) goes through here, so timestamps and the on-disk
format stay identical no matter who wrote the file.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from pydantic import ValidationError

from modsync.core.config.io import write_json_atomic
from modsync.core.errors import DescriptorMissingError, MalformedDescriptorError, ModuleMissingError
from modsync.core.modules.discovery import LocatedModule, ModuleDiscovery
from modsync.core.modules.models import ModuleDescriptor
from modsync.core.state.models import iso_now


@dataclass
class LoadedDescriptor:
    location: LocatedModule
    descriptor: ModuleDescriptor
    # raw object as read; rewrites start from it to keep key order and extra keys
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.location.name

    @property
    def path(self) -> str:
        return self.location.descriptor_path


class DescriptorStore:
    def __init__(self, *, discovery: ModuleDiscovery, clock: Callable[[], str] = iso_now):
        self.discovery = discovery
        self.clock = clock

    def locate(self, name: str) -> LocatedModule:
        loc = self.discovery.locate(name)
        if loc is None:
            raise ModuleMissingError(name)
        return loc

    def exists(self, name: str) -> bool:
        loc = self.discovery.locate(name)
        return loc is not None and loc.has_descriptor()

    def load(self, name: str) -> LoadedDescriptor:
        """
        Raises ModuleMissingError (no module dir), DescriptorMissingError
        (dir without module.json) or MalformedDescriptorError.
        """
        loc = self.locate(name)
        if not loc.has_descriptor():
            raise DescriptorMissingError(name, path=loc.descriptor_path)
        try:
            with open(loc.descriptor_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise MalformedDescriptorError(name, str(e), path=loc.descriptor_path) from e
        except (OSError, UnicodeDecodeError) as e:
            raise MalformedDescriptorError(name, str(e), path=loc.descriptor_path) from e
        if not isinstance(raw, dict):
            raise MalformedDescriptorError(name, "descriptor is not an object", path=loc.descriptor_path)
        try:
            desc = ModuleDescriptor.model_validate(raw)
        except ValidationError as e:
            raise MalformedDescriptorError(name, str(e).splitlines()[0], path=loc.descriptor_path) from e
        if not desc.name:
            desc = desc.model_copy(update={"name": name})
        return LoadedDescriptor(location=loc, descriptor=desc, raw=dict(raw))

    def dependencies_of(self, name: str) -> List[str]:
        """Declared dependency strings; a module without a readable descriptor declares none."""
        try:
            return list(self.load(name).descriptor.dependencies)
        except (ModuleMissingError, DescriptorMissingError, MalformedDescriptorError):
            return []

    def set_enabled(self, loaded: LoadedDescriptor, enabled: bool) -> LoadedDescriptor:
        """
        Rewrite the descriptor with the new flag. Enabling stamps
        last_enabled_at, disabling stamps last_disabled_at; the other
        timestamp is left as it was.
        """
        raw = dict(loaded.raw)
        raw["enabled"] = bool(enabled)
        if enabled:
            raw["last_enabled_at"] = self.clock()
        else:
            raw["last_disabled_at"] = self.clock()
        write_json_atomic(loaded.path, raw)
        desc = ModuleDescriptor.model_validate(raw)
        if not desc.name:
            desc = desc.model_copy(update={"name": loaded.name})
        return LoadedDescriptor(location=loaded.location, descriptor=desc, raw=raw)
