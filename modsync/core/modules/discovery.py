from __future__ import annotations

"""
Module discovery across the local and vendor module roots.

WHY THIS FILE EXISTS:
A module is a directory named after the module. Local roots win over vendor
roots when both contain the same name. Discovery only looks at directory
names and never reads or executes module code.
"""

import os
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional

DESCRIPTOR_FILENAME = "module.json"

_SAFE_NAME = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]{0,127}")


@dataclass(frozen=True)
class LocatedModule:
    name: str
    module_dir: str
    is_vendor: bool = False

    @property
    def descriptor_path(self) -> str:
        return os.path.join(self.module_dir, DESCRIPTOR_FILENAME)

    def has_descriptor(self) -> bool:
        return os.path.isfile(self.descriptor_path)


def is_safe_module_name(name: str) -> bool:
    name = str(name or "")
    return bool(_SAFE_NAME.fullmatch(name)) and name not in {".", ".."}


class ModuleDiscovery:
    def __init__(self, *, modules_dirs: Iterable[str], vendor_dirs: Iterable[str] = ()):
        self.modules_dirs = [str(d) for d in modules_dirs]
        self.vendor_dirs = [str(d) for d in vendor_dirs]

    def _roots(self) -> List[tuple[str, bool]]:
        return [(d, False) for d in self.modules_dirs] + [(d, True) for d in self.vendor_dirs]

    def list_modules(self) -> List[str]:
        """All module directory names, local roots first, de-duplicated."""
        out: List[str] = []
        seen = set()
        for root, _is_vendor in self._roots():
            if not os.path.isdir(root):
                continue
            for name in sorted(os.listdir(root)):
                if name.startswith(".") or name.startswith("_"):
                    continue
                if not os.path.isdir(os.path.join(root, name)):
                    continue
                if name in seen:
                    continue
                seen.add(name)
                out.append(name)
        return out

    def locate(self, name: str) -> Optional[LocatedModule]:
        if not is_safe_module_name(name):
            return None
        for root, is_vendor in self._roots():
            mod_dir = os.path.join(root, name)
            if os.path.isdir(mod_dir):
                return LocatedModule(name=name, module_dir=mod_dir, is_vendor=is_vendor)
        return None

    def exists(self, name: str) -> bool:
        return self.locate(name) is not None
