from __future__ import annotations

"""
Dependency installer: keeps a module's declared packages installed while it
is enabled and removes them when it is disabled.

WHY THIS FILE EXISTS:
Packages are shared. Removal must first subtract every package that another
enabled module still declares, using the state store's enabled list (not a
filesystem scan). Install failures are logged and skipped so an optional
package never blocks enabling a module.
"""

from typing import Any, Dict, Iterable, List, Optional, Set

from modsync.core.errors import DependencyInstallError, DependencyRemovalError
from modsync.core.logger import component_logger
from modsync.core.modules.descriptor_store import DescriptorStore
from modsync.core.packages.base import DependencySpec, PackageManagerBackend, PackageOpResult
from modsync.core.state.store_sqlite import ModuleStateStore


def parse_dependency_spec(raw: str) -> Optional[DependencySpec]:
    """
    "vendor/pkg:^1.2" -> (vendor/pkg, ^1.2); "pkg" -> (pkg, *).
    Splits on the first ":" only. Returns None for a blank package id.
    """
    text = str(raw or "")
    if ":" in text:
        package, constraint = text.split(":", 1)
    else:
        package, constraint = text, ""
    package = package.strip()
    constraint = constraint.strip() or "*"
    if not package:
        return None
    return DependencySpec(package=package, constraint=constraint)


def parse_dependency_specs(items: Iterable[str]) -> List[DependencySpec]:
    """One spec per package: a repeated package keeps its first position and its last constraint."""
    by_package: Dict[str, DependencySpec] = {}
    for raw in items or []:
        spec = parse_dependency_spec(raw)
        if spec is not None:
            by_package[spec.package] = spec
    return list(by_package.values())


class DependencyInstaller:
    def __init__(
        self,
        *,
        descriptors: DescriptorStore,
        state_store: ModuleStateStore,
        backend: PackageManagerBackend,
        logger: Any = None,
    ):
        self.descriptors = descriptors
        self.state_store = state_store
        self.backend = backend
        self.logger = component_logger("installer", logger)

    def specs_for(self, module: str) -> List[DependencySpec]:
        return parse_dependency_specs(self.descriptors.dependencies_of(module))

    def install_dependencies(self, module: str) -> bool:
        """
        Install every declared package independently. A failed package is
        logged and skipped; the call still reports success.
        """
        specs = self.specs_for(module)
        if not specs:
            return True
        self.logger.info(f"Installing {len(specs)} dependencies for module [{module}]")
        for spec in specs:
            res = self._call(lambda: self.backend.install_package(spec), package=spec.package)
            if res.ok:
                self.logger.info(f"Installed {spec} for module [{module}]")
                continue
            err = DependencyInstallError(spec.package, res.detail, module=module, constraint=spec.constraint)
            self.logger.warning(f"{err.user_message} for module [{module}]: {res.detail or 'unknown error'} (skipped)")
        return True

    def packages_needed_by_others(self, module: str) -> Set[str]:
        needed: Set[str] = set()
        for other in self.state_store.list_enabled_modules():
            if other == module:
                continue
            for spec in self.specs_for(other):
                needed.add(spec.package)
        return needed

    def removable_packages(self, module: str) -> List[str]:
        """Packages of `module` that no other enabled module declares, in declaration order."""
        still_needed = self.packages_needed_by_others(module)
        out: List[str] = []
        for spec in self.specs_for(module):
            if spec.package in still_needed or spec.package in out:
                continue
            out.append(spec.package)
        return out

    def remove_dependencies(self, module: str) -> bool:
        specs = self.specs_for(module)
        if not specs:
            return True
        candidates = self.removable_packages(module)
        kept = sorted({s.package for s in specs} - set(candidates))
        if kept:
            self.logger.info(f"Keeping packages still used by other enabled modules: {', '.join(kept)}")
        if not candidates:
            return True
        ok = True
        for package in candidates:
            res = self._call(lambda: self.backend.remove_package(package), package=package)
            if res.ok:
                self.logger.info(f"Removed {package} (module [{module}] disabled)")
                continue
            ok = False
            err = DependencyRemovalError(package, res.detail, module=module)
            self.logger.error(f"{err.user_message} for module [{module}]: {res.detail or 'unknown error'}")
        return ok

    def _call(self, fn, *, package: str) -> PackageOpResult:
        try:
            return fn()
        except Exception as e:  # noqa: BLE001
            return PackageOpResult(ok=False, package=package, detail=str(e))
