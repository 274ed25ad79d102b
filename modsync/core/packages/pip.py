from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import List, Optional

from modsync.core.packages.base import DependencySpec, PackageManagerBackend, PackageOpResult, run_argv

_OPERATORS = ("==", "!=", ">=", "<=", "~=", "===", ">", "<", "@")


def pip_requirement(spec: DependencySpec) -> str:
    """
    Map a package:constraint pair to a pip requirement string.
    "*" means any version; a bare version pins it; operators pass through.
    """
    constraint = (spec.constraint or "*").strip()
    if constraint in {"", "*"}:
        return spec.package
    if constraint.startswith(_OPERATORS):
        return f"{spec.package}{constraint}"
    if constraint[0].isdigit():
        return f"{spec.package}=={constraint}"
    return f"{spec.package}{constraint}"


@dataclass
class PipBackend(PackageManagerBackend):
    python_executable: str = field(default_factory=lambda: sys.executable)
    extra_args: List[str] = field(default_factory=list)
    timeout_seconds: Optional[float] = None
    name: str = "pip"

    def install_package(self, spec: DependencySpec) -> PackageOpResult:
        argv = [self.python_executable, "-m", "pip", "install", *self.extra_args, pip_requirement(spec)]
        return run_argv(argv, package=spec.package, timeout_seconds=self.timeout_seconds)

    def remove_package(self, package: str) -> PackageOpResult:
        argv = [self.python_executable, "-m", "pip", "uninstall", "-y", *self.extra_args, package]
        return run_argv(argv, package=package, timeout_seconds=self.timeout_seconds)
