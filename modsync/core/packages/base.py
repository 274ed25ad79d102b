from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DependencySpec(BaseModel):
    """One declared package: "vendor/pkg:^1.2" -> (vendor/pkg, ^1.2)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    package: str = Field(min_length=1)
    constraint: str = "*"

    def __str__(self) -> str:
        return f"{self.package}:{self.constraint}"


@dataclass
class PackageOpResult:
    ok: bool
    package: str
    detail: str = ""
    returncode: Optional[int] = None
    argv: List[str] = field(default_factory=list)


class PackageManagerBackend:
    """
    Package-manager interface. Each call handles one package and reports
    success or failure; it never raises for an ordinary failed install.

    - install_package(spec)    -> install/require one package at a constraint
    - remove_package(package)  -> remove one package
    """

    name: str = "base"

    def install_package(self, spec: DependencySpec) -> PackageOpResult:
        raise NotImplementedError

    def remove_package(self, package: str) -> PackageOpResult:
        raise NotImplementedError


def run_argv(argv: List[str], *, package: str, timeout_seconds: Optional[float] = None) -> PackageOpResult:
    """Run one package-manager command and fold the outcome into a PackageOpResult."""
    try:
        proc = subprocess.run(  # noqa: S603
            argv,
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return PackageOpResult(ok=False, package=package, detail=f"timed out after {timeout_seconds}s", argv=list(argv))
    except OSError as e:
        return PackageOpResult(ok=False, package=package, detail=str(e), argv=list(argv))
    detail = (proc.stderr or proc.stdout or "").strip()
    return PackageOpResult(
        ok=proc.returncode == 0,
        package=package,
        detail=detail[-2000:],
        returncode=proc.returncode,
        argv=list(argv),
    )
