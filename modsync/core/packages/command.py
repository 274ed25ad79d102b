from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from modsync.core.errors import ConfigError
from modsync.core.packages.base import DependencySpec, PackageManagerBackend, PackageOpResult, run_argv


def render_argv(template: List[str], *, package: str, constraint: str = "*") -> List[str]:
    requirement = package if constraint in {"", "*"} else f"{package}:{constraint}"
    values = {"package": package, "constraint": constraint, "requirement": requirement}
    try:
        return [str(part).format(**values) for part in template]
    except (KeyError, IndexError, ValueError) as e:
        raise ConfigError(f"Invalid package command template: {e}", template=list(template)) from e


@dataclass
class CommandBackend(PackageManagerBackend):
    """Runs user-configured argv templates, e.g. ["composer", "require", "{requirement}"]."""

    install_command: List[str] = field(default_factory=list)
    remove_command: List[str] = field(default_factory=list)
    timeout_seconds: Optional[float] = None
    name: str = "command"

    def __post_init__(self) -> None:
        if not self.install_command or not self.remove_command:
            raise ConfigError("The command package backend needs install_command and remove_command.")

    def install_package(self, spec: DependencySpec) -> PackageOpResult:
        argv = render_argv(self.install_command, package=spec.package, constraint=spec.constraint)
        return run_argv(argv, package=spec.package, timeout_seconds=self.timeout_seconds)

    def remove_package(self, package: str) -> PackageOpResult:
        argv = render_argv(self.remove_command, package=package)
        return run_argv(argv, package=package, timeout_seconds=self.timeout_seconds)
