from __future__ import annotations

from modsync.core.config.models import PackagesConfig
from modsync.core.packages.base import DependencySpec, PackageManagerBackend, PackageOpResult
from modsync.core.packages.command import CommandBackend
from modsync.core.packages.pip import PipBackend


def build_backend(cfg: PackagesConfig) -> PackageManagerBackend:
    if cfg.backend == "command":
        return CommandBackend(
            install_command=list(cfg.install_command),
            remove_command=list(cfg.remove_command),
            timeout_seconds=cfg.timeout_seconds,
        )
    return PipBackend(
        python_executable=cfg.resolved_python(),
        extra_args=list(cfg.extra_args),
        timeout_seconds=cfg.timeout_seconds,
    )


__all__ = ["CommandBackend", "DependencySpec", "PackageManagerBackend", "PackageOpResult", "PipBackend", "build_backend"]
