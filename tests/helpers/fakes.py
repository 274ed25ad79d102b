from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from modsync.core.packages.base import DependencySpec, PackageManagerBackend, PackageOpResult


class TickClock:
    """Deterministic ISO timestamps, one second apart per call."""

    def __init__(self, start: int = 0):
        self.n = int(start)

    def __call__(self) -> str:
        self.n += 1
        return f"2024-01-01T00:{self.n // 60:02d}:{self.n % 60:02d}Z"


@dataclass
class FakePackageBackend(PackageManagerBackend):
    installed: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    fail_install: Set[str] = field(default_factory=set)
    fail_remove: Set[str] = field(default_factory=set)
    raise_on: Set[str] = field(default_factory=set)
    name: str = "fake"

    def install_package(self, spec: DependencySpec) -> PackageOpResult:
        if spec.package in self.raise_on:
            raise RuntimeError(f"backend crashed on {spec.package}")
        self.installed.append(str(spec))
        if spec.package in self.fail_install:
            return PackageOpResult(ok=False, package=spec.package, detail="not found", returncode=1)
        return PackageOpResult(ok=True, package=spec.package, returncode=0)

    def remove_package(self, package: str) -> PackageOpResult:
        if package in self.raise_on:
            raise RuntimeError(f"backend crashed on {package}")
        self.removed.append(package)
        if package in self.fail_remove:
            return PackageOpResult(ok=False, package=package, detail="in use", returncode=1)
        return PackageOpResult(ok=True, package=package, returncode=0)

    @property
    def calls(self) -> int:
        return len(self.installed) + len(self.removed)


class RecordingBus:
    def __init__(self):
        self.events: List[Any] = []

    def publish_nowait(self, ev: Any) -> bool:
        self.events.append(ev)
        return True

    def types(self) -> List[Tuple[str, str]]:
        return [(ev.event_type, ev.module) for ev in self.events]


class ScriptedPrompt:
    """
    confirm() answers from `answers`, matched by substring of the question.
    Unmatched questions take `fallback` (None means the question's default).
    """

    def __init__(self, answers: Optional[Dict[str, bool]] = None, *, fallback: Optional[bool] = None):
        self.answers = dict(answers or {})
        self.fallback = fallback
        self.asked: List[Tuple[str, bool]] = []

    def confirm(self, question: str, default: bool = False) -> bool:
        self.asked.append((question, default))
        for needle, answer in self.answers.items():
            if needle in question:
                return bool(answer)
        return bool(default) if self.fallback is None else bool(self.fallback)


def write_descriptor(modules_dir: str, name: str, **fields: Any) -> str:
    mod_dir = os.path.join(str(modules_dir), name)
    os.makedirs(mod_dir, exist_ok=True)
    obj: Dict[str, Any] = {"name": name, "version": "1.0.0", "description": f"{name} test module", "enabled": False}
    obj.update(fields)
    path = os.path.join(mod_dir, "module.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=4)
        f.write("\n")
    return path


def read_descriptor(modules_dir: str, name: str) -> Dict[str, Any]:
    with open(os.path.join(str(modules_dir), name, "module.json"), "r", encoding="utf-8") as f:
        return json.load(f)
