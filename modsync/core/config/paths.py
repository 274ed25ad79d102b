from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ConfigFsPaths:
    root: str = "."

    @property
    def config_dir(self) -> str:
        return os.path.join(self.root, "config")

    @property
    def backups_dir(self) -> str:
        return os.path.join(self.config_dir, "backups")

    # Files
    @property
    def app(self) -> str:
        return os.path.join(self.config_dir, "app.json")

    @property
    def packages(self) -> str:
        return os.path.join(self.config_dir, "packages.json")

    @property
    def activation(self) -> str:
        return os.path.join(self.config_dir, "activation.json")

    @property
    def events(self) -> str:
        return os.path.join(self.config_dir, "events.json")

    def resolve(self, path: str) -> str:
        """Config paths are relative to the project root unless absolute."""
        p = str(path or "")
        if os.path.isabs(p):
            return p
        return os.path.join(self.root, p)
