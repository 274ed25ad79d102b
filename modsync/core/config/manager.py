from __future__ import annotations

import os
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from modsync.core.config.io import ReadResult, atomic_write_json, ensure_dirs, quarantine_corrupt, read_json_file
from modsync.core.config.models import ActivationConfig, AppConfig, AppFileConfig, EventsConfig, PackagesConfig
from modsync.core.config.paths import ConfigFsPaths
from modsync.core.errors import ConfigError


CONFIG_FILES: Dict[str, type] = {
    "app.json": AppFileConfig,
    "packages.json": PackagesConfig,
    "activation.json": ActivationConfig,
    "events.json": EventsConfig,
}


class ConfigManager:
    def __init__(self, *, fs: Optional[ConfigFsPaths] = None, logger=None, read_only: bool = False):
        self.fs = fs or ConfigFsPaths(".")
        self.logger = logger
        self.read_only = read_only
        self._cfg: Optional[AppConfig] = None

    # ---------- public API ----------
    def load_all(self) -> AppConfig:
        if not self.read_only:
            ensure_dirs(self.fs.config_dir, self.fs.backups_dir)
        files = self._load_raw_files()
        max_backups = int(((files.get("app.json") or {}).get("backups") or {}).get("max_backups_per_file", 10))
        ensured = self._ensure_defaults(files, max_backups=max_backups)
        cfg = self._validate_all(ensured)
        self._cfg = cfg
        return cfg

    def get(self) -> AppConfig:
        if self._cfg is None:
            raise ConfigError("Config not loaded.")
        return self._cfg

    def save(self, filename: str, data: Dict[str, Any]) -> AppConfig:
        """
        Atomic write + backup, then re-validate the whole set.
        The backup remains available when validation fails.
        """
        if self.read_only:
            raise ConfigError("Config manager is read-only.")
        if filename not in CONFIG_FILES:
            raise ConfigError(f"Unknown config file: {filename}")
        if not isinstance(data, dict):
            raise ConfigError("Config data must be an object.")
        max_backups = 10
        if self._cfg is not None:
            max_backups = int((self._cfg.app.backups or {}).get("max_backups_per_file", 10))
        atomic_write_json(os.path.join(self.fs.config_dir, filename), data, self.fs.backups_dir, max_backups=max_backups)
        return self.load_all()

    def resolve_path(self, path: str) -> str:
        return self.fs.resolve(path)

    def modules_dirs(self) -> List[str]:
        return [self.resolve_path(p) for p in self.get().app.paths.modules_dirs]

    def vendor_dirs(self) -> List[str]:
        return [self.resolve_path(p) for p in self.get().app.paths.vendor_dirs]

    def state_db_path(self) -> str:
        return self.resolve_path(self.get().app.paths.state_db)

    def logs_dir(self) -> str:
        return self.resolve_path(self.get().app.paths.logs_dir)

    def runtime_dir(self) -> str:
        return self.resolve_path(self.get().app.paths.runtime_dir)

    def events_path(self) -> str:
        return self.resolve_path(self.get().events.jsonl_path)

    # ---------- internals ----------
    def _load_raw_files(self) -> Dict[str, Dict[str, Any]]:
        out: Dict[str, Dict[str, Any]] = {}
        for name in CONFIG_FILES:
            path = os.path.join(self.fs.config_dir, name)
            rr: ReadResult = read_json_file(path)
            if rr.ok:
                out[name] = rr.data
                continue
            if rr.error and rr.error != "missing":
                moved = None if self.read_only else quarantine_corrupt(path, self.fs.backups_dir)
                if self.logger:
                    self.logger.warning(f"Unreadable config {name} ({rr.error}); quarantined={bool(moved)}, using defaults.")
            out[name] = {}
        return out

    def _ensure_defaults(self, files: Dict[str, Dict[str, Any]], *, max_backups: int) -> Dict[str, Dict[str, Any]]:
        out = dict(files)
        for name, model in CONFIG_FILES.items():
            if out.get(name):
                continue
            dflt = model().model_dump()
            out[name] = dflt
            if self.read_only:
                continue
            if self.logger:
                self.logger.info(f"Missing config {name}; creating defaults.")
            atomic_write_json(os.path.join(self.fs.config_dir, name), dflt, self.fs.backups_dir, max_backups=max_backups)
        return out

    def _validate_all(self, files: Dict[str, Dict[str, Any]]) -> AppConfig:
        try:
            return AppConfig(
                app=AppFileConfig.model_validate(files.get("app.json") or {}),
                packages=PackagesConfig.model_validate(files.get("packages.json") or {}),
                activation=ActivationConfig.model_validate(files.get("activation.json") or {}),
                events=EventsConfig.model_validate(files.get("events.json") or {}),
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
