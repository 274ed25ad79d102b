from __future__ import annotations

import sys
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PathsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    # searched in order; a name found in several roots resolves to the first
    modules_dirs: List[str] = Field(default_factory=lambda: ["Modules"])
    vendor_dirs: List[str] = Field(default_factory=lambda: ["vendor/modules"])
    state_db: str = "storage/modsync.sqlite3"
    logs_dir: str = "logs"
    runtime_dir: str = "runtime"

    @field_validator("modules_dirs", "vendor_dirs", mode="before")
    @classmethod
    def _norm_dirs(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x or "").strip()]
        raise ValueError("expected a list of directories")


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: str = "INFO"
    max_bytes: int = Field(default=1_000_000, ge=10_000)
    backup_count: int = Field(default=5, ge=0, le=50)


class AppFileConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    config_version: int = Field(default=1, ge=1)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    backups: Dict[str, Any] = Field(default_factory=lambda: {"max_backups_per_file": 10})


class PackagesConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    backend: Literal["pip", "command"] = "pip"
    python_executable: str = ""
    # command backend argv templates: {package} {constraint} {requirement}
    install_command: List[str] = Field(default_factory=list)
    remove_command: List[str] = Field(default_factory=list)
    extra_args: List[str] = Field(default_factory=list)
    # None blocks until the package manager exits
    timeout_seconds: Optional[float] = Field(default=None, gt=0)

    def resolved_python(self) -> str:
        return self.python_executable or sys.executable


class ActivationConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    max_depth: int = Field(default=1, ge=1, le=10)
    assume_yes: bool = False
    sync_auto_enable_required: bool = True


class EventsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    jsonl_path: str = "logs/events/module_events.jsonl"


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    app: AppFileConfig = Field(default_factory=AppFileConfig)
    packages: PackagesConfig = Field(default_factory=PackagesConfig)
    activation: ActivationConfig = Field(default_factory=ActivationConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
