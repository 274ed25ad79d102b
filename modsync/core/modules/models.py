from __future__ import annotations

"""
Module lifecycle models (descriptor file, sync/enable outcomes).

WHY THIS FILE EXISTS:
The descriptor (module.json) and the state table are two independent records
of the same module. These models are the shared vocabulary the reconciler,
installer and activator use to compare and converge them.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def flag_text(value: Optional[bool]) -> str:
    """Enabled flag as shown in messages and tables: true, false or N/A."""
    if value is None:
        return "N/A"
    return "true" if value else "false"


def _str_list(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        v = [v]
    if not isinstance(v, list):
        raise ValueError("expected a list of strings")
    # non-string entries are ignored, like the package manager would
    return [x.strip() for x in v if isinstance(x, str) and x.strip()]


class ModuleDescriptor(BaseModel):
    """
    Parsed view of <module_dir>/module.json. Unknown keys are kept so a
    rewrite never drops fields other tools put there.
    """

    model_config = ConfigDict(extra="allow")

    name: str = ""
    version: Optional[str] = None
    description: Optional[str] = None
    enabled: bool = False
    dependencies: List[str] = Field(default_factory=list)
    # modules this module needs enabled (upstream requirements despite the key name)
    dependents: List[str] = Field(default_factory=list)
    required: List[str] = Field(default_factory=list)
    last_enabled_at: Optional[str] = None
    last_disabled_at: Optional[str] = None

    @field_validator("dependencies", "dependents", "required", mode="before")
    @classmethod
    def _norm_lists(cls, v: Any) -> List[str]:
        return _str_list(v)

    @field_validator("enabled", mode="before")
    @classmethod
    def _norm_enabled(cls, v: Any) -> Any:
        return False if v is None else v

    @field_validator("name", "version", "description", mode="before")
    @classmethod
    def _scalar_to_str(cls, v: Any) -> Any:
        # hand-edited files often carry "version": 1
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def required_modules(self) -> List[str]:
        out: List[str] = []
        for name in list(self.dependents) + list(self.required):
            if name not in out:
                out.append(name)
        return out


class SyncStatus(str, Enum):
    synced = "synced"
    needs_sync = "needs_sync"
    conflict = "conflict"
    error = "error"


class SyncAction(str, Enum):
    none = "none"
    create_db_entry = "create_db_entry"
    update_json_from_db = "update_json_from_db"
    update_db_from_json = "update_db_from_json"


class SyncPolicy(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    force: bool = False
    db_priority: bool = False
    json_priority: bool = False
    dry_run: bool = False

    @property
    def prefers_state(self) -> bool:
        # --force means --db-priority unless --json-priority is also given
        return bool(self.db_priority or (self.force and not self.json_priority))

    @property
    def resolves_conflicts(self) -> bool:
        return bool(self.prefers_state or self.json_priority)


class SyncResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    module: str
    status: SyncStatus
    action: SyncAction = SyncAction.none
    message: str = ""
    descriptor_enabled: Optional[bool] = None
    state_enabled: Optional[bool] = None
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != SyncStatus.error


class ActivationStatus(str, Enum):
    completed = "completed"
    aborted = "aborted"


class ActivationOutcome(BaseModel):
    """
    Result of walking a module's required modules. A user decline is an
    ordinary outcome (status=aborted), not an exception.
    """

    model_config = ConfigDict(extra="forbid")

    module: str
    status: ActivationStatus = ActivationStatus.completed
    required: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    enabled: List[str] = Field(default_factory=list)
    already_enabled: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    message: str = ""

    @property
    def aborted(self) -> bool:
        return self.status == ActivationStatus.aborted


class OpOutcome(str, Enum):
    enabled = "enabled"
    already_enabled = "already_enabled"
    disabled = "disabled"
    already_disabled = "already_disabled"
    aborted = "aborted"
    error = "error"


class ModuleOpResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    module: str
    operation: str
    outcome: OpOutcome
    message: str = ""
    dependencies_ok: Optional[bool] = None
    activation: Optional[ActivationOutcome] = None
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome not in {OpOutcome.aborted, OpOutcome.error}

    @property
    def changed(self) -> bool:
        if self.outcome in {OpOutcome.enabled, OpOutcome.disabled}:
            return True
        return bool(self.activation and self.activation.enabled)


class BatchReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    operation: str
    trace_id: str
    dry_run: bool = False
    results: List[Union[SyncResult, ModuleOpResult]] = Field(default_factory=list)
    changed: bool = False

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results)

    def conflicts(self) -> List[SyncResult]:
        return [r for r in self.results if isinstance(r, SyncResult) and r.status == SyncStatus.conflict]

    def summary(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for r in self.results:
            key = r.status.value if isinstance(r, SyncResult) else r.outcome.value
            out[key] = out.get(key, 0) + 1
        return out


class ModuleListing(BaseModel):
    """One line of `list`: both records side by side. Safe to print or export."""

    model_config = ConfigDict(extra="forbid")

    name: str
    path: str = ""
    vendor: bool = False
    version: str = ""
    descriptor_enabled: Optional[bool] = None
    state_enabled: Optional[bool] = None
    status: str = ""
    error: str = ""
