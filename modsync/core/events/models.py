from __future__ import annotations

import json
import time
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MODULE_ENABLED = "module.enabled"
MODULE_DISABLED = "module.disabled"


class EventSeverity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


class SourceSubsystem(str, Enum):
    modules = "modules"
    reconciler = "reconciler"
    activator = "activator"
    installer = "installer"
    events = "events"


class BaseEvent(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    event_type: str
    timestamp: float = Field(default_factory=lambda: time.time())
    trace_id: Optional[str] = None
    source_subsystem: SourceSubsystem
    severity: EventSeverity = EventSeverity.INFO
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("event_type")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = str(v or "").strip()
        if not v:
            raise ValueError("event_type required")
        return v

    @field_validator("payload")
    @classmethod
    def _jsonable(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(v, dict):
            raise ValueError("payload must be an object")
        try:
            json.dumps(v, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise ValueError("payload must be JSON-serializable") from e
        return v

    @property
    def module(self) -> str:
        return str(self.payload.get("module") or "")


def module_enabled(module: str, *, trace_id: Optional[str] = None, source: SourceSubsystem = SourceSubsystem.modules) -> BaseEvent:
    return BaseEvent(event_type=MODULE_ENABLED, trace_id=trace_id, source_subsystem=source, payload={"module": str(module)})


def module_disabled(module: str, *, trace_id: Optional[str] = None, source: SourceSubsystem = SourceSubsystem.modules) -> BaseEvent:
    return BaseEvent(event_type=MODULE_DISABLED, trace_id=trace_id, source_subsystem=source, payload={"module": str(module)})
