from __future__ import annotations

"""
State table row model and row defaults.

WHY THIS FILE EXISTS:
The state store and the module lifecycle code both speak in state rows. The
row model lives with the store so the state package imports nothing from the
module lifecycle package.
"""

import time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_VERSION = "1.0.0"


def iso_now() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def default_description(name: str) -> str:
    return f"{name} module for the application"


class ModuleStatus(str, Enum):
    enabled = "enabled"
    disabled = "disabled"


class ModuleStateRow(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    version: str = DEFAULT_VERSION
    description: str = ""
    enabled: bool = False
    status: ModuleStatus = ModuleStatus.disabled
    last_enabled_at: Optional[str] = None
    last_disabled_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
