from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ModsyncError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.code)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": dict(self.context or {}),
        }


class ConfigError(ModsyncError):
    def __init__(self, user_message: str = "Configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


# ---- module lookup ----
class NotFoundError(ModsyncError):
    pass


class ModuleMissingError(NotFoundError):
    def __init__(self, module: str, **ctx: Any):
        super().__init__("module_not_found", "Module not found", severity=Severity.ERROR, recoverable=False, context={"module": module, **ctx})


class DescriptorMissingError(NotFoundError):
    def __init__(self, module: str, **ctx: Any):
        super().__init__("descriptor_not_found", "module.json not found", severity=Severity.ERROR, recoverable=False, context={"module": module, **ctx})


class MalformedDescriptorError(ModsyncError):
    def __init__(self, module: str, detail: str = "", **ctx: Any):
        msg = f"Invalid JSON file: {detail}" if detail else "Invalid JSON file"
        super().__init__("malformed_descriptor", msg[:300], severity=Severity.ERROR, recoverable=False, context={"module": module, **ctx})


# ---- persistence ----
class StateStoreError(ModsyncError):
    def __init__(self, user_message: str = "State store error.", **ctx: Any):
        super().__init__("state_store_error", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


# ---- package manager ----
class DependencyInstallError(ModsyncError):
    def __init__(self, package: str, detail: str = "", **ctx: Any):
        super().__init__(
            "dependency_install_failed",
            f"Failed to install package {package}",
            severity=Severity.WARN,
            recoverable=True,
            context={"package": package, "detail": str(detail or "")[:500], **ctx},
        )


class DependencyRemovalError(ModsyncError):
    def __init__(self, package: str, detail: str = "", **ctx: Any):
        super().__init__(
            "dependency_removal_failed",
            f"Failed to remove package {package}",
            severity=Severity.ERROR,
            recoverable=True,
            context={"package": package, "detail": str(detail or "")[:500], **ctx},
        )
