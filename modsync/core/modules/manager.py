from __future__ import annotations

"""
ModuleManager: enable / disable / sync over a batch of modules.

WHY THIS FILE EXISTS:
This is the single public API for module lifecycle operations. It ensures:
- every module in a batch is processed even if an earlier one failed
- every per-module outcome lands in the ops journal under one trace id
- the inventory snapshot is refreshed once after a batch that changed state
"""

import uuid
from typing import Any, Callable, Iterable, List, Optional, Union

from modsync.core.errors import ModsyncError
from modsync.core.logger import component_logger
from modsync.core.modules.activator import RequirementActivator
from modsync.core.modules.descriptor_store import DescriptorStore
from modsync.core.modules.discovery import ModuleDiscovery
from modsync.core.modules.dry_run import DryRunPlan
from modsync.core.modules.installer import DependencyInstaller
from modsync.core.modules.inventory import InventorySnapshotWriter
from modsync.core.modules.models import (
    BatchReport,
    ModuleListing,
    ModuleOpResult,
    OpOutcome,
    SyncAction,
    SyncPolicy,
    SyncResult,
    SyncStatus,
)
from modsync.core.modules.reconciler import Reconciler
from modsync.core.modules.transitions import TransitionWriter
from modsync.core.ops_log import OpsLogger
from modsync.core.packages import build_backend
from modsync.core.state.store_sqlite import ModuleStateStore

AnyResult = Union[SyncResult, ModuleOpResult]


def new_trace_id() -> str:
    return uuid.uuid4().hex


def _unique(names: Iterable[str]) -> List[str]:
    out: List[str] = []
    for n in names or []:
        n = str(n or "").strip()
        if n and n not in out:
            out.append(n)
    return out


class ModuleManager:
    def __init__(
        self,
        *,
        discovery: ModuleDiscovery,
        descriptors: DescriptorStore,
        state_store: ModuleStateStore,
        installer: DependencyInstaller,
        transitions: TransitionWriter,
        activator: RequirementActivator,
        reconciler: Reconciler,
        ops_log: Optional[OpsLogger] = None,
        on_state_changed: Optional[Callable[..., Any]] = None,
        logger: Any = None,
    ):
        self.discovery = discovery
        self.descriptors = descriptors
        self.state_store = state_store
        self.installer = installer
        self.transitions = transitions
        self.activator = activator
        self.reconciler = reconciler
        self.ops_log = ops_log
        self.on_state_changed = on_state_changed
        self.logger = component_logger("modules", logger)

    @classmethod
    def from_config(
        cls,
        config_manager: Any,
        *,
        event_bus: Any = None,
        prompt: Any = None,
        backend: Any = None,
        state_store: Optional[ModuleStateStore] = None,
        ops_log: Optional[OpsLogger] = None,
        on_state_changed: Optional[Callable[..., Any]] = None,
        logger: Any = None,
    ) -> "ModuleManager":
        """Wire the full component graph from a loaded ConfigManager."""
        cfg = config_manager.get()
        discovery = ModuleDiscovery(modules_dirs=config_manager.modules_dirs(), vendor_dirs=config_manager.vendor_dirs())
        descriptors = DescriptorStore(discovery=discovery)
        store = state_store or ModuleStateStore(path=config_manager.state_db_path(), logger=component_logger("state", logger))
        installer = DependencyInstaller(
            descriptors=descriptors,
            state_store=store,
            backend=backend if backend is not None else build_backend(cfg.packages),
            logger=logger,
        )
        transitions = TransitionWriter(descriptors=descriptors, state_store=store, installer=installer, event_bus=event_bus, logger=logger)
        activator = RequirementActivator(
            descriptors=descriptors,
            state_store=store,
            transitions=transitions,
            prompt=prompt,
            max_depth=cfg.activation.max_depth,
            auto_enable_non_interactive=cfg.activation.sync_auto_enable_required,
            logger=logger,
        )
        reconciler = Reconciler(descriptors=descriptors, state_store=store, transitions=transitions, activator=activator, logger=logger)
        if on_state_changed is None:
            on_state_changed = InventorySnapshotWriter(
                runtime_dir=config_manager.runtime_dir(),
                discovery=discovery,
                state_store=store,
                logger=logger,
            )
        return cls(
            discovery=discovery,
            descriptors=descriptors,
            state_store=store,
            installer=installer,
            transitions=transitions,
            activator=activator,
            reconciler=reconciler,
            ops_log=ops_log,
            on_state_changed=on_state_changed,
            logger=logger,
        )

    # ---- single-module operations ----
    def enable(self, module: str, *, trace_id: Optional[str] = None) -> ModuleOpResult:
        """
        Enable one module. Required modules are handled first, so an aborted
        activation leaves this module's descriptor and state row untouched.
        An already enabled module still gets its required modules checked.
        """
        loaded = self.descriptors.load(module)
        row = self.state_store.get(module)
        activation = self.activator.activate(loaded, interactive=True, trace_id=trace_id)
        if activation.aborted:
            return ModuleOpResult(
                module=module,
                operation="enable",
                outcome=OpOutcome.aborted,
                message=activation.message,
                activation=activation,
            )

        if loaded.descriptor.enabled and row is not None and row.enabled:
            deps_ok = self.transitions.sync_dependencies(module, True)
            message = f"Module [{module}] is already enabled"
            if activation.enabled:
                message += f" (enabled required: {', '.join(activation.enabled)})"
            return ModuleOpResult(
                module=module,
                operation="enable",
                outcome=OpOutcome.already_enabled,
                message=message,
                dependencies_ok=deps_ok,
                activation=activation,
            )

        deps_ok = self.transitions.enable(loaded, trace_id=trace_id)
        message = f"Module [{module}] enabled"
        if activation.enabled:
            message += f" (also enabled: {', '.join(activation.enabled)})"
        return ModuleOpResult(
            module=module,
            operation="enable",
            outcome=OpOutcome.enabled,
            message=message,
            dependencies_ok=deps_ok,
            activation=activation,
        )

    def disable(self, module: str, *, trace_id: Optional[str] = None) -> ModuleOpResult:
        loaded = self.descriptors.load(module)
        row = self.state_store.get(module)
        if not loaded.descriptor.enabled and row is not None and not row.enabled:
            deps_ok = self.transitions.sync_dependencies(module, False)
            return ModuleOpResult(
                module=module,
                operation="disable",
                outcome=OpOutcome.already_disabled,
                message=f"Module [{module}] is already disabled",
                dependencies_ok=deps_ok,
            )

        deps_ok = self.transitions.disable(loaded, trace_id=trace_id)
        message = f"Module [{module}] disabled"
        if not deps_ok:
            message += " (some packages could not be removed)"
        return ModuleOpResult(module=module, operation="disable", outcome=OpOutcome.disabled, message=message, dependencies_ok=deps_ok)

    def sync(
        self,
        module: str,
        policy: Optional[SyncPolicy] = None,
        *,
        trace_id: Optional[str] = None,
        plan: Optional[DryRunPlan] = None,
    ) -> SyncResult:
        return self.reconciler.reconcile(module, policy or SyncPolicy(), trace_id=trace_id, plan=plan)

    # ---- batches ----
    def enable_many(self, modules: Iterable[str], *, trace_id: Optional[str] = None) -> BatchReport:
        return self._batch("enable", _unique(modules), lambda m, t: self.enable(m, trace_id=t), trace_id=trace_id)

    def disable_many(self, modules: Iterable[str], *, trace_id: Optional[str] = None) -> BatchReport:
        return self._batch("disable", _unique(modules), lambda m, t: self.disable(m, trace_id=t), trace_id=trace_id)

    def sync_many(
        self,
        modules: Optional[Iterable[str]] = None,
        policy: Optional[SyncPolicy] = None,
        *,
        trace_id: Optional[str] = None,
    ) -> BatchReport:
        """Reconcile the named modules, or every discovered module when none are named."""
        policy = policy or SyncPolicy()
        names = _unique(modules or []) or self.discovery.list_modules()
        if not names:
            self.logger.warning("No modules found to synchronize.")
        plan = DryRunPlan() if policy.dry_run else None
        return self._batch(
            "sync",
            names,
            lambda m, t: self.sync(m, policy, trace_id=t, plan=plan),
            trace_id=trace_id,
            dry_run=policy.dry_run,
        )

    def _batch(
        self,
        operation: str,
        modules: List[str],
        fn: Callable[[str, str], AnyResult],
        *,
        trace_id: Optional[str] = None,
        dry_run: bool = False,
    ) -> BatchReport:
        trace_id = trace_id or new_trace_id()
        report = BatchReport(operation=operation, trace_id=trace_id, dry_run=dry_run)
        for module in modules:
            try:
                result = fn(module, trace_id)
            except ModsyncError as e:
                self.logger.error(f"{operation} [{module}] failed: {e.user_message}")
                result = self._error_result(operation, module, e.user_message, e.code)
            except Exception as e:  # noqa: BLE001
                self.logger.error(f"{operation} [{module}] failed unexpectedly: {e}")
                result = self._error_result(operation, module, f"Unexpected error: {e}", "internal_error")
            report.results.append(result)
            if not dry_run and _changed(result):
                report.changed = True
            self._journal(trace_id, operation, result)

        if report.changed:
            self._notify_state_changed(trace_id)
        return report

    @staticmethod
    def _error_result(operation: str, module: str, message: str, code: str) -> AnyResult:
        if operation == "sync":
            return SyncResult(module=module, status=SyncStatus.error, message=message, error_code=code)
        return ModuleOpResult(module=module, operation=operation, outcome=OpOutcome.error, message=message, error_code=code)

    def _journal(self, trace_id: str, operation: str, result: AnyResult) -> None:
        if self.ops_log is None:
            return
        if isinstance(result, SyncResult):
            outcome = result.status.value
            details = {"action": result.action.value, "message": result.message}
        else:
            outcome = result.outcome.value
            details = {"message": result.message, "dependencies_ok": result.dependencies_ok}
        try:
            self.ops_log.log(trace_id=trace_id, operation=operation, module=result.module, outcome=outcome, details=details)
        except OSError as e:
            self.logger.warning(f"Ops journal write failed: {e}")

    def _notify_state_changed(self, trace_id: str) -> None:
        if self.on_state_changed is None:
            return
        try:
            self.on_state_changed(trace_id=trace_id)
        except Exception as e:  # noqa: BLE001
            self.logger.warning(f"State-change hook failed: {e}")

    # ---- read-only ----
    def list_status(self) -> List[ModuleListing]:
        """Every discovered module plus any table row whose module is gone from disk."""
        rows = {r.name: r for r in self.state_store.all()}
        out: List[ModuleListing] = []
        names = self.discovery.list_modules()
        for name in names + sorted(n for n in rows if n not in names):
            row = rows.get(name)
            loc = self.discovery.locate(name)
            item = ModuleListing(
                name=name,
                path=loc.module_dir if loc else "",
                vendor=bool(loc and loc.is_vendor),
                state_enabled=row.enabled if row else None,
                version=row.version if row else "",
            )
            try:
                loaded = self.descriptors.load(name)
            except ModsyncError as e:
                item.error = e.user_message
            else:
                item.descriptor_enabled = loaded.descriptor.enabled
                item.version = loaded.descriptor.version or item.version
            if item.error:
                item.status = "error"
            elif row is None:
                item.status = "no_db_entry"
            elif row.enabled == item.descriptor_enabled:
                item.status = "synced"
            else:
                item.status = "conflict"
            out.append(item)
        return out


def _changed(result: AnyResult) -> bool:
    if isinstance(result, SyncResult):
        return result.action != SyncAction.none and result.status != SyncStatus.error
    return result.changed
