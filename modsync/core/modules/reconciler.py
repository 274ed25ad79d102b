from __future__ import annotations

"""
Descriptor/state reconciliation.

WHY THIS FILE EXISTS:
module.json and the state table are two independent records of whether a
module is enabled. `decide()` is the only place that maps
(descriptor, state row, policy) to an action; `Reconciler` loads both sides,
asks `decide()`, and applies the action through the TransitionWriter unless
the policy is a dry run.

Decision table (first match wins):
- no row, descriptor X        -> create row with enabled=X        (needs_sync)
- row == descriptor           -> nothing to write, re-run install/removal (synced)
- row != descriptor           -> conflict, unless a priority flag picks a side
"""

from dataclasses import dataclass
from typing import Any, Optional

from modsync.core.events.models import SourceSubsystem
from modsync.core.logger import component_logger
from modsync.core.modules.descriptor_store import DescriptorStore, LoadedDescriptor
from modsync.core.modules.dry_run import DryRunPlan
from modsync.core.modules.models import SyncAction, SyncPolicy, SyncResult, SyncStatus, flag_text
from modsync.core.modules.transitions import TransitionWriter
from modsync.core.state.store_sqlite import ModuleStateStore

SYNCED_MESSAGE = "JSON and DB are already synchronized"


def _word(enabled: bool) -> str:
    return "enabled" if enabled else "disabled"


@dataclass(frozen=True)
class SyncDecision:
    status: SyncStatus
    action: SyncAction
    message: str
    # enabled value the action converges both stores to (None: nothing to converge)
    target: Optional[bool] = None


def decide(descriptor_enabled: bool, state_enabled: Optional[bool], policy: SyncPolicy) -> SyncDecision:
    d = bool(descriptor_enabled)
    if state_enabled is None:
        return SyncDecision(
            status=SyncStatus.needs_sync,
            action=SyncAction.create_db_entry,
            message=f"JSON shows {_word(d)} but no DB entry - will create {_word(d)} DB entry",
            target=d,
        )
    s = bool(state_enabled)
    if s == d:
        return SyncDecision(status=SyncStatus.synced, action=SyncAction.none, message=SYNCED_MESSAGE, target=d)

    message = f"Conflict: JSON={flag_text(d)}, DB={flag_text(s)}"
    if policy.prefers_state:
        return SyncDecision(
            status=SyncStatus.synced,
            action=SyncAction.update_json_from_db,
            message=message + " - Will update JSON to match DB",
            target=s,
        )
    if policy.json_priority:
        return SyncDecision(
            status=SyncStatus.synced,
            action=SyncAction.update_db_from_json,
            message=message + " - Will update DB to match JSON",
            target=d,
        )
    return SyncDecision(status=SyncStatus.conflict, action=SyncAction.none, message=message)


class Reconciler:
    def __init__(
        self,
        *,
        descriptors: DescriptorStore,
        state_store: ModuleStateStore,
        transitions: TransitionWriter,
        activator: Any = None,
        logger: Any = None,
    ):
        self.descriptors = descriptors
        self.state_store = state_store
        self.transitions = transitions
        self.activator = activator
        self.logger = component_logger("reconciler", logger)

    def reconcile(
        self,
        module: str,
        policy: Optional[SyncPolicy] = None,
        *,
        trace_id: Optional[str] = None,
        plan: Optional[DryRunPlan] = None,
    ) -> SyncResult:
        """
        Raises ModuleMissingError, DescriptorMissingError or
        MalformedDescriptorError when the descriptor cannot be read.

        In a dry run both stores are read through `plan`, and the writes the
        real run would make are recorded there instead. Pass one plan for a
        whole batch.
        """
        policy = policy or SyncPolicy()
        loaded = self.descriptors.load(module)
        d = bool(loaded.descriptor.enabled)
        row = self.state_store.get(module)
        s = row.enabled if row is not None else None
        if policy.dry_run:
            plan = plan if plan is not None else DryRunPlan()
            d = plan.descriptor_enabled(module, d)
            s = plan.state_enabled(module, s)

        decision = decide(d, s, policy)
        result = SyncResult(
            module=module,
            status=decision.status,
            action=decision.action,
            message=decision.message,
            descriptor_enabled=d,
            state_enabled=s,
        )
        if decision.status == SyncStatus.conflict:
            self.logger.warning(f"[{module}] {decision.message}")
            return result
        if policy.dry_run:
            self.logger.info(f"[dry-run] [{module}] {decision.message}")
            self._plan(loaded, decision, plan)
            return result

        self._apply(loaded, decision, trace_id=trace_id)
        return result

    def _plan(self, loaded: LoadedDescriptor, decision: SyncDecision, plan: DryRunPlan) -> None:
        target = bool(decision.target)
        if decision.action == SyncAction.update_json_from_db:
            plan.record(loaded.name, descriptor=target)
        elif decision.action in (SyncAction.create_db_entry, SyncAction.update_db_from_json):
            plan.record(loaded.name, state=target)
            if target and self.activator is not None:
                self.activator.preview(loaded, plan)

    def _apply(self, loaded: LoadedDescriptor, decision: SyncDecision, *, trace_id: Optional[str]) -> None:
        name = loaded.name
        target = bool(decision.target)

        if decision.action == SyncAction.none:
            # stores agree; re-running install/removal heals package drift
            if target:
                self.logger.info(f"Ensuring dependencies are installed for already enabled module [{name}]")
            else:
                self.logger.info(f"Ensuring unused dependencies are removed for already disabled module [{name}]")
            self.transitions.sync_dependencies(name, target)
            return

        if decision.action == SyncAction.update_json_from_db:
            # the tracked state does not change, so no event
            self.transitions.write_descriptor(loaded, target)
            self.transitions.sync_dependencies(name, target)
            self.logger.info(f"[{name}] module.json updated to {_word(target)} from state table")
            return

        # create_db_entry / update_db_from_json: the state row follows the descriptor
        self.transitions.write_state(loaded, target)
        self.transitions.sync_dependencies(name, target)
        if target and self.activator is not None:
            self.activator.activate(loaded, interactive=False, trace_id=trace_id)
        self.transitions.announce(name, target, trace_id=trace_id, source=SourceSubsystem.reconciler)
        self.logger.info(f"[{name}] state row set to {_word(target)} from module.json")
