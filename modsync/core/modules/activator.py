from __future__ import annotations

"""
Required-module activation.

WHY THIS FILE EXISTS:
A module's descriptor lists modules it needs enabled ("dependents"/"required").
Enabling it must never silently leave one of them missing or disabled: the
user either enables them, explicitly continues degraded, or aborts. An abort
is returned as ActivationOutcome(status=aborted) and only affects the module
being enabled, never the rest of the batch.

By default only the module's own list is walked (max_depth=1). Higher depths
also walk the requirements of each module enabled along the way.
"""

from typing import Any, List, Optional, Set

from modsync.core.errors import ModsyncError
from modsync.core.events.models import SourceSubsystem
from modsync.core.logger import component_logger
from modsync.core.modules.descriptor_store import DescriptorStore, LoadedDescriptor
from modsync.core.modules.dry_run import DryRunPlan
from modsync.core.modules.models import ActivationOutcome, ActivationStatus
from modsync.core.modules.transitions import TransitionWriter
from modsync.core.state.store_sqlite import ModuleStateStore
from modsync.core.ux.prompts import AutoConfirm


class RequirementActivator:
    def __init__(
        self,
        *,
        descriptors: DescriptorStore,
        state_store: ModuleStateStore,
        transitions: TransitionWriter,
        prompt: Any = None,
        max_depth: int = 1,
        auto_enable_non_interactive: bool = True,
        logger: Any = None,
    ):
        self.descriptors = descriptors
        self.state_store = state_store
        self.transitions = transitions
        self.prompt = prompt if prompt is not None else AutoConfirm()
        self.max_depth = max(1, int(max_depth))
        self.auto_enable_non_interactive = bool(auto_enable_non_interactive)
        self.logger = component_logger("activator", logger)

    def activate(
        self,
        loaded: LoadedDescriptor,
        *,
        interactive: bool = True,
        trace_id: Optional[str] = None,
    ) -> ActivationOutcome:
        """
        interactive=True asks the prompt (enable command).
        interactive=False never asks: missing modules are warned about and
        skipped, disabled ones are enabled per auto_enable_non_interactive (sync).
        """
        outcome = ActivationOutcome(module=loaded.name, required=loaded.descriptor.required_modules())
        if not outcome.required:
            return outcome
        self.logger.info(f"Module [{loaded.name}] depends on: {', '.join(outcome.required)}")
        visited: Set[str] = {loaded.name}
        self._walk(loaded, root=loaded.name, depth=1, outcome=outcome, visited=visited, interactive=interactive, trace_id=trace_id)
        return outcome

    def preview(self, loaded: LoadedDescriptor, plan: DryRunPlan) -> List[str]:
        """
        What activate(interactive=False) would enable, recorded in `plan`
        instead of written. Returns the would-be-enabled names in walk order.
        """
        out: List[str] = []
        if self.auto_enable_non_interactive:
            self._preview_walk(loaded, depth=1, plan=plan, visited={loaded.name}, out=out)
        return out

    def _preview_walk(self, owner: LoadedDescriptor, *, depth: int, plan: DryRunPlan, visited: Set[str], out: List[str]) -> None:
        for name in owner.descriptor.required_modules():
            if name in visited or not self.descriptors.exists(name):
                continue
            visited.add(name)
            row = self.state_store.get(name)
            if plan.state_enabled(name, row.enabled if row is not None else None):
                continue
            try:
                nxt = self.descriptors.load(name)
            except ModsyncError as e:
                self.logger.info(f"[dry-run] required module [{name}] would fail to enable: {e.user_message}")
                continue
            plan.record(name, descriptor=True, state=True)
            out.append(name)
            self.logger.info(f"[dry-run] required module [{name}] would be enabled for [{owner.name}]")
            if depth < self.max_depth:
                self._preview_walk(nxt, depth=depth + 1, plan=plan, visited=visited, out=out)

    def _abort(self, outcome: ActivationOutcome, message: str) -> bool:
        outcome.status = ActivationStatus.aborted
        outcome.message = message
        self.logger.warning(message)
        return False

    def _walk(
        self,
        owner: LoadedDescriptor,
        *,
        root: str,
        depth: int,
        outcome: ActivationOutcome,
        visited: Set[str],
        interactive: bool,
        trace_id: Optional[str],
    ) -> bool:
        required = [r for r in owner.descriptor.required_modules() if r not in visited]
        missing = [r for r in required if not self.descriptors.exists(r)]
        if missing:
            outcome.missing.extend(m for m in missing if m not in outcome.missing)
            self.logger.warning(f"Required modules not found for [{owner.name}]: {', '.join(missing)}. Module [{root}] may not work correctly.")
            if interactive:
                question = f"Module [{owner.name}] requires missing modules: {', '.join(missing)}. Continue anyway?"
                if not self.prompt.confirm(question, False):
                    return self._abort(outcome, f"Enabling [{root}] aborted: required modules missing ({', '.join(missing)})")

        for name in required:
            if name in missing or name in visited:
                continue
            visited.add(name)
            row = self.state_store.get(name)
            if row is not None and row.enabled:
                outcome.already_enabled.append(name)
                self.logger.info(f"Required module [{name}] is already enabled.")
                continue

            if interactive:
                accept = self.prompt.confirm(f"Module [{owner.name}] requires [{name}]. Enable it now?", True)
            else:
                accept = self.auto_enable_non_interactive
            if not accept:
                outcome.skipped.append(name)
                self.logger.warning(f"Required module [{name}] left disabled. Module [{root}] may not work correctly.")
                continue

            try:
                enabled = self.descriptors.load(name)
                self.transitions.enable(enabled, trace_id=trace_id, source=SourceSubsystem.activator)
            except Exception as e:  # noqa: BLE001
                outcome.failed.append(name)
                self.logger.error(f"Failed to enable required module [{name}]: {e}")
                if interactive and not self.prompt.confirm(f"Continue enabling [{root}] without [{name}]?", False):
                    return self._abort(outcome, f"Enabling [{root}] aborted: required module [{name}] could not be enabled")
                continue

            outcome.enabled.append(name)
            self.logger.info(f"Required module [{name}] enabled for [{owner.name}]")
            if depth < self.max_depth:
                deeper = self._walk(
                    enabled,
                    root=root,
                    depth=depth + 1,
                    outcome=outcome,
                    visited=visited,
                    interactive=interactive,
                    trace_id=trace_id,
                )
                if not deeper:
                    return False
        return True
