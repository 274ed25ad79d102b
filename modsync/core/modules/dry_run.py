from __future__ import annotations

"""
Dry-run overlay for a sync batch.

WHY THIS FILE EXISTS:
A real sync changes both stores as it goes, and later modules in the batch
read those changes (a module enabled as someone's requirement is already
enabled when its own turn comes). A dry run writes nothing, so it records the
enabled flags a real run would have written here and reads both stores
through it. That keeps dry-run results identical to the real run's.
"""

from typing import Dict, Optional


class DryRunPlan:
    def __init__(self) -> None:
        self.descriptor: Dict[str, bool] = {}
        self.state: Dict[str, bool] = {}

    def descriptor_enabled(self, name: str, on_disk: bool) -> bool:
        return self.descriptor.get(name, on_disk)

    def state_enabled(self, name: str, stored: Optional[bool]) -> Optional[bool]:
        # a planned value also stands for a row the real run would have created
        return self.state.get(name, stored)

    def record(self, name: str, *, descriptor: Optional[bool] = None, state: Optional[bool] = None) -> None:
        if descriptor is not None:
            self.descriptor[name] = bool(descriptor)
        if state is not None:
            self.state[name] = bool(state)
