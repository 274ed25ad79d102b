from __future__ import annotations

import json
import os
import threading

from modsync.core.events.models import BaseEvent


class JsonlEventSubscriber:
    """
    Appends every delivered event to a JSONL file (one event per line).
    """

    def __init__(self, *, path: str = os.path.join("logs", "events", "module_events.jsonl")):
        self.path = path
        self._lock = threading.Lock()
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)

    def __call__(self, ev: BaseEvent) -> None:
        line = json.dumps(ev.model_dump(mode="json"), ensure_ascii=False)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
