from __future__ import annotations

import json
import os
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class OpsLogger:
    """
    Append-only JSONL journal of module operations (one line per module per
    batch). Complements the text log with a machine-readable record.
    """

    path: str = os.path.join("logs", "ops.jsonl")
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def log(self, *, trace_id: str, operation: str, module: str, outcome: str, details: Optional[Dict[str, Any]] = None) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        payload = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "trace_id": trace_id,
            "operation": operation,
            "module": module,
            "outcome": outcome,
            "details": dict(details or {}),
        }
        line = json.dumps(payload, ensure_ascii=False, default=str)
        with self._lock:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def tail(self, n: int = 50) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            lines = f.readlines()[-max(1, int(n)):]
        out: List[Dict[str, Any]] = []
        for line in lines:
            try:
                out.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return out
