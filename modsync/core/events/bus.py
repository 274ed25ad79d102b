from __future__ import annotations

import collections
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from modsync.core.events.models import BaseEvent, EventSeverity, SourceSubsystem
from modsync.core.logger import component_logger


EventHandler = Callable[[BaseEvent], None]


class EventBusConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    keep_recent: int = Field(default=200, ge=10, le=10_000)


@dataclass
class _Sub:
    event_type: str
    handler: EventHandler
    priority: int


@dataclass
class BusStats:
    published_total: int = 0
    delivered_total: int = 0
    handler_errors_total: int = 0
    per_type_published: Dict[str, int] = field(default_factory=dict)


class EventBus:
    """
    In-process domain event bus.

    Delivery is synchronous: publish returns after every matching subscriber
    ran, in priority order. Module operations run one at a time, so
    subscribers observe events in the order the transitions happened.
    Handler failures are isolated (logged + counted) and never reach the
    publisher.
    """

    def __init__(self, *, cfg: EventBusConfig | None = None, logger=None):
        self.cfg = cfg or EventBusConfig()
        self.logger = component_logger("events", logger)
        self._lock = threading.Lock()
        self._subs: List[_Sub] = []
        self._stats = BusStats()
        self._recent: Deque[Dict[str, Any]] = collections.deque(maxlen=int(self.cfg.keep_recent))
        self._delivering = False

    def subscribe(self, event_type: str, handler: EventHandler, priority: int = 50) -> None:
        """
        event_type supports:
        - exact match ("module.enabled")
        - prefix match ("module.*")
        - wildcard all ("*")
        """
        if not callable(handler):
            raise ValueError("handler must be callable")
        with self._lock:
            self._subs.append(_Sub(event_type=str(event_type), handler=handler, priority=int(priority)))
            self._subs.sort(key=lambda s: int(s.priority))

    def unsubscribe(self, handler: EventHandler) -> int:
        with self._lock:
            keep = [s for s in self._subs if s.handler is not handler]
            removed = len(self._subs) - len(keep)
            self._subs = keep
        return removed

    def publish(self, ev: BaseEvent) -> bool:
        if not self.cfg.enabled:
            return False
        with self._lock:
            self._stats.published_total += 1
            self._stats.per_type_published[ev.event_type] = self._stats.per_type_published.get(ev.event_type, 0) + 1
            self._recent.appendleft(ev.model_dump(mode="json"))
            subs = [s for s in self._subs if _match(s.event_type, ev.event_type)]
        for s in subs:
            self._safe_handle(s.handler, ev)
        return True

    # the sink contract used by the module core
    def publish_nowait(self, ev: BaseEvent) -> bool:
        return self.publish(ev)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "enabled": bool(self.cfg.enabled),
                "published_total": self._stats.published_total,
                "delivered_total": self._stats.delivered_total,
                "handler_errors_total": self._stats.handler_errors_total,
                "per_type_published": dict(self._stats.per_type_published),
                "subscribers": len(self._subs),
            }

    def dump_recent(self, n: int = 50) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._recent)[: max(1, int(n))]

    # ---- internals ----
    def _safe_handle(self, handler: EventHandler, ev: BaseEvent) -> None:
        try:
            handler(ev)
            with self._lock:
                self._stats.delivered_total += 1
        except Exception as e:  # noqa: BLE001
            with self._lock:
                self._stats.handler_errors_total += 1
            self.logger.error(f"Event handler {getattr(handler, '__name__', 'handler')} failed for {ev.event_type}: {e}")
            if ev.event_type == "error.raised" or self._delivering:
                return
            # one level of error events; never recurse on error.raised
            self._delivering = True
            try:
                self.publish(
                    BaseEvent(
                        event_type="error.raised",
                        trace_id=ev.trace_id,
                        source_subsystem=SourceSubsystem.events,
                        severity=EventSeverity.ERROR,
                        payload={"handler": getattr(handler, "__name__", "handler"), "event_type": ev.event_type, "error": str(e)[:500]},
                    )
                )
            finally:
                self._delivering = False


def _match(subscribed: str, event_type: str) -> bool:
    subscribed = str(subscribed)
    if subscribed == "*":
        return True
    if subscribed.endswith(".*"):
        return str(event_type).startswith(subscribed[:-1])
    return subscribed == event_type
