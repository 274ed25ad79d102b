from __future__ import annotations

import json

from modsync.core.events import EventBus, EventBusConfig, JsonlEventSubscriber, module_disabled, module_enabled
from modsync.core.events.models import BaseEvent, SourceSubsystem


def test_publish_subscribe_priority_order():
    bus = EventBus(cfg=EventBusConfig(enabled=True), logger=None)
    seen = []
    bus.subscribe("module.enabled", lambda ev: seen.append(("late", ev.module)), priority=90)
    bus.subscribe("module.enabled", lambda ev: seen.append(("early", ev.module)), priority=10)

    assert bus.publish_nowait(module_enabled("Blog", trace_id="t")) is True
    assert seen == [("early", "Blog"), ("late", "Blog")]


def test_prefix_and_wildcard_matching():
    bus = EventBus(logger=None)
    prefix, everything, exact = [], [], []
    bus.subscribe("module.*", lambda ev: prefix.append(ev.event_type))
    bus.subscribe("*", lambda ev: everything.append(ev.event_type))
    bus.subscribe("module.disabled", lambda ev: exact.append(ev.event_type))

    bus.publish(module_enabled("A"))
    bus.publish(module_disabled("A"))
    bus.publish(BaseEvent(event_type="modules.other", source_subsystem=SourceSubsystem.modules))

    assert prefix == ["module.enabled", "module.disabled"]
    assert everything == ["module.enabled", "module.disabled", "modules.other"]
    assert exact == ["module.disabled"]


def test_handler_exception_isolated():
    bus = EventBus(logger=None)
    ok = {"n": 0}
    errors = []

    def bad(_ev):  # noqa: ANN001
        raise RuntimeError("boom")

    def good(_ev):  # noqa: ANN001
        ok["n"] += 1

    bus.subscribe("module.enabled", bad, priority=10)
    bus.subscribe("module.enabled", good, priority=20)
    bus.subscribe("error.raised", lambda ev: errors.append(ev.payload["event_type"]))

    bus.publish(module_enabled("A"))

    assert ok["n"] == 1
    assert errors == ["module.enabled"]
    assert bus.get_stats()["handler_errors_total"] == 1


def test_disabled_bus_drops_events():
    bus = EventBus(cfg=EventBusConfig(enabled=False), logger=None)
    seen = []
    bus.subscribe("*", seen.append)
    assert bus.publish(module_enabled("A")) is False
    assert seen == []


def test_unsubscribe_and_recent():
    bus = EventBus(logger=None)
    seen = []

    def handler(ev):  # noqa: ANN001
        seen.append(ev.module)

    bus.subscribe("*", handler)
    bus.publish(module_enabled("A"))
    assert bus.unsubscribe(handler) == 1
    bus.publish(module_enabled("B"))
    assert seen == ["A"]
    recent = bus.dump_recent(5)
    assert [r["payload"]["module"] for r in recent] == ["B", "A"]
    assert bus.get_stats()["per_type_published"] == {"module.enabled": 2}


def test_jsonl_subscriber_appends(tmp_path):
    path = tmp_path / "events" / "module_events.jsonl"
    sub = JsonlEventSubscriber(path=str(path))
    sub(module_enabled("A", trace_id="t1"))
    sub(module_disabled("A", trace_id="t2"))
    with open(path, "r", encoding="utf-8") as f:
        rows = [json.loads(line) for line in f]
    assert [(r["event_type"], r["trace_id"]) for r in rows] == [("module.enabled", "t1"), ("module.disabled", "t2")]
