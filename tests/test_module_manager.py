from __future__ import annotations

import json
import os

from modsync.core.events.models import MODULE_DISABLED, MODULE_ENABLED
from modsync.core.modules import ModuleManager
from modsync.core.modules.models import OpOutcome, SyncPolicy, SyncStatus
from modsync.core.ops_log import OpsLogger

from .helpers.fakes import FakePackageBackend, RecordingBus, read_descriptor, write_descriptor


def test_enable_writes_both_stores_and_emits(stack):
    write_descriptor(stack.modules_dir, "Blog", dependencies=["pkg-x:^1"])

    res = stack.manager.enable("Blog")

    assert res.outcome == OpOutcome.enabled
    assert res.dependencies_ok is True
    assert stack.store.get("Blog").enabled is True
    data = read_descriptor(stack.modules_dir, "Blog")
    assert data["enabled"] is True
    assert data["last_enabled_at"]
    assert stack.bus.types() == [(MODULE_ENABLED, "Blog")]
    assert stack.backend.installed == ["pkg-x:^1"]


def test_enable_inserts_row_defaults(stack):
    os.makedirs(os.path.join(stack.modules_dir, "Bare"))
    with open(os.path.join(stack.modules_dir, "Bare", "module.json"), "w", encoding="utf-8") as f:
        json.dump({"name": "Bare"}, f)

    stack.manager.enable("Bare")

    row = stack.store.get("Bare")
    assert row.version == "1.0.0"
    assert row.description == "Bare module for the application"


def test_enable_already_enabled_is_idempotent(stack):
    path = write_descriptor(stack.modules_dir, "Blog", enabled=True, dependencies=["pkg-x"])
    stack.store.insert("Blog", enabled=True)
    row = stack.store.get("Blog")
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()

    res = stack.manager.enable("Blog")

    assert res.outcome == OpOutcome.already_enabled
    assert stack.store.get("Blog") == row
    with open(path, "r", encoding="utf-8") as f:
        assert f.read() == text
    assert stack.bus.events == []
    assert stack.backend.installed == ["pkg-x:*"]


def test_enable_half_enabled_module_completes_transition(stack):
    write_descriptor(stack.modules_dir, "Blog", enabled=True)
    stack.store.insert("Blog", enabled=False)
    res = stack.manager.enable("Blog")
    assert res.outcome == OpOutcome.enabled
    assert stack.store.get("Blog").enabled is True


def test_disable_order_state_then_descriptor_then_removal(stack):
    write_descriptor(stack.modules_dir, "Blog", enabled=True, dependencies=["pkg-x"])
    stack.store.insert("Blog", enabled=True)
    seen = []

    def remove(package):  # noqa: ANN001
        seen.append((package, stack.store.get("Blog").enabled, read_descriptor(stack.modules_dir, "Blog")["enabled"]))
        return FakePackageBackend.remove_package(stack.backend, package)

    stack.backend.remove_package = remove

    res = stack.manager.disable("Blog")

    assert res.outcome == OpOutcome.disabled
    assert seen == [("pkg-x", False, False)]
    assert stack.bus.types() == [(MODULE_DISABLED, "Blog")]
    assert read_descriptor(stack.modules_dir, "Blog")["last_disabled_at"]


def test_disable_removal_failure_is_not_fatal(stack):
    write_descriptor(stack.modules_dir, "Blog", enabled=True, dependencies=["pkg-x"])
    stack.store.insert("Blog", enabled=True)
    stack.backend.fail_remove.add("pkg-x")

    report = stack.manager.disable_many(["Blog"])

    res = report.results[0]
    assert res.outcome == OpOutcome.disabled
    assert res.dependencies_ok is False
    assert report.ok is True
    assert stack.store.get("Blog").enabled is False


def test_disable_already_disabled_only_retries_removal(stack):
    write_descriptor(stack.modules_dir, "Blog", enabled=False, dependencies=["pkg-x"])
    stack.store.insert("Blog", enabled=False)
    res = stack.manager.disable("Blog")
    assert res.outcome == OpOutcome.already_disabled
    assert stack.bus.events == []
    assert stack.backend.removed == ["pkg-x"]


def test_batch_continues_after_errors(stack):
    write_descriptor(stack.modules_dir, "Good")
    os.makedirs(os.path.join(stack.modules_dir, "NoJson"))

    report = stack.manager.enable_many(["Ghost", "NoJson", "Good", "Good"])

    outcomes = [(r.module, r.outcome, r.error_code) for r in report.results]
    assert outcomes == [
        ("Ghost", OpOutcome.error, "module_not_found"),
        ("NoJson", OpOutcome.error, "descriptor_not_found"),
        ("Good", OpOutcome.enabled, None),
    ]
    assert report.ok is False
    assert stack.state_changes == [report.trace_id]


def test_sync_errors_are_results(stack):
    os.makedirs(os.path.join(stack.modules_dir, "NoJson"))
    os.makedirs(os.path.join(stack.modules_dir, "Bad"))
    with open(os.path.join(stack.modules_dir, "Bad", "module.json"), "w", encoding="utf-8") as f:
        f.write("{oops")

    report = stack.manager.sync_many(["Ghost", "NoJson", "Bad"])

    assert [r.status for r in report.results] == [SyncStatus.error] * 3
    assert report.results[0].message == "Module not found"
    assert report.results[1].message == "module.json not found"
    assert report.results[2].message.startswith("Invalid JSON file: ")
    assert stack.state_changes == []


def test_unexpected_exception_is_contained(stack):
    write_descriptor(stack.modules_dir, "A")
    write_descriptor(stack.modules_dir, "B")

    def boom(*_a, **_k):
        raise KeyError("x")

    original = stack.manager.enable
    stack.manager.enable = lambda m, trace_id=None: boom() if m == "A" else original(m, trace_id=trace_id)

    report = stack.manager.enable_many(["A", "B"])

    assert report.results[0].outcome == OpOutcome.error
    assert report.results[0].error_code == "internal_error"
    assert report.results[1].outcome == OpOutcome.enabled


def test_ops_journal_records_each_module(stack):
    write_descriptor(stack.modules_dir, "A", enabled=True)
    write_descriptor(stack.modules_dir, "B", enabled=False)

    report = stack.manager.sync_many(policy=SyncPolicy())

    lines = OpsLogger(path=os.path.join(stack.root, "logs", "ops.jsonl")).tail(10)
    assert [(x["module"], x["outcome"], x["trace_id"]) for x in lines] == [
        ("A", "needs_sync", report.trace_id),
        ("B", "needs_sync", report.trace_id),
    ]
    assert lines[0]["details"]["action"] == "create_db_entry"


def test_no_modules_found(stack):
    report = stack.manager.sync_many()
    assert report.results == []
    assert report.ok is True


def test_list_status(stack):
    write_descriptor(stack.modules_dir, "Synced", enabled=True, version="1.2.3")
    write_descriptor(stack.modules_dir, "Clash", enabled=True)
    write_descriptor(stack.modules_dir, "Fresh")
    stack.store.insert("Synced", enabled=True)
    stack.store.insert("Clash", enabled=False)
    stack.store.insert("Removed", enabled=True)

    by_name = {m.name: m for m in stack.manager.list_status()}

    assert by_name["Synced"].status == "synced"
    assert by_name["Synced"].version == "1.2.3"
    assert by_name["Clash"].status == "conflict"
    assert by_name["Fresh"].status == "no_db_entry"
    assert by_name["Fresh"].state_enabled is None
    assert by_name["Removed"].status == "error"
    assert by_name["Removed"].path == ""


def test_from_config_writes_inventory_after_changes(config_manager, project_root):
    bus = RecordingBus()
    backend = FakePackageBackend()
    mm = ModuleManager.from_config(config_manager, event_bus=bus, backend=backend)
    write_descriptor(os.path.join(project_root, "Modules"), "Blog", dependencies=["pkg"])
    write_descriptor(os.path.join(project_root, "vendor", "modules"), "Shop", enabled=True)
    inventory = os.path.join(project_root, "runtime", "enabled_modules.json")

    mm.sync_many(policy=SyncPolicy(dry_run=True))
    assert not os.path.exists(inventory)

    mm.sync_many()
    with open(inventory, "r", encoding="utf-8") as f:
        data = json.load(f)
    assert [m["name"] for m in data["modules"]] == ["Shop"]
    assert data["modules"][0]["vendor"] is True

    mm.enable_many(["Blog"])
    with open(inventory, "r", encoding="utf-8") as f:
        data = json.load(f)
    assert [m["name"] for m in data["modules"]] == ["Blog", "Shop"]
    assert backend.installed == ["pkg:*"]
    assert os.path.exists(config_manager.state_db_path())
