from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Callable, List, Optional

from modsync.core.config import ConfigManager
from modsync.core.config.paths import ConfigFsPaths
from modsync.core.errors import ConfigError, ModsyncError
from modsync.core.events import EventBus, EventBusConfig, JsonlEventSubscriber
from modsync.core.logger import setup_logging
from modsync.core.modules import ModuleManager
from modsync.core.modules.cli import modules_list_lines, op_report_lines, sync_report_lines
from modsync.core.modules.models import SyncPolicy
from modsync.core.ops_log import OpsLogger
from modsync.core.ux import AutoConfirm, ConsolePrompt


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="modsync", description="Keep module.json descriptors, the module state table and module packages in sync.")
    ap.add_argument("--root", default=".", help="Project root holding config/, Modules/ and storage/ (default: .)")
    ap.add_argument("--verbose", action="store_true", help="Log at DEBUG level.")
    sub = ap.add_subparsers(dest="command", required=True)

    p_enable = sub.add_parser("enable", help="Enable one or more modules.")
    p_enable.add_argument("modules", nargs="+", help="Module names.")
    answers = p_enable.add_mutually_exclusive_group()
    answers.add_argument("--yes", action="store_true", help="Answer yes to every prompt.")
    answers.add_argument("--no-input", action="store_true", help="Never prompt; take each prompt's default answer.")

    p_disable = sub.add_parser("disable", help="Disable one or more modules.")
    p_disable.add_argument("modules", nargs="+", help="Module names.")

    p_sync = sub.add_parser("sync", help="Reconcile module.json files with the state table.")
    p_sync.add_argument("modules", nargs="*", help="Module names (default: every discovered module).")
    p_sync.add_argument("--force", action="store_true", help="Resolve conflicts (same as --db-priority unless --json-priority is set).")
    p_sync.add_argument("--db-priority", action="store_true", help="Resolve conflicts by updating module.json from the state table.")
    p_sync.add_argument("--json-priority", action="store_true", help="Resolve conflicts by updating the state table from module.json.")
    p_sync.add_argument("--dry-run", action="store_true", help="Report what would change without writing anything.")

    sub.add_parser("list", help="Show every module with its descriptor and state table flags.")
    return ap


def _prompt_for(args: argparse.Namespace, *, assume_yes: bool) -> Any:
    if getattr(args, "yes", False) or assume_yes:
        return AutoConfirm(True)
    if getattr(args, "no_input", False) or not sys.stdin.isatty():
        return AutoConfirm()
    return ConsolePrompt()


def run(
    argv: Optional[List[str]] = None,
    *,
    backend: Any = None,
    prompt: Any = None,
    out: Callable[[str], None] = print,
) -> int:
    args = build_parser().parse_args(argv)
    root_dir = str(args.root or ".")

    cm = ConfigManager(fs=ConfigFsPaths(root_dir), logger=None)
    try:
        cfg = cm.load_all()
    except ConfigError as e:
        print(f"Config error: {e.user_message}", file=sys.stderr)
        return 2

    log_cfg = cfg.app.logging
    logger = setup_logging(
        cm.logs_dir(),
        level="DEBUG" if args.verbose else log_cfg.level,
        max_bytes=log_cfg.max_bytes,
        backup_count=log_cfg.backup_count,
    )
    cm.logger = logger

    event_bus = EventBus(cfg=EventBusConfig(enabled=cfg.events.enabled), logger=logger)
    event_bus.subscribe("module.*", JsonlEventSubscriber(path=cm.events_path()), priority=100)

    try:
        manager = ModuleManager.from_config(
            cm,
            event_bus=event_bus,
            prompt=prompt if prompt is not None else _prompt_for(args, assume_yes=cfg.activation.assume_yes),
            backend=backend,
            ops_log=OpsLogger(path=os.path.join(cm.logs_dir(), "ops.jsonl")),
            logger=logger,
        )

        if args.command == "list":
            for line in modules_list_lines(manager.list_status()):
                out(line)
            return 0

        if args.command == "sync":
            policy = SyncPolicy(
                force=args.force,
                db_priority=args.db_priority,
                json_priority=args.json_priority,
                dry_run=args.dry_run,
            )
            report = manager.sync_many(args.modules, policy)
            if not report.results:
                out("No modules found.")
            for line in sync_report_lines(report):
                out(line)
            return 0

        if args.command == "enable":
            report = manager.enable_many(args.modules)
        else:
            report = manager.disable_many(args.modules)
        for line in op_report_lines(report):
            out(line)
        return 0 if report.ok else 1
    except ModsyncError as e:
        logger.error(f"{args.command} failed: {e.user_message}")
        return 1
    except Exception as e:  # noqa: BLE001
        logger.error(f"{args.command} failed unexpectedly: {e}")
        return 1


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
