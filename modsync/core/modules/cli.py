from __future__ import annotations

"""
CLI rendering helpers for module commands.

WHY THIS FILE EXISTS:
app.py only parses arguments and picks an exit code; these helpers turn batch
reports into lines so the output format is testable without a terminal.
"""

from typing import Iterable, List, Sequence

from modsync.core.modules.models import BatchReport, ModuleListing, ModuleOpResult, SyncResult, flag_text


def table_lines(headers: Sequence[str], rows: Iterable[Sequence[str]]) -> List[str]:
    rows = [[str(c) for c in r] for r in rows]
    widths = [len(h) for h in headers]
    for r in rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], len(cell))

    def fmt(cells: Sequence[str]) -> str:
        return " | ".join(c.ljust(widths[i]) for i, c in enumerate(cells)).rstrip()

    sep = "-+-".join("-" * w for w in widths)
    return [fmt(headers), sep] + [fmt(r) for r in rows]


def dry_run_banner_lines() -> List[str]:
    return ["DRY RUN MODE - No changes will be made", ""]


def conflict_guidance_lines() -> List[str]:
    return [
        "",
        "Conflicts detected! Use one of these options to resolve:",
        "",
        "  --db-priority     : Update JSON files to match database state",
        "  --json-priority   : Update database to match JSON files",
        "  --force           : Same as --db-priority",
        "  --dry-run         : Preview changes without applying them",
        "",
        "Example: modsync sync --db-priority",
    ]


def sync_report_lines(report: BatchReport) -> List[str]:
    """
    Render a sync batch.
    Columns: Module | JSON | DB | Status | Action | Message
    """
    lines: List[str] = []
    if report.dry_run:
        lines += dry_run_banner_lines()
    results = [r for r in report.results if isinstance(r, SyncResult)]
    if not results:
        return lines
    lines += table_lines(
        ["Module", "JSON", "DB", "Status", "Action", "Message"],
        (
            [r.module, flag_text(r.descriptor_enabled), flag_text(r.state_enabled), r.status.value, r.action.value, r.message]
            for r in results
        ),
    )
    if report.conflicts():
        lines += conflict_guidance_lines()
    lines += ["", summary_line(report)]
    return lines


def op_report_lines(report: BatchReport) -> List[str]:
    """Columns: Module | Outcome | Packages | Message"""
    results = [r for r in report.results if isinstance(r, ModuleOpResult)]
    if not results:
        return []
    rows = []
    for r in results:
        pkgs = "N/A" if r.dependencies_ok is None else ("ok" if r.dependencies_ok else "failed")
        rows.append([r.module, r.outcome.value, pkgs, r.message])
    return table_lines(["Module", "Outcome", "Packages", "Message"], rows) + ["", summary_line(report)]


def modules_list_lines(listings: Iterable[ModuleListing]) -> List[str]:
    """Columns: Module | JSON | DB | Status | Version | Source"""
    rows = []
    for m in listings:
        source = "vendor" if m.vendor else ("local" if m.path else "missing")
        status = f"{m.status}: {m.error}" if m.error else m.status
        rows.append([m.name, flag_text(m.descriptor_enabled), flag_text(m.state_enabled), status, m.version or "N/A", source])
    return table_lines(["Module", "JSON", "DB", "Status", "Version", "Source"], rows)


def summary_line(report: BatchReport) -> str:
    counts = ", ".join(f"{k}={v}" for k, v in sorted(report.summary().items()))
    return f"{report.operation}: {len(report.results)} module(s) [{counts}] trace={report.trace_id}"
