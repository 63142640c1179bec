#!/usr/bin/env python3
"""
COSMIC HUB CLI - dashboard red flags and deadlines from a JSON snapshot.

Usage:
    python -m cli.main red-flags --snapshot snapshot.json
    python -m cli.main deadlines --snapshot snapshot.json --scope pm --user u-42
    python -m cli.main scope --snapshot snapshot.json --user u-42 --role worker
    python -m cli.main focus --snapshot snapshot.json --user u-42
"""

import argparse
import json
import logging
import sys

from cosmic_hub import config
from cosmic_hub.config import get_thresholds
from cosmic_hub.dashboard import DashboardService, DataSourceError, load_snapshot
from cosmic_hub.dashboard.clock import parse_timestamp
from cosmic_hub.observability import configure_logging

logger = logging.getLogger(__name__)

SEVERITY_COLORS = {
    "critical": "\033[91m",  # Red
    "high": "\033[93m",  # Yellow
}
RESET = "\033[0m"


def print_header(text: str):
    """Print a section header."""
    print(f"\n{'═' * 60}")
    print(f"  {text}")
    print(f"{'═' * 60}")


def print_table(headers: list, rows: list, widths: list = None):
    """Print a simple table."""
    if not widths:
        widths = [max(len(str(row[i])) for row in [headers] + rows) for i in range(len(headers))]

    header_str = " │ ".join(str(h).ljust(w) for h, w in zip(headers, widths))
    print(header_str)
    print("─" * len(header_str))

    for row in rows:
        print(" │ ".join(str(c)[:w].ljust(w) for c, w in zip(row, widths)))


def severity_label(severity: str, color: bool) -> str:
    if not color or severity not in SEVERITY_COLORS:
        return severity
    return f"{SEVERITY_COLORS[severity]}{severity}{RESET}"


def cmd_red_flags(service: DashboardService, args) -> int:
    flags = service.red_flags(args.scope, user_id=args.user, now=args.now)

    if args.json:
        print(json.dumps([f.to_dict() for f in flags], indent=2))
        return 0

    print_header(f"RED FLAGS ({args.scope})")
    if not flags:
        print("No red flags.")
        return 0

    color = sys.stdout.isatty()
    rows = [
        [
            severity_label(str(f.severity), color),
            str(f.type),
            f.title[:35],
            f.project_name[:20],
            f.description[:50],
        ]
        for f in flags
    ]
    print_table(["Severity", "Type", "Title", "Project", "Detail"], rows)
    print(f"\n{len(flags)} flag(s)")
    return 0


def cmd_deadlines(service: DashboardService, args) -> int:
    timeline = service.deadline_timeline(args.scope, user_id=args.user, now=args.now)

    if args.json:
        print(json.dumps([d.to_dict() for d in timeline], indent=2))
        return 0

    print_header(f"DEADLINES ({args.scope})")
    if not timeline:
        print("No upcoming deadlines.")
        return 0

    rows = [
        [
            str(d.bucket),
            d.due_date[:10],
            d.name[:35],
            d.project_name[:20],
            str(d.risk.level),
            d.risk.reason[:40],
        ]
        for d in timeline
    ]
    print_table(["Bucket", "Due", "Subtask", "Project", "Risk", "Reason"], rows)
    return 0


def cmd_scope(service: DashboardService, args) -> int:
    project_ids = service.project_scope(args.user, args.role)

    if args.json:
        print(json.dumps(project_ids))
        return 0

    if project_ids is None:
        print("All projects (unscoped)")
    elif not project_ids:
        print("No projects in scope")
    else:
        for pid in project_ids:
            print(pid)
    return 0


def cmd_blockers(service: DashboardService, args) -> int:
    blockers = service.my_blockers(args.user)

    if args.json:
        print(json.dumps([b.to_dict() for b in blockers], indent=2))
        return 0

    print_header(f"BLOCKERS ({args.user})")
    if not blockers:
        print("Nothing blocked.")
        return 0

    rows = [
        [
            b.name[:35],
            b.project_name[:20],
            ", ".join(f"{d.name} ({d.status or '?'})" for d in b.depends_on)[:50] or "-",
        ]
        for b in blockers
    ]
    print_table(["Subtask", "Project", "Depends on"], rows)
    return 0


def cmd_waits(service: DashboardService, args) -> int:
    waits = service.my_dependency_waits(args.user)

    if args.json:
        print(json.dumps([w.to_dict() for w in waits], indent=2))
        return 0

    print_header(f"WAITING ON ({args.user})")
    if not waits:
        print("No open dependencies.")
        return 0

    rows = [
        [
            w.dependent.name[:35],
            w.depends_on.name[:35] if w.depends_on else "?",
            (w.depends_on.status if w.depends_on else None) or "?",
        ]
        for w in waits
    ]
    print_table(["Subtask", "Waiting on", "Status"], rows)
    return 0


def cmd_focus(service: DashboardService, args) -> int:
    queue = service.focus_queue(args.user, now=args.now)

    if args.json:
        print(json.dumps([t.to_dict() for t in queue], indent=2))
        return 0

    print_header(f"FOCUS QUEUE ({args.user})")
    if not queue:
        print("Nothing assigned.")
        return 0

    rows = [
        [
            str(t.urgency_score),
            str(t.category),
            t.name[:35],
            t.project_name[:20],
            t.urgency_reason[:30],
        ]
        for t in queue
    ]
    print_table(["Score", "Category", "Subtask", "Project", "Reason"], rows)
    return 0


COMMANDS = {
    "red-flags": cmd_red_flags,
    "deadlines": cmd_deadlines,
    "scope": cmd_scope,
    "blockers": cmd_blockers,
    "waits": cmd_waits,
    "focus": cmd_focus,
}

# Worker views are always keyed by --user
USER_COMMANDS = ("blockers", "waits", "focus")


def _timestamp(value: str):
    parsed = parse_timestamp(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"not an ISO timestamp: {value!r}")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cosmic-hub", description="Cosmic Hub dashboard CLI")
    p.add_argument("command", choices=sorted(COMMANDS))
    p.add_argument(
        "--snapshot",
        default=config.SNAPSHOT_PATH,
        help="JSON snapshot file (default: $COSMIC_HUB_SNAPSHOT)",
    )
    p.add_argument("--scope", choices=["admin", "pm"], default="admin")
    p.add_argument("--user", default=None, help="User id (required for --scope pm and worker views)")
    p.add_argument("--role", default=None, help="admin | project_manager | worker | client")
    p.add_argument("--now", type=_timestamp, default=None, help="Evaluate as of this ISO timestamp")
    p.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    p.add_argument("--log-level", default=config.LOG_LEVEL)
    return p


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, json_format=config.LOG_JSON)

    if not args.snapshot:
        parser.error("--snapshot is required when COSMIC_HUB_SNAPSHOT is not set")
    if args.command != "scope" and args.scope == "pm" and not args.user:
        parser.error("--user is required for --scope pm")
    if args.command in USER_COMMANDS and not args.user:
        parser.error(f"--user is required for {args.command}")

    try:
        source = load_snapshot(args.snapshot)
    except DataSourceError as e:
        logger.error("Could not load snapshot: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    service = DashboardService(source, get_thresholds())
    return COMMANDS[args.command](service, args)


if __name__ == "__main__":
    sys.exit(main())
