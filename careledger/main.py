"""Command-line entry point: schema setup and audit ledger reports."""

import argparse
import json

from rich.console import Console
from rich.table import Table

from careledger.audit import AuditLedger
from careledger.database import AuditRecord, init_database
from careledger.telemetry import configure_logging

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="careledger", description="Medical record access ledger")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the database schema")

    audit = sub.add_parser("audit", help="Show audit ledger records, newest first")
    selector = audit.add_mutually_exclusive_group()
    selector.add_argument("--resource-type", help="appointment, clinical_note, patient or clinician")
    selector.add_argument("--actor", help="Actor id")
    selector.add_argument("--correlation-id")
    audit.add_argument("--resource-id", help="Requires --resource-type")
    audit.add_argument("--limit", type=int, default=50)
    audit.add_argument("--json", action="store_true", help="Emit JSON lines instead of a table")
    return parser


def render_audit_table(records: list[AuditRecord]) -> Table:
    """Render ledger records as a rich table."""
    table = Table(title=f"Audit ledger ({len(records)} records)")
    table.add_column("When", style="dim", no_wrap=True)
    table.add_column("Actor")
    table.add_column("Role")
    table.add_column("Action", style="bold")
    table.add_column("Resource")
    table.add_column("Status")
    table.add_column("Correlation", style="dim")
    table.add_column("Description")

    for record in records:
        status_style = "green" if record.status == "success" else "red"
        resource = record.resource_type
        if record.resource_id:
            resource += f":{record.resource_id[:8]}"
        table.add_row(
            record.created_at or "",
            record.actor_id[:8] if record.actor_id != "anonymous" else record.actor_id,
            record.actor_role or "",
            record.action,
            resource,
            f"[{status_style}]{record.status}[/{status_style}]",
            (record.correlation_id or "")[:8],
            record.description,
        )
    return table


def query_audit(args: argparse.Namespace, ledger: AuditLedger | None = None) -> list[AuditRecord]:
    """Pick the ledger query matching the selected filter."""
    ledger = ledger or AuditLedger()
    if args.correlation_id:
        return ledger.for_correlation_id(args.correlation_id)
    if args.actor:
        return ledger.for_actor(args.actor, limit=args.limit)
    if args.resource_type and args.resource_id:
        return ledger.for_resource(args.resource_type, args.resource_id)
    if args.resource_type:
        return ledger.for_resource_type(args.resource_type, limit=args.limit)
    return ledger.recent(limit=args.limit)


def show_audit(args: argparse.Namespace) -> None:
    records = query_audit(args)
    if args.json:
        for record in records:
            console.print_json(json.dumps(record.__dict__, default=str))
        return
    console.print(render_audit_table(records))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "audit" and args.resource_id and not args.resource_type:
        parser.error("--resource-id requires --resource-type")
    configure_logging()

    init_database()
    if args.command == "init":
        console.print("[bold blue]Database initialized.[/bold blue]")
        return 0

    if args.command == "audit":
        show_audit(args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
