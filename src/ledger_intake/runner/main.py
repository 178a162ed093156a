"""
CLI main entry point.
"""

import argparse
import logging
import sys
from pathlib import Path

from ..config import Config, create_default_config, load_config
from ..ledger import LedgerService
from ..pipeline import UploadReport, UploadService
from ..review import ReviewQueue
from ..state_store import ReviewStatus, StateStore

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ledger-intake",
        description="Ingest messy business records into a ledger and a review queue",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Ingest one or more files")
    ingest_parser.add_argument("files", nargs="+", type=Path, help="Files to ingest")
    ingest_parser.add_argument(
        "--business",
        type=str,
        help="Business id (default: ingestion.default_business_id)",
    )

    # review command
    review_parser = subparsers.add_parser("review", help="Work the review queue")
    review_sub = review_parser.add_subparsers(dest="review_command", help="Review action")

    review_list = review_sub.add_parser("list", help="List queued items")
    review_list.add_argument("--business", type=str, help="Business id")
    review_list.add_argument(
        "--status",
        type=str,
        choices=[status.value for status in ReviewStatus],
        default=ReviewStatus.PENDING.value,
        help="Filter by status (default: pending)",
    )

    for action in ("approve", "reject"):
        action_parser = review_sub.add_parser(action, help=f"{action.capitalize()} a queued item")
        action_parser.add_argument("item_id", type=int, help="Review item id")
        action_parser.add_argument("--business", type=str, help="Business id")

    # ledger command
    ledger_parser = subparsers.add_parser("ledger", help="Inspect the ledger")
    ledger_sub = ledger_parser.add_subparsers(dest="ledger_command", help="Ledger action")

    ledger_list = ledger_sub.add_parser("list", help="List ledger entries")
    ledger_list.add_argument("--business", type=str, help="Business id")

    ledger_summary = ledger_sub.add_parser("summary", help="Monthly cash summary")
    ledger_summary.add_argument("--business", type=str, help="Business id")
    ledger_summary.add_argument(
        "--month",
        type=str,
        help="Any date in the month, YYYY-MM-DD (default: today)",
    )

    # status command
    subparsers.add_parser("status", help="Show pipeline status")

    # init-config command
    subparsers.add_parser("init-config", help="Write a default config file")

    return parser


def _business_id(config: Config, explicit: str | None) -> str | None:
    business_id = explicit or config.ingestion.default_business_id
    if not business_id:
        print("❌ No business id. Pass --business or set ingestion.default_business_id")
    return business_id


def _print_report(report: UploadReport) -> None:
    outcome = report.outcome
    icon = "✓" if outcome.status == "success" else "❌"
    print(f"  {icon} {outcome.file_name} ({outcome.status})")
    if outcome.status != "success":
        for error in outcome.errors:
            print(f"     - {error}")
        return

    print(
        f"     → Rows: {outcome.rows_processed} processed, {outcome.rows_skipped} skipped, "
        f"{outcome.duplicates_skipped} duplicates"
    )
    print(
        f"     → Ledger: {report.ledger_committed} committed"
        + (f", {report.ledger_duplicates} already recorded" if report.ledger_duplicates else "")
    )
    print(f"     → Entities: {report.entities_stored} stored, {report.review_queued} queued for review")

    for label, items in (
        ("Errors", outcome.errors),
        ("Warnings", outcome.warnings),
        ("Suggestions", outcome.suggestions),
    ):
        if items:
            print(f"     {label}:")
            for item in items:
                print(f"       - {item}")


def cmd_ingest(config: Config, files: list[Path], business: str | None) -> int:
    """Ingest files through the pipeline."""
    business_id = _business_id(config, business)
    if not business_id:
        return 1

    print(f"📥 Ingesting {len(files)} file(s) for '{business_id}'...")

    batch: list[tuple[str, bytes]] = []
    read_failures = 0
    for path in files:
        try:
            batch.append((path.name, path.read_bytes()))
        except OSError as e:
            print(f"  ❌ {path}: {e}")
            read_failures += 1

    service = UploadService(StateStore(config.state_db_path), config)
    reports = service.ingest_batch(business_id, batch)
    for report in reports:
        _print_report(report)

    succeeded = sum(1 for report in reports if report.status == "success")
    failed = read_failures + len(reports) - succeeded
    committed = sum(report.ledger_committed for report in reports)
    queued = sum(report.review_queued for report in reports)
    print(
        f"\n✓ Files: {succeeded}, Failed: {failed}, "
        f"Ledger entries: {committed}, Queued for review: {queued}"
    )
    return 1 if failed else 0


def cmd_review_list(config: Config, business: str | None, status: str) -> int:
    """List review queue items."""
    business_id = _business_id(config, business)
    if not business_id:
        return 1

    queue = ReviewQueue(StateStore(config.state_db_path))
    items = queue.list_items(business_id, ReviewStatus(status))

    if not items:
        print(f"No {status} review items")
        return 0

    print(f"\n📋 Review queue ({status})")
    print("=" * 40)
    for item in items:
        print(
            f"  [{item.id}] {item.kind:<8} {item.name}  "
            f"{item.confidence:.0%} ({item.risk_level})  {item.source_file} row {item.row_number}"
        )
    print(f"\n✓ {len(items)} item(s)")
    return 0


def cmd_review_decide(config: Config, business: str | None, item_id: int, action: str) -> int:
    """Approve or reject a review item."""
    business_id = _business_id(config, business)
    if not business_id:
        return 1

    queue = ReviewQueue(StateStore(config.state_db_path))
    if action == "approve":
        item = queue.approve(business_id, item_id)
        expected = ReviewStatus.APPROVED
    else:
        item = queue.reject(business_id, item_id)
        expected = ReviewStatus.REJECTED

    if item is None:
        print(f"❌ Review item {item_id} not found")
        return 1

    if item.status != expected:
        print(f"⚠️  Item {item_id} unchanged (status: {item.status.value})")
        return 0

    print(f"✓ {item.kind.capitalize()} '{item.name}' {item.status.value}")
    return 0


def cmd_ledger_list(config: Config, business: str | None) -> int:
    """List ledger entries."""
    business_id = _business_id(config, business)
    if not business_id:
        return 1

    entries = LedgerService(StateStore(config.state_db_path)).list_entries(business_id)
    if not entries:
        print("Ledger is empty")
        return 0

    print(f"\n📒 Ledger for '{business_id}'")
    print("=" * 40)
    for entry in entries:
        sign = "+" if entry.direction == "IN" else "-"
        details = " · ".join(
            part for part in (entry.category, entry.channel, entry.reference) if part
        )
        print(f"  {entry.date}  {sign}{entry.amount:>12.2f}  {details}")
    print(f"\n✓ {len(entries)} entr{'y' if len(entries) == 1 else 'ies'}")
    return 0


def cmd_ledger_summary(config: Config, business: str | None, month: str | None) -> int:
    """Show the monthly cash summary."""
    business_id = _business_id(config, business)
    if not business_id:
        return 1

    summary = LedgerService(StateStore(config.state_db_path)).monthly_summary(business_id, month)

    print(f"\n📊 {summary.month} for '{business_id}'")
    print("=" * 40)
    print(f"  Cash in:    {summary.cash_in:>12.2f}")
    print(f"  Cash out:   {summary.cash_out:>12.2f}")
    print(f"  Profit:     {summary.profit:>12.2f}")
    print(f"  Entries:    {summary.entries:>12}")
    print()
    return 0


def cmd_status(config: Config) -> int:
    """Show pipeline status."""
    store = StateStore(config.state_db_path)
    stats = store.get_stats()

    print("\n📊 Pipeline Status")
    print("=" * 40)
    print(f"  Uploads total:          {stats['uploads_total']}")
    print(f"  Uploads failed:         {stats['uploads_failed']}")
    print(f"  Rows ingested:          {stats['rows_ingested']}")
    print(f"  Ledger entries:         {stats['ledger_entries']}")
    print(f"  Entities:               {stats['entities']}")
    print(f"  Pending review:         {stats['pending_review']}")
    print()

    return 0


def cmd_init_config(config_path: Path) -> int:
    """Write a default config file."""
    if config_path.exists():
        print(f"❌ {config_path} already exists")
        return 1

    create_default_config(config_path)
    print(f"✓ Wrote default config to {config_path}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return 1

    # Route to command
    if parsed.command == "ingest":
        return cmd_ingest(config, parsed.files, parsed.business)
    elif parsed.command == "review":
        if parsed.review_command == "list":
            return cmd_review_list(config, parsed.business, parsed.status)
        elif parsed.review_command in ("approve", "reject"):
            return cmd_review_decide(
                config, parsed.business, parsed.item_id, parsed.review_command
            )
    elif parsed.command == "ledger":
        if parsed.ledger_command == "list":
            return cmd_ledger_list(config, parsed.business)
        elif parsed.ledger_command == "summary":
            return cmd_ledger_summary(config, parsed.business, parsed.month)
    elif parsed.command == "status":
        return cmd_status(config)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
