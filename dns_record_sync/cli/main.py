#!/usr/bin/env python3
"""
DNS Record Sync - Command Line Interface

Main entry point for the DNS Record Sync CLI.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List

import yaml
from rich.console import Console
from rich.table import Table

from ..core.changes import ChangeEntry, ChangeType, changes_to_json
from ..core.monitor import STATUS_FAILED, MonitorManager
from ..core.reconciler import reconcile
from ..core.sync_manager import SyncManager
from ..parsers.snapshot import load_snapshot

console = Console()
logger = logging.getLogger(__name__)


def main(argv: List[str] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "diff":
            exit_code = run_diff(args)
        elif args.command == "history":
            exit_code = run_history(args)
        elif args.command == "monitor":
            exit_code = run_monitor(args)
        else:
            exit_code = run_sync(args)
    except Exception as e:
        print(f"Error: {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        exit_code = 1

    sys.exit(exit_code)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DNS Record Sync - Mirror DNS provider records and report changes"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser("sync", help="Sync domains from the provider")
    sync_parser.add_argument(
        "--config",
        "-c",
        default="configs/config.yaml",
        help="Configuration file path (default: configs/config.yaml)",
    )
    sync_parser.add_argument(
        "--domain",
        "-d",
        action="append",
        help="Domain to sync, may be repeated (default: domains from config)",
    )
    sync_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what changed without updating the local store",
    )
    sync_parser.add_argument(
        "--output-file",
        "-o",
        help="File to save dry run output (only used with --dry-run)",
    )

    diff_parser = subparsers.add_parser(
        "diff", help="Compare a local snapshot file with a remote snapshot file"
    )
    diff_parser.add_argument("--local", "-l", required=True, help="Local records file")
    diff_parser.add_argument("--remote", "-r", required=True, help="Remote records file")
    diff_parser.add_argument(
        "--json", action="store_true", help="Print the change-set as JSON"
    )

    history_parser = subparsers.add_parser("history", help="Show stored change history")
    history_parser.add_argument(
        "--config", "-c", default="configs/config.yaml", help="Configuration file path"
    )
    history_parser.add_argument("--domain", "-d", help="Only show this domain")
    history_parser.add_argument(
        "--type", "-t", choices=[t.value for t in ChangeType], help="Only show this change type"
    )
    history_parser.add_argument("--days", type=int, help="Only show the last N days")
    history_parser.add_argument("--search", "-s", help="Filter by record name or type")
    history_parser.add_argument("--page", type=int, default=1)
    history_parser.add_argument("--limit", type=int, default=50)


    monitor_parser = subparsers.add_parser(
        "monitor", help="Resolve the synced records and check them against DNS"
    )
    monitor_parser.add_argument(
        "--config", "-c", default="configs/config.yaml", help="Configuration file path"
    )
    monitor_parser.add_argument(
        "--domain",
        "-d",
        action="append",
        help="Domain to check, may be repeated (default: domains from config)",
    )

    return parser


def run_sync(args) -> int:
    if args.output_file and not args.dry_run:
        print("Error: --output-file can only be used with --dry-run")
        return 1

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found")
        return 1

    config = load_config(args.config)
    config_logger(config, args.verbose)

    domains = args.domain or config.get("domains") or []
    if not domains:
        print("Error: No domains to sync, use --domain or set 'domains' in config")
        return 1

    sync_manager = SyncManager(config)
    if len(domains) == 1:
        results = [
            sync_manager.sync_domain(
                domains[0], dry_run=args.dry_run, output_file=args.output_file
            )
        ]
    else:
        results = sync_manager.sync_domains(domains, dry_run=args.dry_run)

    if all(result.success for result in results):
        print("DNS record sync completed successfully")
        return 0

    print("DNS record sync failed")
    return 1


def run_diff(args) -> int:
    config_logger({}, args.verbose)

    local_records = load_snapshot(args.local, local=True)
    remote_records = load_snapshot(args.remote)
    changes = reconcile(local_records, remote_records)

    if args.json:
        print(changes_to_json(changes))
    else:
        display_changes(changes)
    return 0


def run_history(args) -> int:
    config = load_config(args.config)
    config_logger(config, args.verbose)

    sync_manager = SyncManager(config)
    result = sync_manager.store.list_changes(
        domain_id=args.domain,
        change_type=args.type,
        days=args.days,
        search=args.search,
        page=args.page,
        limit=args.limit,
    )

    table = Table(title=f"Record Changes (page {result.page}/{max(result.total_pages, 1)})")
    table.add_column("Time", style="cyan")
    table.add_column("Domain", style="magenta")
    table.add_column("Change", style="white")
    table.add_column("Batch", style="dim")
    for item in result.changes:
        table.add_row(
            item.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            item.domain_id,
            item.entry.describe(),
            item.sync_batch_id[:8],
        )

    console.print(table)
    console.print(f"[bold]Total: {result.total}[/bold]")
    return 0


def run_monitor(args) -> int:
    config = load_config(args.config)
    config_logger(config, args.verbose)

    domains = args.domain or config.get("domains") or []
    if not domains:
        print("Error: No domains to check, use --domain or set 'domains' in config")
        return 1

    sync_manager = SyncManager(config)
    monitor = MonitorManager.from_config(config.get("monitoring"))
    for domain_id in domains:
        for record in monitor.available_records(sync_manager.store.list_records(domain_id)):
            monitor.create_task(record)

    results = monitor.run_due()
    tasks = {task.id: task for task in monitor.list_tasks()}

    table = Table(title="DNS Monitor Results")
    table.add_column("Domain", style="magenta")
    table.add_column("Record", style="white")
    table.add_column("Status", style="cyan")
    table.add_column("Latency", style="yellow")
    table.add_column("Answer", style="white")
    for item in results:
        task = tasks[item.task_id]
        check = item.result
        table.add_row(
            item.domain_id,
            f"{task.record_type} {task.record_name}",
            check.status,
            f"{check.latency_ms} ms" if check.latency_ms is not None else "-",
            check.actual_value or check.error_message or "",
        )

    console.print(table)
    stats = monitor.get_stats()
    console.print(
        f"[bold]Checks: {stats['total_checks']}, success rate {stats['success_rate']}%, "
        f"average latency {stats['avg_latency']} ms[/bold]"
    )
    return 1 if any(r.result.status == STATUS_FAILED for r in results) else 0


def display_changes(changes: List[ChangeEntry]):
    table = Table(title="Record Changes")
    table.add_column("Change", style="cyan")
    table.add_column("Remote ID", style="magenta")
    table.add_column("Record", style="white")
    table.add_column("Fields", style="yellow")

    for change in changes:
        table.add_row(
            change.change_type.value,
            change.remote_id,
            change.describe(),
            ", ".join(change.changed_fields or ()),
        )

    console.print(table)
    console.print(f"\n[bold]Total changes: {len(changes)}[/bold]")


def load_config(config_path: str) -> Dict:
    """Load configuration from YAML file."""
    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Configuration loaded from {config_path}")
        return config
    except FileNotFoundError:
        logger.warning(f"Config file {config_path} not found, using defaults")
        return get_default_config()
    except yaml.YAMLError as e:
        logger.error(f"Error parsing config file: {e}")
        sys.exit(1)


def get_default_config() -> Dict:
    """Return default configuration."""
    return {
        "dns_providers": {"mock": {}},
        "default_provider": "mock",
        "store": {"type": "memory"},
        "logging": {"level": "INFO", "file": "dns_record_sync.log"},
    }


def config_logger(config: Dict, verbose: bool = False):
    """Configure logging."""
    logging_config = config.get("logging", None)
    handlers = [logging.StreamHandler(sys.stdout)]
    log_level = "INFO"

    if logging_config:
        log_level = logging_config.get("level", "INFO")
        log_file = logging_config.get("file", "dns_record_sync.log")
        if log_file:
            handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level="DEBUG" if verbose else log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


if __name__ == "__main__":
    main()
