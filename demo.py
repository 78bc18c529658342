#!/usr/bin/env python3
"""
DNS Record Sync - Demo Script

This script demonstrates change detection using the mock provider:
an initial sync, a few edits made "on the provider", a dry run that
reports them and a live sync that applies them to the local store.
"""

import os

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dns_record_sync.core.alerts import AlertManager, AlertRule
from dns_record_sync.core.changes import ChangeType
from dns_record_sync.core.records import CanonicalRecord
from dns_record_sync.core.sync_manager import SyncManager
from dns_record_sync.providers.mock_provider import MockDNSProvider
from dns_record_sync.store import MemoryStore

# Initialize rich console
console = Console()

DOMAIN = "demo.example.com"
DRY_RUN_FILE = "demo_dry_run.txt"


def create_demo_provider():
    """Create a mock provider seeded with sample records."""
    records = [
        {"id": "rec-www", "type": "A", "name": "www", "content": "192.0.2.10", "ttl": 300},
        {"id": "rec-api", "type": "A", "name": "api", "content": "192.0.2.20", "ttl": 300},
        {"id": "rec-old", "type": "CNAME", "name": "legacy", "content": "www.demo.example.com", "ttl": 300},
        {
            "id": "rec-mx",
            "type": "MX",
            "name": "@",
            "content": "mail.demo.example.com",
            "ttl": 3600,
            "priority": 10,
        },
        {"id": "rec-spf", "type": "TXT", "name": "@", "content": "v=spf1 mx -all", "ttl": 3600},
    ]
    return MockDNSProvider({"domains": {DOMAIN: records}})


def display_demo_header():
    """Display the demo header."""
    console.print(
        Panel.fit(
            "[bold blue]DNS Record Sync - Demo[/bold blue]\n"
            f"[cyan]Detecting provider-side changes for {DOMAIN}[/cyan]",
            border_style="blue",
        )
    )
    console.print()


def display_local_state(sync_manager, title):
    """Display the records held by the local store."""
    records = sync_manager.store.list_records(DOMAIN)
    if not records:
        console.print("[yellow]No local records[/yellow]\n")
        return

    table = Table(title=title)
    table.add_column("Remote ID", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Name", style="magenta")
    table.add_column("Content", style="white")
    table.add_column("TTL", style="yellow")

    for record in records:
        table.add_row(record.remote_id, record.type, record.name, record.content, str(record.ttl))

    console.print(table)
    console.print()


def simulate_provider_edits(provider):
    """Edit records directly on the provider, as an operator would in its dashboard."""
    console.print("[bold]Simulating edits made on the provider...[/bold]")

    provider.put_record(
        DOMAIN, CanonicalRecord("rec-www", "A", "www", "192.0.2.99", 60)
    )
    provider.put_record(
        DOMAIN, CanonicalRecord("rec-api", "A", "api", "192.0.2.20", 300, proxied=True)
    )
    provider.delete_record(DOMAIN, "rec-old")
    provider.put_record(
        DOMAIN, CanonicalRecord("rec-dmarc", "TXT", "_dmarc", "v=DMARC1; p=reject", 3600)
    )

    console.print("  ~ www: new address and TTL")
    console.print("  ~ api: proxying enabled")
    console.print("  - legacy: deleted")
    console.print("  + _dmarc: added")
    console.print()


def display_history(sync_manager):
    """Display the stored change history."""
    page = sync_manager.store.list_changes(domain_id=DOMAIN, limit=20)

    table = Table(title="Change History")
    table.add_column("Change", style="cyan")
    table.add_column("Record", style="white")
    table.add_column("Batch", style="dim")
    for item in page.changes:
        table.add_row(item.entry.change_type.value, item.entry.describe(), item.sync_batch_id[:8])

    console.print(table)
    console.print()


def main():
    """Main demo function."""
    display_demo_header()

    provider = create_demo_provider()
    alert_manager = AlertManager(
        [AlertRule(name="deletions", change_types=(ChangeType.DELETED,))]
    )
    sync_manager = SyncManager(provider=provider, store=MemoryStore(), alert_manager=alert_manager)

    try:
        console.print("[bold]Initial sync...[/bold]")
        sync_manager.sync_domain(DOMAIN)
        display_local_state(sync_manager, "Local Records (after initial sync)")

        simulate_provider_edits(provider)

        console.print("[bold]Running Dry-Run...[/bold]")
        result = sync_manager.sync_domain(DOMAIN, dry_run=True, output_file=DRY_RUN_FILE)
        if result.success:
            console.print("[green]✓ Dry-run completed successfully![/green]\n")
        else:
            console.print(f"[red]✗ Dry-run failed: {result.error}[/red]\n")

        console.print("[bold]Would you like to apply the changes to the local store?[/bold]")
        response = input("Proceed? (yes/no): ").lower().strip()

        if response in ["yes", "y"]:
            result = sync_manager.sync_domain(DOMAIN)
            for alert in result.alerts:
                console.print(f"[red]Alert ({alert.severity}): {alert.title}[/red]")
            console.print()
            display_local_state(sync_manager, "Local Records (after sync)")
            display_history(sync_manager)
        else:
            console.print("[yellow]Live sync skipped[/yellow]")

        console.print(
            Panel.fit(
                "[bold green]Demo Summary[/bold green]\n"
                "✓ Provider records mirrored locally\n"
                "✓ Provider-side edits detected\n"
                "✓ Mock provider used (no real DNS changes)",
                border_style="green",
            )
        )

    finally:
        if os.path.exists(DRY_RUN_FILE):
            os.remove(DRY_RUN_FILE)

        console.print()
        console.print("[bold blue]Demo completed![/bold blue]")


if __name__ == "__main__":
    main()
