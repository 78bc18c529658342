"""
Sync Manager - Keeps the local record store in sync with DNS providers

This module fetches each domain's records from the configured provider,
reconciles them against the local store, applies the resulting change-set,
records it in the change history and hands it to alerting.
"""

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .alerts import Alert, AlertManager
from .changes import ChangeEntry, ChangeType, summarize_changes
from .monitor import MonitorManager
from .reconciler import DuplicateRemoteIdError, reconcile
from .records import LocalRecord
from ..providers.base_provider import DNSProvider, DNSProviderError, RecordInput
from ..providers.dns_client import DNSClient
from ..store import ChangeHistoryEntry, LocalStore, create_store
from ..utils.validators import validate_record

console = Console()
logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of syncing one domain."""

    domain_id: str
    success: bool
    sync_batch_id: str
    changes: List[ChangeEntry] = field(default_factory=list)
    records_count: int = 0
    applied: int = 0
    alerts: List[Alert] = field(default_factory=list)
    error: Optional[str] = None


class SyncManager:
    """Main sync class that orchestrates provider, store and alerting."""

    def __init__(
        self,
        config: Optional[Dict] = None,
        provider: Optional[DNSProvider] = None,
        store: Optional[LocalStore] = None,
        alert_manager: Optional[AlertManager] = None,
        monitor_manager: Optional[MonitorManager] = None,
    ):
        """Initialize the sync manager, building collaborators from config when not given."""
        self.config = config or {}
        self.dns_client = provider or DNSClient(self.config)
        self.store = store or create_store(self.config.get("store"))
        self.alert_manager = alert_manager or AlertManager.from_config(
            self.config.get("alerts")
        )
        self.monitor_manager = monitor_manager

    def sync_domain(
        self, domain_id: str, dry_run: bool = False, output_file: Optional[str] = None
    ) -> SyncResult:
        """
        Sync one domain from its provider into the local store.

        Args:
            domain_id: Provider domain identifier (the zone name for BIND)
            dry_run: Report the change-set without applying it or alerting
            output_file: File receiving a text summary of a dry run

        Returns:
            SyncResult describing the change-set and what was applied
        """
        batch_id = uuid.uuid4().hex
        result = SyncResult(domain_id=domain_id, success=False, sync_batch_id=batch_id)

        try:
            console.print(f"[green]Fetching DNS records for {domain_id}...[/green]")
            remote_records = self.dns_client.list_records(domain_id)
            local_records = self.store.list_records(domain_id)
            console.print(
                f"[blue]Found {len(remote_records)} remote and "
                f"{len(local_records)} local records[/blue]"
            )

            changes = reconcile(local_records, remote_records)
        except (DNSProviderError, DuplicateRemoteIdError) as e:
            logger.error(f"Sync of {domain_id} failed: {e}")
            console.print(f"[red]Error: {e}[/red]")
            result.error = str(e)
            return result

        result.changes = changes
        result.records_count = len(remote_records)
        self._display_changes_summary(domain_id, changes)

        if dry_run:
            console.print("[yellow]DRY RUN MODE - No changes will be applied[/yellow]")
            if output_file:
                self._save_dry_run_output(domain_id, changes, output_file)
                console.print(f"[green]Dry run output saved to: {output_file}[/green]")
            result.success = True
            return result

        if not changes:
            console.print(
                "[green]No changes detected - local records are up to date[/green]"
            )
            result.success = True
            return result

        synced_at = datetime.now()
        history = [
            ChangeHistoryEntry(
                id=uuid.uuid4().hex,
                domain_id=domain_id,
                sync_batch_id=batch_id,
                entry=change,
                created_at=synced_at,
            )
            for change in changes
        ]
        try:
            result.applied = self.store.apply_changes(domain_id, changes, synced_at, history)
        except (KeyError, OSError) as e:
            logger.error(f"Failed to apply changes for {domain_id}: {e}")
            console.print(f"[red]Error: failed to apply changes: {e}[/red]")
            result.error = f"Failed to apply changes: {e}"
            return result

        if self.monitor_manager is not None:
            self.monitor_manager.handle_changes(domain_id, changes)
        result.alerts = self.alert_manager.evaluate(domain_id, changes, synced_at)
        result.success = True

        logger.info(
            f"Synced {domain_id}: {result.applied} changes applied in batch {batch_id}, "
            f"{len(result.alerts)} alerts fired"
        )
        return result

    def sync_domains(self, domain_ids: List[str], dry_run: bool = False) -> List[SyncResult]:
        """Sync several domains one after another."""
        results = []

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Syncing domains...", total=len(domain_ids))
            for domain_id in domain_ids:
                results.append(self.sync_domain(domain_id, dry_run=dry_run))
                progress.update(task, advance=1)

        succeeded = sum(1 for r in results if r.success)
        console.print(f"[blue]Successfully synced {succeeded}/{len(results)} domains[/blue]")
        return results

    def create_record(self, domain_id: str, record: RecordInput) -> LocalRecord:
        """Create a record on the provider and mirror it locally."""
        self._validate_input(record)

        remote = self.dns_client.create_record(domain_id, record)
        local = LocalRecord(
            local_id=uuid.uuid4().hex,
            remote_id=remote.remote_id,
            type=remote.type,
            name=remote.name,
            content=remote.content,
            ttl=remote.ttl,
            priority=remote.priority,
            proxied=bool(remote.proxied),
            domain_id=domain_id,
            synced_at=datetime.now(),
            extra=remote.extra,
        )
        self.store.insert_record(local)
        logger.info(f"Created record: {record.name} -> {record.content}")
        return local

    def update_record(self, domain_id: str, local_id: str, record: RecordInput) -> LocalRecord:
        """Update a record on the provider and mirror the result locally."""
        self._validate_input(record)
        existing = self._get_local(domain_id, local_id)

        remote = self.dns_client.update_record(domain_id, existing.remote_id, record)
        local = LocalRecord(
            local_id=existing.local_id,
            remote_id=remote.remote_id,
            type=remote.type,
            name=remote.name,
            content=remote.content,
            ttl=remote.ttl,
            priority=remote.priority,
            proxied=bool(remote.proxied),
            domain_id=domain_id,
            synced_at=datetime.now(),
            extra=remote.extra,
        )
        self.store.update_record(local)
        logger.info(f"Updated record: {record.name} -> {record.content}")
        return local

    def delete_record(self, domain_id: str, local_id: str) -> None:
        """Delete a record on the provider and locally."""
        existing = self._get_local(domain_id, local_id)

        self.dns_client.delete_record(domain_id, existing.remote_id)
        self.store.delete_record(local_id)
        logger.info(f"Deleted record: {existing.name}")

    def _get_local(self, domain_id: str, local_id: str) -> LocalRecord:
        existing = self.store.get_record(local_id)
        if existing is None or existing.domain_id != domain_id:
            raise KeyError(f"Record {local_id} not found in domain {domain_id}")
        return existing

    def _validate_input(self, record: RecordInput) -> None:
        errors = validate_record(asdict(record))
        if errors:
            raise ValueError(f"Invalid record: {'; '.join(errors)}")

    def _display_changes_summary(self, domain_id: str, changes: List[ChangeEntry]):
        """Display a summary of detected changes."""
        table = Table(title=f"DNS Changes Summary - {domain_id}")
        table.add_column("Operation", style="cyan")
        table.add_column("Count", style="magenta")
        table.add_column("Details", style="white")

        for change_type in ChangeType:
            selected = [c for c in changes if c.change_type is change_type]
            if selected:
                table.add_row(
                    change_type.value.capitalize(),
                    str(len(selected)),
                    "\n".join(c.describe() for c in selected),
                )

        console.print(table)
        console.print(f"\n[bold]Total changes: {len(changes)}[/bold]")

    def _save_dry_run_output(self, domain_id: str, changes: List[ChangeEntry], output_file: str):
        """Save dry run output to a file."""
        summary = summarize_changes(changes)
        sections = (
            (ChangeType.ADDED, "RECORDS ADDED ON PROVIDER:"),
            (ChangeType.MODIFIED, "RECORDS MODIFIED ON PROVIDER:"),
            (ChangeType.DELETED, "RECORDS DELETED ON PROVIDER:"),
        )

        try:
            with open(output_file, "w") as f:
                f.write("=" * 60 + "\n")
                f.write("DNS RECORD SYNC - DRY RUN SUMMARY\n")
                f.write("=" * 60 + "\n\n")

                f.write(f"Domain: {domain_id}\n")
                f.write(f"Total Changes: {summary['total_changes']}\n")
                f.write(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n")

                for change_type, heading in sections:
                    selected = [c for c in changes if c.change_type is change_type]
                    if not selected:
                        continue
                    f.write(heading + "\n")
                    f.write("-" * len(heading) + "\n")
                    for change in selected:
                        f.write(f"  {change.describe()}\n")
                    f.write("\n")

                f.write("=" * 60 + "\n")
                f.write("END OF DRY RUN SUMMARY\n")
                f.write("=" * 60 + "\n")

            logger.info(f"Dry run output saved to: {output_file}")
        except OSError as e:
            logger.error(f"Failed to save dry run output to {output_file}: {e}")
            console.print(
                f"[red]Warning: Failed to save dry run output to {output_file}: {e}[/red]"
            )
