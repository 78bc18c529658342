"""
Record Monitor - Periodic DNS checks for synced records

This module resolves synced records through DNS and checks that they are
available, how long the lookup took and whether the answer matches the
value held locally. Monitor tasks are kept in memory, one per local
record, and follow the records as syncs modify or delete them.
"""

import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

import dns.exception
import dns.resolver

from .changes import ChangeEntry, ChangeType
from .records import LocalRecord

logger = logging.getLogger(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUS_PARTIAL = "partial"

DEFAULT_CHECK_INTERVAL = 300
DEFAULT_CONCURRENCY = 5
DEFAULT_TIMEOUT = 5.0


@dataclass
class DNSCheckResult:
    """Outcome of resolving one record."""

    status: str
    is_available: bool
    expected_value: str
    latency_ms: Optional[int] = None
    is_correct: Optional[bool] = None
    actual_value: Optional[str] = None
    error_message: Optional[str] = None


def full_dns_name(record_name: str, domain_name: str) -> str:
    """Return the fully qualified name of a record within its domain."""
    if record_name in ("@", "", domain_name):
        return domain_name
    if record_name.endswith("." + domain_name):
        return record_name
    return f"{record_name}.{domain_name}"


def _normalize(value: str) -> str:
    return value.strip().rstrip(".").lower()


def _answer_values(record_type: str, answer) -> List[str]:
    values = []
    for rdata in answer:
        if record_type == "MX":
            values.append(rdata.exchange.to_text())
        elif record_type == "SRV":
            values.append(rdata.target.to_text())
        elif record_type == "TXT":
            values.append("".join(s.decode("utf-8", "replace") for s in rdata.strings))
        else:
            values.append(rdata.to_text())
    return values


class DNSChecker:
    """Resolve records and compare the answers with expected values."""

    def __init__(
        self,
        nameservers: Optional[List[str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        resolver: Optional[dns.resolver.Resolver] = None,
    ):
        self.timeout = timeout
        if resolver is None:
            resolver = dns.resolver.Resolver(configure=not nameservers)
            if nameservers:
                resolver.nameservers = list(nameservers)
            resolver.timeout = timeout
        self.resolver = resolver

    def check_record(
        self,
        record_type: str,
        record_name: str,
        domain_name: str,
        expected_value: str,
        check_latency: bool = True,
        check_correctness: bool = True,
    ) -> DNSCheckResult:
        """
        Resolve one record and evaluate the answer.

        Args:
            record_type: Record type to query (A, MX, TXT, ...)
            record_name: Record name relative to the domain, "@" for the apex
            domain_name: Domain the record belongs to
            expected_value: Value the answer should contain
            check_latency: Report the lookup time in milliseconds
            check_correctness: Compare the answer with expected_value

        Returns:
            DNSCheckResult with status "success", "partial" when the record
            resolves to other values, or "failed" when it does not resolve
        """
        full_name = full_dns_name(record_name, domain_name)
        started = time.monotonic()

        try:
            answer = self.resolver.resolve(full_name, record_type, lifetime=self.timeout)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer, dns.resolver.NoNameservers):
            logger.warning(f"DNS record not found: {record_type} {full_name}")
            return DNSCheckResult(
                status=STATUS_FAILED,
                is_available=False,
                expected_value=expected_value,
                error_message=f"DNS record not found: {full_name}",
            )
        except dns.exception.DNSException as e:
            logger.warning(f"DNS check of {record_type} {full_name} failed: {e}")
            return DNSCheckResult(
                status=STATUS_FAILED,
                is_available=False,
                expected_value=expected_value,
                error_message=str(e) or type(e).__name__,
            )

        latency_ms = int(round((time.monotonic() - started) * 1000))
        values = _answer_values(record_type, answer)

        is_correct = None
        if check_correctness:
            expected = _normalize(expected_value)
            is_correct = any(_normalize(v) == expected for v in values)

        return DNSCheckResult(
            status=STATUS_PARTIAL if is_correct is False else STATUS_SUCCESS,
            is_available=True,
            expected_value=expected_value,
            latency_ms=latency_ms if check_latency else None,
            is_correct=is_correct,
            actual_value=", ".join(values),
        )


@dataclass
class MonitorTask:
    """A scheduled check of one local record."""

    id: str
    domain_id: str
    local_record_id: str
    record_type: str
    record_name: str
    expected_value: str
    enabled: bool = True
    check_interval: int = DEFAULT_CHECK_INTERVAL
    check_availability: bool = True
    check_latency: bool = True
    check_correctness: bool = True
    last_check_at: Optional[datetime] = None
    next_check_at: Optional[datetime] = None

    def is_due(self, now: datetime) -> bool:
        return self.enabled and (self.next_check_at is None or self.next_check_at <= now)


@dataclass
class MonitorResult:
    """One stored check of a monitor task."""

    id: str
    task_id: str
    domain_id: str
    result: DNSCheckResult
    checked_at: datetime = field(default_factory=datetime.now)


class MonitorManager:
    """Keeps monitor tasks for synced records and runs the due checks."""

    def __init__(
        self,
        checker: Optional[DNSChecker] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        check_interval: int = DEFAULT_CHECK_INTERVAL,
    ):
        self.checker = checker or DNSChecker()
        self.concurrency = max(1, concurrency)
        self.check_interval = check_interval
        self._tasks: Dict[str, MonitorTask] = {}
        self._results: List[MonitorResult] = []
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[Dict]) -> "MonitorManager":
        """Build a manager from the ``monitoring`` section of the configuration."""
        config = config or {}
        checker = DNSChecker(
            nameservers=config.get("nameservers"),
            timeout=float(config.get("timeout", DEFAULT_TIMEOUT)),
        )
        return cls(
            checker,
            concurrency=int(config.get("concurrency", DEFAULT_CONCURRENCY)),
            check_interval=int(config.get("check_interval", DEFAULT_CHECK_INTERVAL)),
        )

    def create_task(self, record: LocalRecord, **options) -> MonitorTask:
        """Start monitoring a local record.

        Raises:
            ValueError: If the record already has a monitor task
        """
        with self._lock:
            if any(t.local_record_id == record.local_id for t in self._tasks.values()):
                raise ValueError(f"Record {record.local_id} is already monitored")

            task = MonitorTask(
                id=uuid.uuid4().hex,
                domain_id=record.domain_id,
                local_record_id=record.local_id,
                record_type=record.type,
                record_name=record.name,
                expected_value=record.content,
                check_interval=options.pop("check_interval", self.check_interval),
                **options,
            )
            self._tasks[task.id] = task

        logger.info(f"Monitoring {task.record_type} {task.record_name} in {task.domain_id}")
        return task

    def list_tasks(self, domain_id: Optional[str] = None) -> List[MonitorTask]:
        with self._lock:
            return [t for t in self._tasks.values() if domain_id in (None, t.domain_id)]

    def delete_task(self, task_id: str) -> None:
        with self._lock:
            if self._tasks.pop(task_id, None) is None:
                raise KeyError(f"Monitor task {task_id} not found")

    def available_records(self, records: Iterable[LocalRecord]) -> List[LocalRecord]:
        """Return the records that have no monitor task yet."""
        with self._lock:
            monitored = {t.local_record_id for t in self._tasks.values()}
        return [r for r in records if r.local_id not in monitored]

    def run_task(self, task: MonitorTask, now: Optional[datetime] = None) -> MonitorResult:
        """Check one task now and schedule its next check."""
        now = now or datetime.now()
        check = self.checker.check_record(
            task.record_type,
            task.record_name,
            task.domain_id,
            task.expected_value,
            check_latency=task.check_latency,
            check_correctness=task.check_correctness,
        )
        result = MonitorResult(
            id=uuid.uuid4().hex,
            task_id=task.id,
            domain_id=task.domain_id,
            result=check,
            checked_at=now,
        )

        with self._lock:
            task.last_check_at = now
            task.next_check_at = now + timedelta(seconds=task.check_interval)
            self._results.append(result)
        return result

    def run_due(self, now: Optional[datetime] = None) -> List[MonitorResult]:
        """Run every enabled task whose next check is due."""
        now = now or datetime.now()
        due = [t for t in self.list_tasks() if t.is_due(now)]
        if not due:
            return []

        logger.info(f"Running {len(due)} due monitor checks")
        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            return list(executor.map(lambda task: self.run_task(task, now), due))

    def get_results(
        self,
        task_id: Optional[str] = None,
        domain_id: Optional[str] = None,
        days: Optional[int] = None,
        limit: Optional[int] = 100,
    ) -> List[MonitorResult]:
        """Return stored results, newest first."""
        with self._lock:
            results = list(self._results)

        if task_id:
            results = [r for r in results if r.task_id == task_id]
        if domain_id:
            results = [r for r in results if r.domain_id == domain_id]
        if days:
            since = datetime.now() - timedelta(days=days)
            results = [r for r in results if r.checked_at >= since]

        results.sort(key=lambda r: r.checked_at, reverse=True)
        return results[:limit]

    def get_stats(self, days: int = 7) -> Dict[str, int]:
        """Summarize the tasks and the checks of the last ``days`` days."""
        tasks = self.list_tasks()
        results = self.get_results(days=days, limit=None)

        successes = sum(1 for r in results if r.result.status == STATUS_SUCCESS)
        latencies = [r.result.latency_ms for r in results if r.result.latency_ms is not None]

        return {
            "total_tasks": len(tasks),
            "enabled_tasks": sum(1 for t in tasks if t.enabled),
            "total_checks": len(results),
            "success_rate": round(successes * 100 / len(results)) if results else 0,
            "avg_latency": round(sum(latencies) / len(latencies)) if latencies else 0,
        }

    def handle_changes(self, domain_id: str, changes: Iterable[ChangeEntry]) -> None:
        """Follow a synced change-set: retarget modified records, drop deleted ones."""
        with self._lock:
            by_record = {
                t.local_record_id: t for t in self._tasks.values() if t.domain_id == domain_id
            }
            for change in changes:
                task = by_record.get(change.local_record_id)
                if task is None:
                    continue
                if change.change_type is ChangeType.MODIFIED:
                    task.record_type = change.record_type
                    task.record_name = change.record_name
                    task.expected_value = change.current_value.content
                elif change.change_type is ChangeType.DELETED:
                    del self._tasks[task.id]
                    logger.info(f"Stopped monitoring deleted record {change.describe()}")
