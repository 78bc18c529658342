"""
Alerts - Record change alert rules

Alert rules inspect the change-set of a sync and decide whether operators
should be notified. Delivery itself is delegated to Notifier objects;
this package only ships a notifier that writes to the log.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .changes import ChangeEntry, ChangeType

logger = logging.getLogger(__name__)

SEVERITY_INFO = "info"
SEVERITY_WARNING = "warning"
SEVERITY_CRITICAL = "critical"


@dataclass
class AlertRule:
    """A rule that fires when matching record changes are detected."""

    name: str
    change_types: Sequence[ChangeType] = (
        ChangeType.ADDED,
        ChangeType.MODIFIED,
        ChangeType.DELETED,
    )
    domain_id: Optional[str] = None
    enabled: bool = True
    cooldown_minutes: int = 30
    last_triggered_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @classmethod
    def from_dict(cls, data: Dict) -> "AlertRule":
        kwargs = {
            "name": data["name"],
            "domain_id": data.get("domain_id"),
            "enabled": bool(data.get("enabled", True)),
            "cooldown_minutes": int(data.get("cooldown_minutes", 30)),
        }
        if data.get("change_types"):
            kwargs["change_types"] = tuple(ChangeType(t) for t in data["change_types"])
        if data.get("id"):
            kwargs["id"] = data["id"]
        return cls(**kwargs)

    def matching_changes(
        self, domain_id: str, changes: Iterable[ChangeEntry]
    ) -> List[ChangeEntry]:
        if self.domain_id and self.domain_id != domain_id:
            return []
        return [c for c in changes if c.change_type in self.change_types]

    def in_cooldown(self, now: datetime) -> bool:
        if self.last_triggered_at is None:
            return False
        return now < self.last_triggered_at + timedelta(minutes=self.cooldown_minutes)


@dataclass
class Alert:
    """A fired alert and its delivery outcome."""

    rule_id: str
    severity: str
    title: str
    message: str
    domain_id: str
    changes: List[ChangeEntry]
    triggered_at: datetime
    notifications_sent: int = 0
    notifications_failed: int = 0


class Notifier(ABC):
    """Delivery channel for alerts."""

    @abstractmethod
    def send(self, title: str, message: str) -> bool:
        """Deliver one alert, returning True on success."""
        pass


class LogNotifier(Notifier):
    """Writes alerts to the log."""

    def send(self, title: str, message: str) -> bool:
        logger.warning(f"ALERT {title}\n{message}")
        return True


def change_severity(changes: Iterable[ChangeEntry]) -> str:
    """Grade a set of changes: deletions are critical, modifications warnings."""
    change_types = {c.change_type for c in changes}
    if ChangeType.DELETED in change_types:
        return SEVERITY_CRITICAL
    if ChangeType.MODIFIED in change_types:
        return SEVERITY_WARNING
    return SEVERITY_INFO


class AlertManager:
    """Evaluates alert rules against change-sets and dispatches alerts."""

    def __init__(
        self,
        rules: Optional[List[AlertRule]] = None,
        notifiers: Optional[List[Notifier]] = None,
    ):
        self.rules = rules or []
        self.notifiers = notifiers if notifiers is not None else [LogNotifier()]

    @classmethod
    def from_config(cls, config: Optional[Dict]) -> "AlertManager":
        config = config or {}
        rules = [AlertRule.from_dict(r) for r in config.get("rules", [])]
        return cls(rules)

    def evaluate(
        self,
        domain_id: str,
        changes: Sequence[ChangeEntry],
        now: Optional[datetime] = None,
    ) -> List[Alert]:
        """
        Fire every rule matching the change-set of one domain.

        Args:
            domain_id: Domain the changes belong to
            changes: Change-set returned by ``reconcile``
            now: Evaluation time, defaults to the current time

        Returns:
            Alerts that fired, with their notification counts
        """
        now = now or datetime.now()
        alerts = []

        for rule in self.rules:
            if not rule.enabled:
                continue

            matched = rule.matching_changes(domain_id, changes)
            if not matched:
                continue

            if rule.in_cooldown(now):
                logger.info(f"Alert rule '{rule.name}' is in cooldown, skipping")
                continue

            alert = self._build_alert(rule, domain_id, matched, now)
            self._dispatch(alert)
            rule.last_triggered_at = now
            alerts.append(alert)

        return alerts

    def _build_alert(
        self, rule: AlertRule, domain_id: str, matched: List[ChangeEntry], now: datetime
    ) -> Alert:
        counts: Dict[str, int] = {}
        for change in matched:
            counts[change.change_type.value] = counts.get(change.change_type.value, 0) + 1
        summary = ", ".join(f"{count} {name}" for name, count in counts.items())

        return Alert(
            rule_id=rule.id,
            severity=change_severity(matched),
            title=f"[{rule.name}] DNS records changed on {domain_id}: {summary}",
            message="\n".join(change.describe() for change in matched),
            domain_id=domain_id,
            changes=matched,
            triggered_at=now,
        )

    def _dispatch(self, alert: Alert) -> None:
        for notifier in self.notifiers:
            try:
                delivered = notifier.send(alert.title, alert.message)
            except Exception as e:
                logger.error(f"Notifier {type(notifier).__name__} failed: {e}")
                delivered = False

            if delivered:
                alert.notifications_sent += 1
            else:
                alert.notifications_failed += 1
