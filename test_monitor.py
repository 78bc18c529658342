#!/usr/bin/env python3
"""
Test suite for the DNS record monitor

Resolution is served by a mocked resolver, so these tests never reach
the network.
"""

import unittest
from datetime import datetime, timedelta
from unittest.mock import Mock

import dns.exception
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import dns.resolver

from dns_record_sync.core.changes import ChangeType
from dns_record_sync.core.monitor import (
    STATUS_FAILED,
    STATUS_PARTIAL,
    STATUS_SUCCESS,
    DNSChecker,
    MonitorManager,
    full_dns_name,
)
from dns_record_sync.core.reconciler import reconcile
from dns_record_sync.core.records import CanonicalRecord, LocalRecord

DOMAIN = "example.com"


def answer(rtype, *texts):
    return [
        dns.rdata.from_text(dns.rdataclass.IN, dns.rdatatype.from_text(rtype), text)
        for text in texts
    ]


def record(local_id, rtype="A", name="www", content="192.0.2.10", priority=None):
    return LocalRecord(
        local_id, f"r-{local_id}", rtype, name, content, 300, priority=priority, domain_id=DOMAIN
    )


class TestFullDNSName(unittest.TestCase):
    def test_names(self):
        cases = [
            ("@", DOMAIN),
            ("", DOMAIN),
            (DOMAIN, DOMAIN),
            ("www", "www.example.com"),
            ("api.example.com", "api.example.com"),
            ("_dmarc", "_dmarc.example.com"),
        ]
        for name, expected in cases:
            with self.subTest(name=name):
                self.assertEqual(full_dns_name(name, DOMAIN), expected)


class TestDNSChecker(unittest.TestCase):
    """Test single record checks against a mocked resolver."""

    def setUp(self):
        self.resolver = Mock()
        self.checker = DNSChecker(resolver=self.resolver, timeout=2.0)

    def test_matching_answer(self):
        self.resolver.resolve.return_value = answer("A", "192.0.2.10", "192.0.2.11")

        result = self.checker.check_record("A", "www", DOMAIN, "192.0.2.10")

        self.resolver.resolve.assert_called_once_with("www.example.com", "A", lifetime=2.0)
        self.assertEqual(result.status, STATUS_SUCCESS)
        self.assertTrue(result.is_available)
        self.assertTrue(result.is_correct)
        self.assertEqual(result.actual_value, "192.0.2.10, 192.0.2.11")
        self.assertIsNotNone(result.latency_ms)
        self.assertIsNone(result.error_message)

    def test_unexpected_answer_is_partial(self):
        self.resolver.resolve.return_value = answer("A", "192.0.2.99")

        result = self.checker.check_record("A", "www", DOMAIN, "192.0.2.10")

        self.assertEqual(result.status, STATUS_PARTIAL)
        self.assertTrue(result.is_available)
        self.assertFalse(result.is_correct)
        self.assertEqual(result.actual_value, "192.0.2.99")

    def test_values_are_normalized_per_type(self):
        cases = [
            ("MX", "10 Mail.Example.com.", "mail.example.com"),
            ("SRV", "10 5 5060 sip.example.com.", "sip.example.com"),
            ("TXT", '"v=spf1" " -all"', "v=spf1 -all"),
            ("CNAME", "www.example.com.", "www.example.com."),
        ]
        for rtype, text, expected in cases:
            with self.subTest(rtype=rtype):
                self.resolver.resolve.return_value = answer(rtype, text)
                result = self.checker.check_record(rtype, "@", DOMAIN, expected)
                self.assertEqual(result.status, STATUS_SUCCESS)
                self.assertTrue(result.is_correct)

    def test_missing_record(self):
        for error in (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            with self.subTest(error=error.__name__):
                self.resolver.resolve.side_effect = error

                result = self.checker.check_record("A", "gone", DOMAIN, "192.0.2.10")

                self.assertEqual(result.status, STATUS_FAILED)
                self.assertFalse(result.is_available)
                self.assertEqual(result.error_message, "DNS record not found: gone.example.com")
                self.assertIsNone(result.latency_ms)

    def test_timeout(self):
        self.resolver.resolve.side_effect = dns.exception.Timeout

        result = self.checker.check_record("A", "www", DOMAIN, "192.0.2.10")

        self.assertEqual(result.status, STATUS_FAILED)
        self.assertFalse(result.is_available)
        self.assertTrue(result.error_message)

    def test_optional_checks(self):
        self.resolver.resolve.return_value = answer("A", "192.0.2.99")

        result = self.checker.check_record(
            "A", "www", DOMAIN, "192.0.2.10", check_latency=False, check_correctness=False
        )

        self.assertEqual(result.status, STATUS_SUCCESS)
        self.assertIsNone(result.is_correct)
        self.assertIsNone(result.latency_ms)


class TestMonitorManager(unittest.TestCase):
    """Test monitor tasks, scheduling, results and stats."""

    def setUp(self):
        self.resolver = Mock()
        self.resolver.resolve.return_value = answer("A", "192.0.2.10")
        self.monitor = MonitorManager(DNSChecker(resolver=self.resolver), check_interval=60)
        self.records = [record("l1"), record("l2", name="api", content="192.0.2.20")]

    def test_create_task(self):
        task = self.monitor.create_task(self.records[0], check_correctness=False)

        self.assertEqual(task.domain_id, DOMAIN)
        self.assertEqual(task.local_record_id, "l1")
        self.assertEqual(task.expected_value, "192.0.2.10")
        self.assertEqual(task.check_interval, 60)
        self.assertFalse(task.check_correctness)
        self.assertTrue(task.enabled)

        with self.assertRaises(ValueError):
            self.monitor.create_task(self.records[0])

    def test_available_records(self):
        self.monitor.create_task(self.records[0])

        self.assertEqual(self.monitor.available_records(self.records), [self.records[1]])

    def test_delete_task(self):
        task = self.monitor.create_task(self.records[0])
        self.monitor.delete_task(task.id)

        self.assertEqual(self.monitor.list_tasks(), [])
        with self.assertRaises(KeyError):
            self.monitor.delete_task(task.id)

    def test_run_due(self):
        now = datetime(2024, 5, 1, 12, 0, 0)
        first = self.monitor.create_task(self.records[0])
        second = self.monitor.create_task(self.records[1])
        disabled = self.monitor.create_task(record("l3", name="old"), enabled=False)

        results = self.monitor.run_due(now)

        self.assertEqual({r.task_id for r in results}, {first.id, second.id})
        self.assertEqual(first.last_check_at, now)
        self.assertEqual(first.next_check_at, now + timedelta(seconds=60))
        self.assertIsNone(disabled.last_check_at)

        self.assertEqual(self.monitor.run_due(now + timedelta(seconds=30)), [])
        self.assertEqual(len(self.monitor.run_due(now + timedelta(seconds=60))), 2)

    def test_results_and_stats(self):
        first = self.monitor.create_task(self.records[0])
        self.monitor.create_task(self.records[1])
        self.monitor.create_task(record("l3", name="old"), enabled=False)

        older = datetime.now() - timedelta(minutes=10)
        self.monitor.run_task(first, older)
        self.monitor.run_due(datetime.now())

        results = self.monitor.get_results(task_id=first.id)
        self.assertEqual(len(results), 2)
        self.assertGreater(results[0].checked_at, results[1].checked_at)
        self.assertEqual(len(self.monitor.get_results(limit=1)), 1)
        self.assertEqual(self.monitor.get_results(domain_id="other.com"), [])

        stats = self.monitor.get_stats()
        self.assertEqual(stats["total_tasks"], 3)
        self.assertEqual(stats["enabled_tasks"], 2)
        self.assertEqual(stats["total_checks"], 3)
        # l2 expects 192.0.2.20 but resolves to 192.0.2.10
        self.assertEqual(stats["success_rate"], 67)
        self.assertGreaterEqual(stats["avg_latency"], 0)

    def test_stats_without_checks(self):
        self.assertEqual(
            self.monitor.get_stats(),
            {
                "total_tasks": 0,
                "enabled_tasks": 0,
                "total_checks": 0,
                "success_rate": 0,
                "avg_latency": 0,
            },
        )

    def test_handle_changes(self):
        www = self.monitor.create_task(self.records[0])
        self.monitor.create_task(self.records[1])

        changes = reconcile(
            self.records,
            [CanonicalRecord("r-l1", "CNAME", "www", "edge.example.net", 300)],
        )
        self.assertEqual(
            [c.change_type for c in changes], [ChangeType.MODIFIED, ChangeType.DELETED]
        )

        self.monitor.handle_changes(DOMAIN, changes)

        self.assertEqual(self.monitor.list_tasks(), [www])
        self.assertEqual(www.record_type, "CNAME")
        self.assertEqual(www.expected_value, "edge.example.net")

    def test_handle_changes_ignores_other_domains(self):
        self.monitor.create_task(self.records[0])
        changes = reconcile(self.records, [])

        self.monitor.handle_changes("other.com", changes)

        self.assertEqual(len(self.monitor.list_tasks()), 1)

    def test_from_config(self):
        monitor = MonitorManager.from_config(
            {"nameservers": ["192.0.2.53"], "timeout": 3, "concurrency": 2, "check_interval": 120}
        )

        self.assertEqual(monitor.concurrency, 2)
        self.assertEqual(monitor.check_interval, 120)
        self.assertEqual(monitor.checker.timeout, 3.0)
        self.assertEqual(monitor.checker.resolver.nameservers, ["192.0.2.53"])


if __name__ == "__main__":
    unittest.main()
