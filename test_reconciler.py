#!/usr/bin/env python3
"""
Test suite for the reconciliation engine

Covers field normalization, change classification, ordering, duplicate
rejection, change-set serialization and randomized properties over
generated snapshots.
"""

import json
import random
import unittest
from concurrent.futures import ThreadPoolExecutor

from dns_record_sync.core.changes import (
    ChangeEntry,
    ChangeType,
    changes_from_json,
    changes_to_json,
    summarize_changes,
)
from dns_record_sync.core.reconciler import (
    DuplicateRemoteIdError,
    changed_fields,
    reconcile,
    values_equal,
)
from dns_record_sync.core.records import CanonicalRecord, LocalRecord, RecordValue
from dns_record_sync.store import MemoryStore

DOMAIN = "example.com"


def local(remote_id, local_id=None, **fields):
    values = {
        "type": "A",
        "name": "www",
        "content": "1.1.1.1",
        "ttl": 300,
        "priority": None,
        "proxied": False,
        "domain_id": DOMAIN,
    }
    values.update(fields)
    return LocalRecord(local_id=local_id or f"local-{remote_id}", remote_id=remote_id, **values)


def remote(remote_id, **fields):
    values = {"type": "A", "name": "www", "content": "1.1.1.1", "ttl": 300}
    values.update(fields)
    return CanonicalRecord(remote_id=remote_id, **values)


class TestValuesEqual(unittest.TestCase):
    """Test the normalized equality predicate."""

    def test_identical_values(self):
        self.assertTrue(values_equal(local("r1"), remote("r1", priority=None, proxied=False)))

    def test_missing_priority_equals_null_priority(self):
        self.assertTrue(values_equal(local("r1", priority=None), remote("r1")))

    def test_null_priority_differs_from_zero(self):
        self.assertFalse(values_equal(local("r1", priority=None), remote("r1", priority=0)))
        self.assertFalse(values_equal(local("r1", priority=0), remote("r1")))

    def test_zero_priority_on_both_sides(self):
        self.assertTrue(values_equal(local("r1", priority=0), remote("r1", priority=0)))

    def test_missing_proxied_equals_false(self):
        self.assertTrue(values_equal(local("r1", proxied=False), remote("r1")))
        self.assertTrue(values_equal(local("r1", proxied=None), remote("r1", proxied=False)))

    def test_proxied_true_differs(self):
        self.assertFalse(values_equal(local("r1"), remote("r1", proxied=True)))

    def test_type_and_name_are_not_compared(self):
        self.assertTrue(values_equal(local("r1"), remote("r1", type="CNAME", name="other")))


class TestChangedFields(unittest.TestCase):
    """Test field-level change detection."""

    def test_only_ttl(self):
        self.assertEqual(changed_fields(local("r1"), remote("r1", ttl=600)), ["ttl"])

    def test_content_and_proxied_in_fixed_order(self):
        result = changed_fields(local("r1"), remote("r1", proxied=True, content="2.2.2.2"))
        self.assertEqual(result, ["content", "proxied"])

    def test_all_fields(self):
        result = changed_fields(
            local("r1", type="MX", priority=10),
            remote("r1", type="MX", content="mx2", ttl=60, priority=20, proxied=True),
        )
        self.assertEqual(result, ["content", "ttl", "priority", "proxied"])

    def test_no_fields_when_equal(self):
        self.assertEqual(changed_fields(local("r1"), remote("r1")), [])

    def test_uses_same_normalization(self):
        self.assertEqual(changed_fields(local("r1", proxied=None), remote("r1")), [])
        self.assertEqual(changed_fields(local("r1"), remote("r1", priority=0)), ["priority"])


class TestReconcile(unittest.TestCase):
    """Test change-set computation."""

    def test_modified_content(self):
        local_records = [local("r1", content="1.1.1.1")]
        remote_records = [remote("r1", content="2.2.2.2", priority=None, proxied=False)]

        changes = reconcile(local_records, remote_records)

        self.assertEqual(len(changes), 1)
        change = changes[0]
        self.assertEqual(change.change_type, ChangeType.MODIFIED)
        self.assertEqual(change.changed_fields, ("content",))
        self.assertEqual(change.previous_value.content, "1.1.1.1")
        self.assertEqual(change.current_value.content, "2.2.2.2")
        self.assertEqual(change.local_record_id, "local-r1")

    def test_added_record_normalizes_optional_fields(self):
        changes = reconcile(
            [], [remote("r2", type="TXT", name="@", content="v=spf1 -all", ttl=3600)]
        )

        self.assertEqual(len(changes), 1)
        change = changes[0]
        self.assertEqual(change.change_type, ChangeType.ADDED)
        self.assertEqual(change.remote_id, "r2")
        self.assertEqual(change.record_type, "TXT")
        self.assertEqual(change.record_name, "@")
        self.assertIsNone(change.previous_value)
        self.assertIsNone(change.current_value.priority)
        self.assertFalse(change.current_value.proxied)
        self.assertIsNone(change.changed_fields)
        self.assertIsNone(change.local_record_id)

    def test_deleted_record(self):
        changes = reconcile([local("r1", type="CNAME", name="old")], [])

        self.assertEqual(len(changes), 1)
        change = changes[0]
        self.assertEqual(change.change_type, ChangeType.DELETED)
        self.assertEqual(change.record_type, "CNAME")
        self.assertEqual(change.record_name, "old")
        self.assertEqual(change.previous_value, RecordValue("1.1.1.1", 300, None, False))
        self.assertIsNone(change.current_value)
        self.assertEqual(change.local_record_id, "local-r1")

    def test_added_before_deleted(self):
        changes = reconcile([local("a")], [remote("b")])

        self.assertEqual(
            [(c.change_type, c.remote_id) for c in changes],
            [(ChangeType.ADDED, "b"), (ChangeType.DELETED, "a")],
        )

    def test_deletions_trail_in_local_order(self):
        local_records = [local("d1"), local("m1"), local("d2")]
        remote_records = [remote("a1"), remote("m1", ttl=60), remote("a2")]

        changes = reconcile(local_records, remote_records)

        self.assertEqual(
            [(c.change_type.value, c.remote_id) for c in changes],
            [
                ("added", "a1"),
                ("modified", "m1"),
                ("added", "a2"),
                ("deleted", "d1"),
                ("deleted", "d2"),
            ],
        )

    def test_unchanged_records_are_not_reported(self):
        changes = reconcile([local("r1"), local("r2")], [remote("r2"), remote("r1")])
        self.assertEqual(changes, [])

    def test_empty_inputs(self):
        self.assertEqual(reconcile([], []), [])

    def test_modified_entry_carries_remote_identity(self):
        changes = reconcile(
            [local("r1", type="A", name="www")],
            [remote("r1", type="AAAA", name="web", content="::1")],
        )

        self.assertEqual(changes[0].record_type, "AAAA")
        self.assertEqual(changes[0].record_name, "web")

    def test_type_change_alone_is_not_a_modification(self):
        changes = reconcile([local("r1", name="www")], [remote("r1", name="renamed")])
        self.assertEqual(changes, [])

    def test_accepts_generators(self):
        changes = reconcile((r for r in [local("a")]), (r for r in [remote("b")]))
        self.assertEqual(len(changes), 2)

    def test_inputs_are_not_mutated(self):
        local_records = [local("r1"), local("r2")]
        remote_records = [remote("r1", ttl=1), remote("r3")]
        local_copy = list(local_records)
        remote_copy = list(remote_records)

        reconcile(local_records, remote_records)

        self.assertEqual(local_records, local_copy)
        self.assertEqual(remote_records, remote_copy)

    def test_deterministic(self):
        local_records = [local("r1"), local("r2", ttl=5)]
        remote_records = [remote("r2"), remote("r3")]

        self.assertEqual(
            reconcile(local_records, remote_records),
            reconcile(local_records, remote_records),
        )

    def test_duplicate_remote_ids_rejected(self):
        with self.assertRaises(DuplicateRemoteIdError) as ctx:
            reconcile([], [remote("r1"), remote("r1", content="2.2.2.2")])
        self.assertEqual(ctx.exception.remote_id, "r1")
        self.assertEqual(ctx.exception.side, "remote")

        with self.assertRaises(DuplicateRemoteIdError) as ctx:
            reconcile([local("r1", local_id="x"), local("r1", local_id="y")], [])
        self.assertEqual(ctx.exception.side, "local")

    def test_duplicate_error_is_value_error(self):
        with self.assertRaises(ValueError):
            reconcile([local("r1"), local("r1")], [])


class TestChangeSerialization(unittest.TestCase):
    """Test change-set serialization helpers."""

    def setUp(self):
        self.changes = reconcile(
            [local("r1"), local("r9", type="MX", priority=10)],
            [remote("r1", ttl=600, proxied=True), remote("r2")],
        )

    def test_to_dict(self):
        data = self.changes[0].to_dict()

        self.assertEqual(data["change_type"], "modified")
        self.assertEqual(data["changed_fields"], ["ttl", "proxied"])
        self.assertEqual(
            data["previous_value"],
            {"content": "1.1.1.1", "ttl": 300, "priority": None, "proxied": False},
        )
        self.assertEqual(data["current_value"]["proxied"], True)

    def test_json_preserves_order_and_values(self):
        text = changes_to_json(self.changes)

        self.assertEqual(
            [item["change_type"] for item in json.loads(text)],
            ["modified", "added", "deleted"],
        )
        self.assertEqual(changes_from_json(text), self.changes)

    def test_changes_from_json_rejects_non_list(self):
        with self.assertRaises(ValueError):
            changes_from_json('{"change_type": "added"}')

    def test_summarize(self):
        self.assertEqual(
            summarize_changes(self.changes),
            {"added": 1, "modified": 1, "deleted": 1, "total_changes": 3},
        )

    def test_describe(self):
        self.assertEqual(
            self.changes[0].describe(), "~ A www [ttl: 300 -> 600, proxied: False -> True]"
        )
        self.assertEqual(self.changes[1].describe(), "+ A www -> 1.1.1.1")
        self.assertEqual(self.changes[2].describe(), "- MX www (1.1.1.1)")

    def test_change_type_is_string_enum(self):
        entry = ChangeEntry.from_dict(self.changes[1].to_dict())
        self.assertEqual(entry.change_type, "added")


class TestReconcileProperties(unittest.TestCase):
    """Randomized properties over generated snapshots."""

    ITERATIONS = 200
    CONTENTS = ["1.1.1.1", "2.2.2.2", "mail.example.com", "v=spf1 -all"]
    TTLS = [60, 300, 3600]
    PRIORITIES = [None, 0, 10]
    PROXIED = [None, False, True]

    def setUp(self):
        self.rng = random.Random(20240501)

    def _values(self):
        return {
            "content": self.rng.choice(self.CONTENTS),
            "ttl": self.rng.choice(self.TTLS),
            "priority": self.rng.choice(self.PRIORITIES),
            "proxied": self.rng.choice(self.PROXIED),
        }

    def _snapshots(self):
        pool = [f"r{i}" for i in range(20)]
        local_ids = self.rng.sample(pool, self.rng.randint(0, len(pool)))
        remote_ids = self.rng.sample(pool, self.rng.randint(0, len(pool)))

        local_records = [local(rid, **self._values()) for rid in local_ids]
        remote_records = []
        for rid in remote_ids:
            values = self._values()
            # Keep a share of matched records unchanged
            if rid in local_ids and self.rng.random() < 0.4:
                match = next(r for r in local_records if r.remote_id == rid)
                values = {
                    "content": match.content,
                    "ttl": match.ttl,
                    "priority": match.priority,
                    "proxied": match.proxied,
                }
            remote_records.append(remote(rid, **values))
        return local_records, remote_records

    @staticmethod
    def _plain(record):
        return (record.content, record.ttl, record.priority, bool(record.proxied))

    def test_totality_and_classification(self):
        for i in range(self.ITERATIONS):
            local_records, remote_records = self._snapshots()
            with self.subTest(iteration=i):
                changes = reconcile(local_records, remote_records)
                local_by_id = {r.remote_id: r for r in local_records}
                remote_ids = {r.remote_id for r in remote_records}

                expected = []
                for r in remote_records:
                    match = local_by_id.get(r.remote_id)
                    if match is None:
                        expected.append(("added", r.remote_id))
                    elif self._plain(match) != self._plain(r):
                        expected.append(("modified", r.remote_id))
                for r in local_records:
                    if r.remote_id not in remote_ids:
                        expected.append(("deleted", r.remote_id))

                self.assertEqual(
                    [(c.change_type.value, c.remote_id) for c in changes], expected
                )

    def test_deletions_always_trail(self):
        for i in range(self.ITERATIONS):
            changes = reconcile(*self._snapshots())
            with self.subTest(iteration=i):
                kinds = [c.change_type for c in changes]
                first_delete = (
                    kinds.index(ChangeType.DELETED) if ChangeType.DELETED in kinds else len(kinds)
                )
                self.assertTrue(
                    all(k is ChangeType.DELETED for k in kinds[first_delete:])
                )

    def test_changed_fields_are_exact(self):
        for i in range(self.ITERATIONS):
            local_records, remote_records = self._snapshots()
            local_by_id = {r.remote_id: r for r in local_records}
            with self.subTest(iteration=i):
                for change in reconcile(local_records, remote_records):
                    if change.change_type is not ChangeType.MODIFIED:
                        continue
                    before = self._plain(local_by_id[change.remote_id])
                    after = self._plain(change.current_value)
                    expected = [
                        name
                        for name, a, b in zip(
                            ("content", "ttl", "priority", "proxied"), before, after
                        )
                        if a != b
                    ]
                    self.assertTrue(expected)
                    self.assertEqual(list(change.changed_fields), expected)

    def test_equal_snapshots_yield_no_changes(self):
        for i in range(self.ITERATIONS):
            local_records, _ = self._snapshots()
            mirrored = [
                CanonicalRecord(
                    remote_id=r.remote_id,
                    type=r.type,
                    name=r.name,
                    content=r.content,
                    ttl=r.ttl,
                    priority=r.priority,
                    proxied=r.proxied,
                )
                for r in local_records
            ]
            with self.subTest(iteration=i):
                self.assertEqual(reconcile(local_records, mirrored), [])

    def test_applying_changes_reaches_fixed_point(self):
        for i in range(self.ITERATIONS):
            local_records, remote_records = self._snapshots()
            store = MemoryStore(local_records)
            with self.subTest(iteration=i):
                changes = reconcile(store.list_records(DOMAIN), remote_records)
                applied = store.apply_changes(DOMAIN, changes)

                self.assertEqual(applied, len(changes))
                self.assertEqual(reconcile(store.list_records(DOMAIN), remote_records), [])
                self.assertEqual(len(store.list_records(DOMAIN)), len(remote_records))

    def test_concurrent_calls_match_sequential(self):
        pairs = [self._snapshots() for _ in range(self.ITERATIONS)]
        expected = [reconcile(*pair) for pair in pairs]

        with ThreadPoolExecutor(max_workers=8) as executor:
            futures = [executor.submit(reconcile, *pair) for pair in pairs]
            actual = [future.result() for future in futures]

        for i, (got, want) in enumerate(zip(actual, expected)):
            with self.subTest(iteration=i):
                self.assertEqual(got, want)


if __name__ == "__main__":
    unittest.main(verbosity=2)
