"""
Step definitions for DNS Record Sync integration tests.
"""

from behave import given, then, when

from dns_record_sync.core.changes import ChangeType
from dns_record_sync.core.records import CanonicalRecord
from dns_record_sync.core.sync_manager import SyncManager
from dns_record_sync.providers.base_provider import RecordInput


def _provider(context):
    return context.sync_manager.dns_client.provider


def _last_result(context):
    assert context.results, "No sync has been run"
    return context.results[-1]


@given("the record sync is configured with the mock provider")
def step_impl(context):
    """Configure the sync manager with the mock provider and a JSON store."""
    context.sync_manager = SyncManager(context.test_config)
    assert context.sync_manager.dns_client.name == "mock"


@given("the mock provider only knows configured domains")
def step_impl(context):
    context.test_config["dns_providers"]["mock"]["strict"] = True
    context.sync_manager = SyncManager(context.test_config)


@given("the domain has been synced")
def step_impl(context):
    result = context.sync_manager.sync_domain(context.test_domain)
    assert result.success, result.error


@given('record "{remote_id}" is changed on the provider to content "{content}" and ttl {ttl:d}')
def step_impl(context, remote_id, content, ttl):
    """Simulate a manual edit made in the provider's dashboard."""
    zone = _provider(context).domains[context.test_domain]
    current = zone[remote_id]
    _provider(context).put_record(
        context.test_domain,
        CanonicalRecord(
            remote_id=remote_id,
            type=current.type,
            name=current.name,
            content=content,
            ttl=ttl,
            priority=current.priority,
            proxied=current.proxied,
        ),
    )


@given('record "{remote_id}" is deleted on the provider')
def step_impl(context, remote_id):
    _provider(context).delete_record(context.test_domain, remote_id)


@when("I sync the domain")
def step_impl(context):
    context.results.append(context.sync_manager.sync_domain(context.test_domain))


@when('I sync the domain "{domain_id}"')
def step_impl(context, domain_id):
    context.results.append(context.sync_manager.sync_domain(domain_id))


@when("I sync the domain in dry run mode with an output file")
def step_impl(context):
    context.output_file = context.test_data_dir / "dry_run_output.txt"
    context.results.append(
        context.sync_manager.sync_domain(
            context.test_domain, dry_run=True, output_file=str(context.output_file)
        )
    )


@when('I create an "{record_type}" record "{name}" with content "{content}"')
def step_impl(context, record_type, name, content):
    context.created = context.sync_manager.create_record(
        context.test_domain,
        RecordInput(type=record_type, name=name, content=content, ttl=300),
    )


@then("the sync should succeed")
def step_impl(context):
    result = _last_result(context)
    assert result.success, f"Sync failed: {result.error}"


@then('the sync should fail with "{message}"')
def step_impl(context, message):
    result = _last_result(context)
    assert not result.success, "Sync should have failed"
    assert message in result.error, f"Expected '{message}' in '{result.error}'"


@then('the change-set should contain {count:d} "{change_type}" changes')
def step_impl(context, count, change_type):
    changes = _last_result(context).changes
    selected = [c for c in changes if c.change_type is ChangeType(change_type)]
    assert len(selected) == count, f"Expected {count} {change_type}, got {len(selected)}"
    assert len(changes) == count, f"Unexpected extra changes: {changes}"


@then("the change-set should be empty")
def step_impl(context):
    changes = _last_result(context).changes
    assert changes == [], f"Expected no changes, got {[c.describe() for c in changes]}"


@then('the modified record "{remote_id}" should report fields "{fields}"')
def step_impl(context, remote_id, fields):
    change = next(c for c in _last_result(context).changes if c.remote_id == remote_id)
    expected = tuple(f.strip() for f in fields.split(","))
    assert change.changed_fields == expected, f"Got {change.changed_fields}"


@then('the local copy of record "{remote_id}" should have content "{content}"')
def step_impl(context, remote_id, content):
    records = context.sync_manager.store.list_records(context.test_domain)
    record = next(r for r in records if r.remote_id == remote_id)
    assert record.content == content, f"Got {record.content}"


@then("the local store should hold {count:d} records")
def step_impl(context, count):
    records = context.sync_manager.store.list_records(context.test_domain)
    assert len(records) == count, f"Expected {count} records, got {len(records)}"


@then("the change history should hold {count:d} entries")
def step_impl(context, count):
    total = context.sync_manager.store.list_changes(domain_id=context.test_domain).total
    assert total == count, f"Expected {count} history entries, got {total}"


@then('{count:d} "{severity}" alert should have fired')
def step_impl(context, count, severity):
    alerts = _last_result(context).alerts
    assert len(alerts) == count, f"Expected {count} alerts, got {len(alerts)}"
    assert all(a.severity == severity for a in alerts)


@then('the dry run output should list "{heading}"')
def step_impl(context, heading):
    assert context.output_file.exists(), "Dry run output file was not written"
    assert heading in context.output_file.read_text()
