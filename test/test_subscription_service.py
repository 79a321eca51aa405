# test/test_subscription_service.py

"""
Tests for services/subscription_service.py

resolve_plan() creates a `free` record on first sight and must never
end up with two rows for one email, even when two first lookups race.
update_plan() surfaces store failures to the caller.
"""

import threading

import pytest

from services.errors import PersistenceError, ValidationError
from services.subscription_service import TABLE, resolve_plan, update_plan


def _rows_for(store, email):
    return [r for r in store.rows(TABLE) if r["email"] == email]


def test_resolve_plan_creates_free_record_once(fake_store):
    assert resolve_plan("new@example.com", store=fake_store) == "free"
    assert resolve_plan("new@example.com", store=fake_store) == "free"

    rows = _rows_for(fake_store, "new@example.com")
    assert len(rows) == 1
    assert rows[0]["plan"] == "free"
    assert rows[0]["subscription_status"] == "active"


def test_resolve_plan_racing_first_lookups_leave_one_record(fake_store):
    # Both threads read "absent" before either one writes.
    barrier = threading.Barrier(2, timeout=5)
    fake_store.before_get = barrier.wait

    results = []

    def lookup():
        results.append(resolve_plan("race@example.com", store=fake_store))

    threads = [threading.Thread(target=lookup) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == ["free", "free"]
    assert len(_rows_for(fake_store, "race@example.com")) == 1


def test_resolve_plan_returns_stored_plan(fake_store):
    fake_store.rows(TABLE).append({"email": "pro@example.com", "plan": "pro"})
    assert resolve_plan("pro@example.com", store=fake_store) == "pro"
    assert "upsert" not in fake_store.calls


def test_resolve_plan_normalizes_email(fake_store):
    fake_store.rows(TABLE).append({"email": "pro@example.com", "plan": "studio"})
    assert resolve_plan("  Pro@Example.com ", store=fake_store) == "studio"


def test_resolve_plan_read_failure_degrades_to_free(fake_store):
    fake_store.fail.add("get")
    assert resolve_plan("down@example.com", store=fake_store) == "free"
    assert "upsert" not in fake_store.calls


def test_resolve_plan_rejects_empty_identifier_without_remote_call(fake_store):
    with pytest.raises(ValidationError):
        resolve_plan("   ", store=fake_store)
    assert fake_store.calls == []


def test_update_plan_upserts_plan_and_timestamp(fake_store):
    update_plan("buyer@example.com", "pro", store=fake_store)
    update_plan("buyer@example.com", "studio", store=fake_store)

    rows = _rows_for(fake_store, "buyer@example.com")
    assert len(rows) == 1
    assert rows[0]["plan"] == "studio"
    assert rows[0]["updated_at"].endswith("Z")
    assert resolve_plan("buyer@example.com", store=fake_store) == "studio"


def test_update_plan_propagates_persistence_error(fake_store):
    fake_store.fail.add("upsert")
    with pytest.raises(PersistenceError):
        update_plan("buyer@example.com", "pro", store=fake_store)
