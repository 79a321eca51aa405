# test/test_profile_service.py

"""
Tests for services/profile_service.py and the profile field limits in
logic/validation.py.
"""

import pytest

from auth.session import Identity
from services.errors import PersistenceError, ValidationError
from services.profile_service import (
    TABLE,
    default_profile,
    get_user_profile,
    upsert_user_profile,
)


def test_lookup_by_email_then_falls_back_to_user_id(fake_store):
    fake_store.rows(TABLE).append(
        {"user_id": "sess-1", "email": None, "display_name": "Legacy", "social_links": None}
    )

    assert get_user_profile("nobody@example.com", store=fake_store) is None

    profile = get_user_profile("sess-1", use_email=False, store=fake_store)
    assert profile.display_name == "Legacy"
    assert profile.social_links == []


def test_lookup_read_failure_is_none(fake_store):
    fake_store.fail.add("get")
    assert get_user_profile("a@example.com", store=fake_store) is None


def test_default_profile_is_built_from_identity():
    profile = default_profile(Identity(email="a@example.com", user_id="sess"), name="Ana")
    assert profile.email == "a@example.com"
    assert profile.user_id == "sess"
    assert profile.display_name == "Ana"
    assert profile.social_links == []


def test_upsert_keys_on_email_and_cleans_fields(fake_store):
    upsert_user_profile("A@Example.com", {"display_name": "Ana"}, user_id="sess-1", store=fake_store)
    profile = upsert_user_profile(
        "a@example.com",
        {"display_name": "Ana B", "bio": "  ", "social_links": ["https://x.com/ana", ""]},
        user_id="sess-2",
        store=fake_store,
    )

    rows = [r for r in fake_store.rows(TABLE) if r["email"] == "a@example.com"]
    assert len(rows) == 1
    assert profile.display_name == "Ana B"
    assert profile.bio is None
    assert profile.social_links == ["https://x.com/ana"]
    assert profile.user_id == "sess-2"
    assert profile.last_updated_at.endswith("Z")


def test_upsert_ignores_non_editable_fields(fake_store):
    profile = upsert_user_profile(
        "a@example.com", {"member_since": "1999-01-01", "title": "Maker"}, store=fake_store
    )
    assert profile.member_since is None
    assert profile.title == "Maker"


def test_upsert_requires_email(fake_store):
    with pytest.raises(ValidationError):
        upsert_user_profile(None, {"display_name": "x"}, store=fake_store)
    assert fake_store.calls == []


@pytest.mark.parametrize(
    "data",
    [
        {"display_name": "x" * 51},
        {"title": "x" * 101},
        {"bio": "x" * 501},
        {"social_links": [f"https://site{i}.com" for i in range(6)]},
    ],
)
def test_upsert_rejects_fields_over_limit(fake_store, data):
    with pytest.raises(ValidationError):
        upsert_user_profile("a@example.com", data, store=fake_store)


def test_upsert_propagates_store_failure(fake_store):
    fake_store.fail.add("upsert")
    with pytest.raises(PersistenceError):
        upsert_user_profile("a@example.com", {"display_name": "Ana"}, store=fake_store)
