# services/subscription_service.py

"""
Persistent side of the plan hierarchy: which plan is a user on?

Records live in the `user_subscriptions` table, one row per account
email. A row is created lazily the first time we look a user up, and
only ever changed through update_plan().
"""

import logging
from datetime import datetime
from typing import Optional

from billing.feature_flags import FREE
from data.record_store import RecordStore, get_record_store
from services.errors import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

TABLE = "user_subscriptions"
CONFLICT_KEY = "email"


def _utc_iso_z() -> str:
    return datetime.utcnow().isoformat() + "Z"


def _require_identifier(identifier: str) -> str:
    identifier = (identifier or "").strip().lower()
    if not identifier:
        raise ValidationError("An account email is required.")
    return identifier


def resolve_plan(identifier: str, store: Optional[RecordStore] = None) -> str:
    """
    Return the user's plan, creating a `free` record if none exists.

    Creation is an upsert on the email with duplicates ignored, so two
    near-simultaneous first lookups end up with a single row instead of
    one of them failing on the unique key.

    Store failures degrade to `free`; they are logged, not raised.
    """
    identifier = _require_identifier(identifier)
    store = store or get_record_store()

    try:
        record = store.get(TABLE, {CONFLICT_KEY: identifier}, columns="plan")
    except PersistenceError as e:
        logger.warning("could not read plan for %s, using free: %s", identifier, e)
        return FREE

    if record:
        return record.get("plan") or FREE

    try:
        store.upsert(
            TABLE,
            {
                CONFLICT_KEY: identifier,
                "plan": FREE,
                "subscription_status": "active",
                "updated_at": _utc_iso_z(),
            },
            on_conflict=CONFLICT_KEY,
            ignore_duplicates=True,
        )
    except PersistenceError as e:
        logger.warning("could not create free plan record for %s: %s", identifier, e)

    return FREE


def update_plan(identifier: str, new_plan: str, store: Optional[RecordStore] = None) -> None:
    """
    Set the user's plan. Raises PersistenceError if the store is down or
    rejects the write; nothing is retried.
    """
    identifier = _require_identifier(identifier)
    store = store or get_record_store()

    store.upsert(
        TABLE,
        {
            CONFLICT_KEY: identifier,
            "plan": new_plan,
            "subscription_status": "active",
            "updated_at": _utc_iso_z(),
        },
        on_conflict=CONFLICT_KEY,
    )
    logger.info("plan for %s set to %s", identifier, new_plan)
