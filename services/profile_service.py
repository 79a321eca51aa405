# services/profile_service.py

"""
Creator profiles (the /profile page).

Profiles are keyed by email. Older rows were written by session id, so
lookups fall back to `user_id` when the email finds nothing.
"""

import logging
from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from auth.session import Identity
from data.record_store import RecordStore, get_record_store
from logic.validation import validate_email, validate_profile_fields
from services.errors import PersistenceError

logger = logging.getLogger(__name__)

TABLE = "user_profiles"

EDITABLE_FIELDS = ("display_name", "title", "bio", "avatar_url", "social_links")


@dataclass
class UserProfile:
    user_id: str = ""
    email: Optional[str] = None
    display_name: Optional[str] = None
    title: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    social_links: List[str] = field(default_factory=list)
    member_since: Optional[str] = None
    last_updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "UserProfile":
        links = row.get("social_links")
        return cls(
            user_id=row.get("user_id") or "",
            email=row.get("email"),
            display_name=row.get("display_name"),
            title=row.get("title"),
            bio=row.get("bio"),
            avatar_url=row.get("avatar_url"),
            social_links=list(links) if isinstance(links, list) else [],
            member_since=row.get("member_since"),
            last_updated_at=row.get("last_updated_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _utc_iso_z() -> str:
    return datetime.utcnow().isoformat() + "Z"


def get_user_profile(
    identifier: str,
    use_email: bool = True,
    store: Optional[RecordStore] = None,
) -> Optional[UserProfile]:
    if not identifier:
        return None
    store = store or get_record_store()

    try:
        if use_email:
            row = store.get(TABLE, {"email": identifier.strip().lower()})
            if row:
                return UserProfile.from_row(row)

        row = store.get(TABLE, {"user_id": identifier})
    except PersistenceError as e:
        logger.warning("could not load profile for %s: %s", identifier, e)
        return None

    return UserProfile.from_row(row) if row else None


def default_profile(identity: Identity, name: Optional[str] = None, image: Optional[str] = None) -> UserProfile:
    """
    Placeholder for users who never saved a profile. Not persisted.
    """
    return UserProfile(
        user_id=identity.user_id or "",
        email=identity.email,
        display_name=name,
        avatar_url=image,
    )


def upsert_user_profile(
    email: Optional[str],
    data: Dict[str, Any],
    user_id: Optional[str] = None,
    store: Optional[RecordStore] = None,
) -> UserProfile:
    """
    Create or update the profile for `email`.

    Raises:
        ValidationError if the email or any field is invalid.
        PersistenceError if the record store rejects the write.
    """
    email = validate_email(email)
    fields = validate_profile_fields({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    store = store or get_record_store()

    payload: Dict[str, Any] = {"email": email, **fields, "last_updated_at": _utc_iso_z()}
    if user_id:
        payload["user_id"] = user_id

    row = store.upsert(TABLE, payload, on_conflict="email")
    if not row:
        raise PersistenceError("Profile was not saved.")
    return UserProfile.from_row(row)
