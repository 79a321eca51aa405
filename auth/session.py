# auth/session.py

"""
Caller identity for StickerDrop.

Sign-in itself happens in the frontend's auth provider. By the time a
request reaches this API the frontend has forwarded who the caller is
in two headers:

    X-User-Email   stable account email (preferred)
    X-User-Id      provider session id (can change between logins)

Subscriptions and profiles are keyed by email because the session id
rotates for the same account. The session id is only accepted where a
weaker key is fine (the viewer-local liked flags, legacy profile rows).
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Header

from logic.validation import validate_email
from services.errors import ValidationError


@dataclass(frozen=True)
class Identity:
    email: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.email or self.user_id)


def get_current_identity(
    x_user_email: Optional[str] = Header(default=None),
    x_user_id: Optional[str] = Header(default=None),
) -> Identity:
    email = (x_user_email or "").strip() or None
    user_id = (x_user_id or "").strip() or None
    return Identity(email=email, user_id=user_id)


def resolve_identifier(
    email: Optional[str],
    user_id: Optional[str] = None,
    allow_user_id: bool = False,
) -> str:
    """
    Pick the stable lookup key for a caller.

    A present email always wins and must be well-formed. Without one, the
    session id is used only when `allow_user_id` is set.

    Raises:
        ValidationError when no usable identifier is present.
    """
    if email and email.strip():
        return validate_email(email)

    if allow_user_id and user_id and user_id.strip():
        return user_id.strip()

    raise ValidationError("An account email is required.")


def require_viewer_id(identity: Identity) -> str:
    return resolve_identifier(identity.email, identity.user_id, allow_user_id=True)
