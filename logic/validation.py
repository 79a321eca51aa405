"""
logic/validation.py
Pure logic: validates user input before any record store work happens.
No API calls. No business logic. Simple checks that fail fast.
"""

import re
from typing import Any, Dict, List, Optional

from services.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_EMAIL_LENGTH = 200
MAX_DISPLAY_NAME = 50
MAX_TITLE = 100
MAX_BIO = 500
MAX_SOCIAL_LINKS = 5


def validate_email(email: Optional[str]) -> str:
    """
    Validates an account email.

    Returns:
        the stripped, lower-cased email.

    Raises:
        ValidationError if the email is missing or malformed.
    """
    cleaned = (email or "").strip().lower()
    if cleaned == "":
        raise ValidationError("Email is required.")
    if len(cleaned) >= MAX_EMAIL_LENGTH or not _EMAIL_RE.match(cleaned):
        raise ValidationError("Please enter a valid email address.")
    return cleaned


def parse_sticker_id(raw_id: Any) -> Optional[int]:
    """
    Parse a sticker id from a path segment. Returns None if it isn't a
    positive integer.
    """
    if isinstance(raw_id, bool):
        return None
    if isinstance(raw_id, int):
        return raw_id if raw_id > 0 else None
    try:
        value = int(str(raw_id).strip())
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _check_length(field: str, value: Optional[str], limit: int) -> None:
    if value is not None and len(value) > limit:
        raise ValidationError(f"{field} must be at most {limit} characters.")


def validate_profile_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check the editable profile fields against the editor's limits.

    Blank strings become None, blank social links are dropped.
    """
    cleaned: Dict[str, Any] = dict(data)

    for field in ("display_name", "title", "bio", "avatar_url"):
        if field in cleaned:
            value = cleaned[field]
            value = value.strip() if isinstance(value, str) else value
            cleaned[field] = value or None

    _check_length("Display name", cleaned.get("display_name"), MAX_DISPLAY_NAME)
    _check_length("Title", cleaned.get("title"), MAX_TITLE)
    _check_length("Bio", cleaned.get("bio"), MAX_BIO)

    if "social_links" in cleaned:
        links: List[str] = [
            link.strip() for link in (cleaned["social_links"] or []) if link and link.strip()
        ]
        if len(links) > MAX_SOCIAL_LINKS:
            raise ValidationError(f"Add at most {MAX_SOCIAL_LINKS} social links.")
        cleaned["social_links"] = links

    return cleaned
