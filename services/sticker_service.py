# services/sticker_service.py

"""
Sticker content lookups: today's drop, the archive, and detail pages.

Reads never raise to the caller. A record store failure is logged and
turned into "nothing found" so the page can still render.
"""

import logging
from dataclasses import dataclass, asdict
from datetime import date
from typing import Any, Dict, List, Optional

from config import SUPABASE_URL, ARCHIVE_PAGE_LIMIT
from billing.feature_flags import is_premium
from data.record_store import RecordStore, get_record_store
from logic.validation import parse_sticker_id
from services.errors import NotFoundError, PersistenceError
from services.like_service import format_count

logger = logging.getLogger(__name__)

TABLE = "stickers"
STORAGE_BUCKET = "stickers"


@dataclass
class Sticker:
    id: int
    title: str
    prompt: str
    image_url: str
    publish_date: str
    is_premium: bool = False
    likes: int = 0
    remix_idea: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Sticker":
        return cls(
            id=int(row["id"]),
            title=row.get("title") or "",
            prompt=row.get("prompt") or "",
            image_url=row.get("image_url") or "",
            publish_date=str(row.get("publish_date") or ""),
            is_premium=bool(row.get("is_premium") or False),
            likes=int(row.get("likes") or 0),
            remix_idea=row.get("remix_idea") or None,
        )


def sticker_image_url(image_url: str, base_url: Optional[str] = None) -> str:
    """
    Full URLs pass through; bare filenames are resolved against the
    public storage bucket.
    """
    if image_url.startswith("http://") or image_url.startswith("https://"):
        return image_url

    base = base_url if base_url is not None else SUPABASE_URL
    if not base:
        raise RuntimeError("SUPABASE_URL is not set")
    return f"{base.rstrip('/')}/storage/v1/object/public/{STORAGE_BUCKET}/{image_url}"


def get_today_sticker(today: Optional[date] = None, store: Optional[RecordStore] = None) -> Optional[Sticker]:
    """
    Latest sticker published today or earlier. When several share a day
    the one with the highest id wins.
    """
    store = store or get_record_store()
    day = (today or date.today()).isoformat()

    try:
        rows = store.select(
            TABLE,
            {"publish_date": ("lte", day)},
            order=[("publish_date", False), ("id", False)],
            limit=1,
        )
    except PersistenceError as e:
        logger.warning("could not load today's sticker: %s", e)
        return None

    return Sticker.from_row(rows[0]) if rows else None


def get_all_stickers(store: Optional[RecordStore] = None) -> List[Sticker]:
    store = store or get_record_store()
    try:
        rows = store.select(TABLE, order=[("publish_date", False)], limit=ARCHIVE_PAGE_LIMIT)
    except PersistenceError as e:
        logger.warning("could not load sticker archive: %s", e)
        return []
    return [Sticker.from_row(r) for r in rows]


def get_sticker_by_id(raw_id: Any, store: Optional[RecordStore] = None) -> Optional[Sticker]:
    sticker_id = parse_sticker_id(raw_id)
    if sticker_id is None:
        return None

    store = store or get_record_store()
    try:
        row = store.get(TABLE, {"id": sticker_id})
    except PersistenceError as e:
        logger.warning("could not load sticker %s: %s", sticker_id, e)
        return None
    return Sticker.from_row(row) if row else None


def present_sticker(sticker: Sticker, user_plan: Optional[str] = None, liked: bool = False) -> Dict[str, Any]:
    """
    Public view of a sticker. Premium prompts and remix ideas are hidden
    unless the caller is on a paid plan.
    """
    data = asdict(sticker)
    data["image_url"] = sticker_image_url(sticker.image_url)
    data["likes_display"] = format_count(sticker.likes)
    data["liked"] = liked

    locked = sticker.is_premium and not (user_plan and is_premium(user_plan))
    data["locked"] = locked
    if locked:
        data["prompt"] = None
        data["remix_idea"] = None
    return data


def require_sticker(raw_id: Any, store: Optional[RecordStore] = None) -> Sticker:
    sticker = get_sticker_by_id(raw_id, store=store)
    if sticker is None:
        raise NotFoundError("Sticker not found.")
    return sticker
