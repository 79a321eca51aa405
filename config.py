"""
Centralized settings for the StickerDrop API.

Values come from the environment (optionally a .env file next to this
module). Every setting has a default so the app boots locally; modules
import the constants they need directly.
"""

import os
from pathlib import Path
from typing import Any, Callable

from dotenv import load_dotenv

ENV_PATH = Path(__file__).resolve().parent / ".env"
load_dotenv(ENV_PATH)


def _get(name: str, default: Any, cast: Callable[[str], Any]) -> Any:
    """Blank or unparsable values fall back to the default."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        return default


def _get_int(name: str, default: int) -> int:
    return _get(name, default, int)


def _get_float(name: str, default: float) -> float:
    return _get(name, default, float)


def _get_str(name: str, default: str = "") -> str:
    return _get(name, default, str)


# ---------------------------
# Hosted database backend
# ---------------------------
SUPABASE_URL: str = _get_str("SUPABASE_URL", "")
SUPABASE_KEY: str = _get_str("SUPABASE_KEY", "")
REQUEST_TIMEOUT_SECONDS: float = _get_float("REQUEST_TIMEOUT_SECONDS", 5.0)

# ---------------------------
# Viewer-local like flags
# ---------------------------
LIKED_STORE_PATH: str = _get_str("LIKED_STORE_PATH", "data/liked_stickers.json")

# ---------------------------
# Pricing / checkout
# ---------------------------
CHECKOUT_URL: str = _get_str("CHECKOUT_URL", "https://buy.stripe.com/28EdRb3tuc894oS08j4sE00")
STUDIO_CONTACT_EMAIL: str = _get_str("STUDIO_CONTACT_EMAIL", "studio@stickerdrop.app")

# ---------------------------
# Server
# ---------------------------
LOG_LEVEL: str = _get_str("LOG_LEVEL", "INFO")
CORS_ORIGIN_REGEX: str = _get_str("CORS_ORIGIN_REGEX", r"https://stickerdrop(-.*)?\.vercel\.app")
ARCHIVE_PAGE_LIMIT: int = _get_int("ARCHIVE_PAGE_LIMIT", 500)
