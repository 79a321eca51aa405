from typing import Any, Dict, List, Literal, Optional, Set

import logging

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from config import LOG_LEVEL, CORS_ORIGIN_REGEX, SUPABASE_URL
from logging_config import setup_logging

from auth.session import Identity, get_current_identity, resolve_identifier, require_viewer_id
from billing.plans import get_pricing, subscribe_action
from data.liked_store import LikedStore
from data.record_store import RecordStore, get_record_store
from services.errors import LikeInFlightError, NotFoundError, PersistenceError, ValidationError
from services.like_service import LikeCounterService
from services.profile_service import default_profile, get_user_profile, upsert_user_profile
from services.sticker_service import (
    get_all_stickers,
    get_today_sticker,
    present_sticker,
    require_sticker,
)
from services.subscription_service import resolve_plan, update_plan

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="StickerDrop API",
    description="Daily AI sticker drops: featured sticker, archive, likes, pricing and profiles.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


PlanName = Literal["free", "pro", "studio"]


class PlanUpdateRequest(BaseModel):
    plan: PlanName


class SubscribeRequest(BaseModel):
    plan: PlanName


class ProfileUpdateRequest(BaseModel):
    display_name: Optional[str] = None
    title: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    social_links: List[str] = []


_like_service: Optional[LikeCounterService] = None


def get_like_service(store: RecordStore = Depends(get_record_store)) -> LikeCounterService:
    global _like_service
    if _like_service is None:
        _like_service = LikeCounterService(store, LikedStore())
    return _like_service


def _caller_plan(identity: Identity, store: RecordStore) -> Optional[str]:
    """
    The caller's plan, or None for anonymous callers (treated as free).
    """
    try:
        email = resolve_identifier(identity.email)
    except ValidationError:
        return None
    return resolve_plan(email, store=store)


def _require_email(identity: Identity) -> str:
    try:
        return resolve_identifier(identity.email)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _viewer_liked_ids(identity: Identity, service: LikeCounterService) -> Set[int]:
    try:
        viewer_id = require_viewer_id(identity)
    except ValidationError:
        return set()
    return set(service.liked_store.liked_items(viewer_id))


@app.on_event("startup")
def _startup() -> None:
    if not SUPABASE_URL:
        logger.warning("SUPABASE_URL is not set; every record store call will fail")
    logger.info("StickerDrop API ready")


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


# --------------------------------------------------
# Stickers
# --------------------------------------------------

@app.get("/api/stickers/today")
def today_sticker(
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
    likes: LikeCounterService = Depends(get_like_service),
) -> Dict[str, Any]:
    sticker = get_today_sticker(store=store)
    if sticker is None:
        raise HTTPException(status_code=404, detail="No sticker has been published yet.")
    plan = _caller_plan(identity, store)
    return present_sticker(sticker, plan, liked=sticker.id in _viewer_liked_ids(identity, likes))


@app.get("/api/stickers")
def archive(
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
    likes: LikeCounterService = Depends(get_like_service),
) -> List[Dict[str, Any]]:
    plan = _caller_plan(identity, store)
    liked = _viewer_liked_ids(identity, likes)
    return [
        present_sticker(s, plan, liked=s.id in liked)
        for s in get_all_stickers(store=store)
    ]


@app.get("/api/stickers/{sticker_id}")
def sticker_detail(
    sticker_id: str,
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
    likes: LikeCounterService = Depends(get_like_service),
) -> Dict[str, Any]:
    try:
        sticker = require_sticker(sticker_id, store=store)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    plan = _caller_plan(identity, store)
    return present_sticker(sticker, plan, liked=sticker.id in _viewer_liked_ids(identity, likes))


@app.post("/api/stickers/{sticker_id}/like")
def toggle_sticker_like(
    sticker_id: str,
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
    likes: LikeCounterService = Depends(get_like_service),
) -> Dict[str, Any]:
    try:
        viewer_id = require_viewer_id(identity)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        sticker = require_sticker(sticker_id, store=store)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    try:
        updated = likes.toggle_stored(viewer_id, sticker.id, sticker.likes)
    except LikeInFlightError as e:
        raise HTTPException(status_code=409, detail={"error": str(e), "code": e.code})
    except PersistenceError as e:
        if e.state is None:
            raise HTTPException(status_code=503, detail={"error": e.message, "code": e.code})
        restored = e.state
        return {"ok": False, **restored.to_dict(), "error": e.message, "code": e.code}

    return {"ok": True, **updated.to_dict(), "error": None}


# --------------------------------------------------
# Subscription / pricing
# --------------------------------------------------

@app.get("/api/subscription")
def get_subscription(
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    email = _require_email(identity)
    return {"ok": True, "plan": resolve_plan(email, store=store)}


@app.put("/api/subscription")
def put_subscription(
    body: PlanUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    email = _require_email(identity)
    try:
        update_plan(email, body.plan, store=store)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail={"error": e.message, "code": e.code})
    return {"ok": True, "plan": body.plan}


@app.get("/api/pricing")
def pricing(
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    plan = _caller_plan(identity, store)
    return {"ok": True, "plan": plan, "plans": get_pricing(plan)}


@app.post("/api/pricing/subscribe")
def pricing_subscribe(
    body: SubscribeRequest,
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    plan = _caller_plan(identity, store)
    return {"ok": True, **subscribe_action(plan, body.plan)}


# --------------------------------------------------
# Profile
# --------------------------------------------------

@app.get("/api/profile")
def get_profile(
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    email = _require_email(identity)
    profile = get_user_profile(email, use_email=True, store=store)
    if profile is None and identity.user_id:
        profile = get_user_profile(identity.user_id, use_email=False, store=store)
    if profile is None:
        return {"ok": True, "saved": False, "profile": default_profile(identity).to_dict()}
    return {"ok": True, "saved": True, "profile": profile.to_dict()}


@app.put("/api/profile")
def put_profile(
    body: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    store: RecordStore = Depends(get_record_store),
) -> Dict[str, Any]:
    email = _require_email(identity)
    try:
        # Only fields the client sent; the upsert merges into the saved row.
        fields = body.model_dump(exclude_unset=True)
        profile = upsert_user_profile(email, fields, user_id=identity.user_id, store=store)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail={"error": e.message, "code": e.code})
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail={"error": e.message, "code": e.code})
    return {"ok": True, "profile": profile.to_dict()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8000, reload=True)
