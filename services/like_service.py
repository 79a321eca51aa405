# services/like_service.py

"""
Like button backend.

Toggling a like does three things:

1. Guess the result right away (count +/- 1) so the heart responds
   before the record store does.
2. Ask the record store to change the shared counter, trying each
   strategy in order until one works:
       - `toggle_likes` RPC (atomic increment/decrement on the row)
       - plain UPDATE of the count, read back from the row
3. On success remember the viewer's choice locally and return the
   count the store reported. If every strategy fails, put everything
   back the way it was and raise PersistenceError.

Only one toggle per (viewer, sticker) may be in flight. A second one
arriving while the first is pending is dropped with LikeInFlightError.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from data.liked_store import LikedStore
from data.record_store import RecordStore
from services.errors import LikeInFlightError, PersistenceError

logger = logging.getLogger(__name__)

STICKERS_TABLE = "stickers"
TOGGLE_RPC = "toggle_likes"


@dataclass(frozen=True)
class LikeState:
    item_id: int
    count: int
    liked_by_viewer: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sticker_id": self.item_id,
            "likes": self.count,
            "likes_display": format_count(self.count),
            "liked": self.liked_by_viewer,
        }


@dataclass(frozen=True)
class StrategyResult:
    ok: bool
    count: Optional[int] = None
    error: Optional[str] = None


# (item_id, should_increment, optimistic_count) -> StrategyResult
Strategy = Callable[[int, bool, int], StrategyResult]


def format_count(count: int) -> str:
    """
    999 -> "999", 1000 -> "1.0k", 1500 -> "1.5k"
    """
    if count >= 1000:
        return f"{count / 1000:.1f}k"
    return str(count)


def _as_count(value: Any) -> Optional[int]:
    if isinstance(value, dict):
        value = value.get("likes")
    if isinstance(value, list) and len(value) == 1:
        return _as_count(value[0])
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return max(int(value), 0)


class LikeCounterService:
    def __init__(self, store: RecordStore, liked_store: LikedStore):
        self.store = store
        self.liked_store = liked_store
        self.strategies: List[Strategy] = [self._atomic_toggle, self._direct_update]

        self._lock = threading.Lock()
        self._pending: Set[Tuple[str, int]] = set()
        self._optimistic: Dict[Tuple[str, int], LikeState] = {}

    # --------------------------------------------------
    # Strategies
    # --------------------------------------------------

    def _atomic_toggle(self, item_id: int, should_increment: bool, optimistic_count: int) -> StrategyResult:
        try:
            value = self.store.rpc(
                TOGGLE_RPC,
                {"sticker_id": item_id, "should_increment": should_increment},
            )
        except PersistenceError as e:
            return StrategyResult(ok=False, error=f"rpc: {e}")

        # Older versions of the function return void; keep the guess then.
        count = _as_count(value)
        return StrategyResult(ok=True, count=optimistic_count if count is None else count)

    def _direct_update(self, item_id: int, should_increment: bool, optimistic_count: int) -> StrategyResult:
        try:
            row = self.store.update(STICKERS_TABLE, {"likes": optimistic_count}, {"id": item_id})
        except PersistenceError as e:
            return StrategyResult(ok=False, error=f"update: {e}")

        count = _as_count(row)
        if count is None:
            return StrategyResult(ok=False, error=f"update: sticker {item_id} not found")
        return StrategyResult(ok=True, count=count)

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    def state_for(self, viewer_id: str, item_id: int, count: int) -> LikeState:
        return LikeState(
            item_id=item_id,
            count=max(int(count or 0), 0),
            liked_by_viewer=self.liked_store.is_liked(viewer_id, item_id),
        )

    def is_pending(self, viewer_id: str, item_id: int) -> bool:
        with self._lock:
            return (viewer_id, item_id) in self._pending

    def pending_state(self, viewer_id: str, item_id: int) -> Optional[LikeState]:
        """
        The optimistic state of an in-flight toggle, or None when idle.
        """
        with self._lock:
            return self._optimistic.get((viewer_id, item_id))

    def _claim(self, key: Tuple[str, int]) -> None:
        with self._lock:
            if key in self._pending:
                raise LikeInFlightError("A like for this sticker is already being saved.")
            self._pending.add(key)

    def _settle(self, key: Tuple[str, int]) -> None:
        with self._lock:
            self._pending.discard(key)
            self._optimistic.pop(key, None)

    def _apply(self, viewer_id: str, state: LikeState) -> LikeState:
        key = (viewer_id, state.item_id)
        intended = not state.liked_by_viewer
        optimistic = LikeState(
            item_id=state.item_id,
            count=state.count + 1 if intended else max(state.count - 1, 0),
            liked_by_viewer=intended,
        )
        with self._lock:
            self._optimistic[key] = optimistic

        errors: List[str] = []
        result: Optional[StrategyResult] = None
        for strategy in self.strategies:
            attempt = strategy(state.item_id, intended, optimistic.count)
            if attempt.ok:
                result = attempt
                break
            errors.append(attempt.error or "unknown error")

        if result is None:
            logger.error(
                "like toggle failed for sticker %s, rolled back: %s",
                state.item_id, "; ".join(errors),
            )
            raise PersistenceError("Could not save your like. Please try again.", state=state)

        try:
            self.liked_store.set_liked(viewer_id, state.item_id, intended)
        except OSError as e:
            # The shared count already changed; the local flag is only a hint.
            logger.warning("could not persist liked flag for %s: %s", viewer_id, e)

        return LikeState(
            item_id=state.item_id,
            count=result.count if result.count is not None else optimistic.count,
            liked_by_viewer=intended,
        )

    def toggle_like(self, viewer_id: str, state: LikeState) -> LikeState:
        key = (viewer_id, state.item_id)
        self._claim(key)
        try:
            return self._apply(viewer_id, state)
        finally:
            self._settle(key)

    def toggle_stored(self, viewer_id: str, item_id: int, count: int) -> LikeState:
        """
        Toggle starting from the viewer's stored flag. The flag is read
        only after the pair is marked pending, so it cannot change under us.
        """
        key = (viewer_id, item_id)
        self._claim(key)
        try:
            return self._apply(viewer_id, self.state_for(viewer_id, item_id, count))
        finally:
            self._settle(key)
