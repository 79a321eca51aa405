# services/errors.py

"""
Error taxonomy shared by the services.

Every error carries a short machine-readable `code` so the API layer
can hand it to the frontend unchanged (same shape as the old
ProRequiredError on the watchlist endpoints).
"""

from typing import Any, Optional


class StickerDropError(Exception):
    code = "ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(StickerDropError):
    code = "NOT_FOUND"


class ValidationError(StickerDropError, ValueError):
    code = "VALIDATION_ERROR"


class PersistenceError(StickerDropError):
    """
    The record store was unreachable or rejected a write.

    `state` is set by the like service to the rolled-back LikeState so
    callers can re-render without another read.
    """

    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None, state: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.state = state


class LikeInFlightError(StickerDropError):
    code = "LIKE_IN_FLIGHT"
