# billing/feature_flags.py

"""
Plan hierarchy helpers for StickerDrop.

There are three plans and each one includes everything below it:

    studio ⊇ pro ⊇ free

These checks are pure: they never touch the record store, and they do
not validate their inputs. Anything outside the three known plans is
the caller's problem (the API validates request bodies before they get
here).
"""

from typing import Dict

FREE = "free"
PRO = "pro"
STUDIO = "studio"

PLANS = (FREE, PRO, STUDIO)

PLAN_RANK: Dict[str, int] = {FREE: 0, PRO: 1, STUDIO: 2}


def can_access_plan(user_plan: str, target_plan: str) -> bool:
    """
    Return True if a user on `user_plan` already has `target_plan` features.
    """
    if target_plan == FREE:
        return True
    if target_plan == PRO:
        return user_plan in (PRO, STUDIO)
    if target_plan == STUDIO:
        return user_plan == STUDIO
    return False


def is_current_or_included_plan(user_plan: str, target_plan: str) -> bool:
    """
    Return True if `target_plan` is the user's plan or is included in it.

    The pricing page uses this to disable "Subscribe" on plans the user
    already owns.
    """
    if user_plan == STUDIO:
        return True
    if user_plan == PRO:
        return target_plan in (FREE, PRO)
    return target_plan == FREE


def is_premium(user_plan: str) -> bool:
    """
    Return True for any paid plan. Premium sticker prompts unlock here.
    """
    return can_access_plan(user_plan, PRO)
