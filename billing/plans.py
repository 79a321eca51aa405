# billing/plans.py

"""
Pricing catalog and the "what does Subscribe do" decision.

Payment itself happens off-site: Pro goes to an external checkout link,
Studio goes to a contact address. Nothing here charges anyone.
"""

from typing import Any, Dict, List, Optional

from config import CHECKOUT_URL, STUDIO_CONTACT_EMAIL
from billing.feature_flags import FREE, PRO, STUDIO, is_current_or_included_plan


PLAN_CATALOG: List[Dict[str, Any]] = [
    {
        "key": FREE,
        "name": "Free",
        "price": "$0",
        "period": "forever",
        "description": "A new sticker every day",
        "features": [
            "Daily featured sticker",
            "Full archive browsing",
            "Standard resolution downloads",
        ],
        "cta": "Get Started",
        "popular": False,
    },
    {
        "key": PRO,
        "name": "Pro",
        "price": "$9",
        "period": "month",
        "description": "Prompts and 4K transparent PNGs",
        "features": [
            "Everything in Free",
            "Unlock every premium prompt",
            "4K transparent PNG downloads",
            "Remix ideas for each sticker",
        ],
        "cta": "Subscribe",
        "popular": True,
    },
    {
        "key": STUDIO,
        "name": "Studio",
        "price": "$29",
        "period": "month",
        "description": "For teams and commercial work",
        "features": [
            "Everything in Pro",
            "Commercial usage license",
            "Priority requests",
        ],
        "cta": "Contact Us",
        "popular": False,
    },
]


def get_pricing(user_plan: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Return the catalog with per-caller `is_current` / `is_included` flags.

    Anonymous callers (user_plan=None) see every plan as available.
    """
    plans: List[Dict[str, Any]] = []
    for plan in PLAN_CATALOG:
        item = dict(plan)
        item["features"] = list(plan["features"])

        is_current = user_plan is not None and user_plan == plan["key"]
        is_included = (
            user_plan is not None
            and not is_current
            and is_current_or_included_plan(user_plan, plan["key"])
        )
        item["is_current"] = is_current
        item["is_included"] = is_included
        plans.append(item)
    return plans


def subscribe_action(user_plan: Optional[str], target_plan: str) -> Dict[str, Any]:
    if user_plan is not None and is_current_or_included_plan(user_plan, target_plan):
        return {"action": "none", "reason": "already_included"}

    if target_plan in (PRO, STUDIO) and user_plan is None:
        return {"action": "sign_in", "callback": f"/pricing?plan={target_plan}"}

    if target_plan == PRO:
        return {"action": "checkout", "url": CHECKOUT_URL}
    if target_plan == STUDIO:
        return {"action": "contact", "url": f"mailto:{STUDIO_CONTACT_EMAIL}"}
    return {"action": "none"}
