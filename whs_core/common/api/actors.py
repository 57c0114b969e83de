# whs_core/common/api/actors.py
from __future__ import annotations

from whs_core.cases.ports import Actor


def actor_from_request(request) -> Actor:
    """
    Identity of the authenticated caller as the engine sees it.
    Authentication itself is handled upstream; we only read request.user.
    """
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        return Actor(id="anonymous")

    full_name = ""
    if hasattr(user, "get_full_name"):
        full_name = (user.get_full_name() or "").strip()
    name = full_name or getattr(user, "email", "") or user.get_username()
    return Actor(id=str(user.pk), name=name)
