"""
Shared dependencies. Authentication happens upstream; the caller's user id
arrives in the ``X-User-Id`` header.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from .domains.identity_access.access_policy import evaluate_team_mutation


@dataclass
class CurrentUser:
    id: int


def get_current_user(x_user_id: Optional[str] = Header(default=None)) -> CurrentUser:
    raw = (x_user_id or "").strip()
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        user_id = int(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    if user_id <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return CurrentUser(id=user_id)


def require_team_mutation(team_id: int, current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    decision = evaluate_team_mutation(user_id=current_user.id, team_id=team_id)
    if not decision.allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.reason)
    return current_user


__all__ = ["CurrentUser", "get_current_user", "require_team_mutation"]
