from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Set

from ...platform.config import settings

_ALL_TEAMS = "*"


@dataclass
class TeamAccessPolicyDecision:
    allowed: bool
    reason: str | None = None
    team_id: int | None = None


def team_manager_grants(raw_json: str | None = None) -> Dict[int, Set[Any]]:
    """Parse ``TEAM_MANAGERS_JSON`` into ``{user_id: {team_id, ... or "*"}}``.

    Malformed entries are skipped rather than failing the request.
    """
    try:
        raw = json.loads(raw_json if raw_json is not None else (settings.TEAM_MANAGERS_JSON or "{}"))
    except ValueError:
        raw = {}
    if not isinstance(raw, dict):
        return {}
    output: Dict[int, Set[Any]] = {}
    for user_key, teams in raw.items():
        try:
            user_id = int(user_key)
        except (TypeError, ValueError):
            continue
        if not isinstance(teams, list):
            continue
        allowed: Set[Any] = set()
        for team in teams:
            if team == _ALL_TEAMS:
                allowed.add(_ALL_TEAMS)
                continue
            try:
                allowed.add(int(team))
            except (TypeError, ValueError):
                continue
        if allowed:
            output[user_id] = allowed
    return output


def evaluate_team_mutation(*, user_id: int, team_id: int, raw_json: str | None = None) -> TeamAccessPolicyDecision:
    teams = team_manager_grants(raw_json).get(user_id)
    if teams and (_ALL_TEAMS in teams or team_id in teams):
        return TeamAccessPolicyDecision(allowed=True, team_id=team_id)
    return TeamAccessPolicyDecision(
        allowed=False,
        reason="You do not have permission to manage this team",
        team_id=team_id,
    )
