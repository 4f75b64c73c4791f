"""Durable per-(player, team) session balances."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.session_balance import SessionBalance
from .session_errors import (
    BalanceAlreadyExistsError,
    BalanceNotFoundError,
    ConcurrentBalanceUpdateError,
    SessionValidationError,
)


class SessionBalanceStore:
    """Reads and writes ``session_balances`` rows through one SQLAlchemy session.

    Writers never read-modify-write in Python: ``apply_delta`` pushes the
    arithmetic into a single UPDATE and ``replace_snapshot`` is a
    compare-and-set on ``version``. Neither commits.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self, player_id: int, team_id: int):
        return self.db.query(SessionBalance).filter(
            SessionBalance.player_id == player_id,
            SessionBalance.team_id == team_id,
        )

    def get(self, player_id: int, team_id: int) -> Optional[SessionBalance]:
        return self._query(player_id, team_id).first()

    def get_for_update(self, player_id: int, team_id: int) -> Optional[SessionBalance]:
        # FOR UPDATE is dropped silently on dialects without row locks (SQLite).
        return self._query(player_id, team_id).populate_existing().with_for_update().first()

    def lock_many(self, team_id: int, player_ids: Iterable[int]) -> dict[int, SessionBalance]:
        """Lock existing balances for several players of one team, in player-id order."""
        ids = sorted(set(player_ids))
        if not ids:
            return {}
        rows = (
            self.db.query(SessionBalance)
            .filter(SessionBalance.team_id == team_id, SessionBalance.player_id.in_(ids))
            .order_by(SessionBalance.player_id)
            .populate_existing()
            .with_for_update()
            .all()
        )
        return {row.player_id: row for row in rows}

    def list_by_team(self, team_id: int) -> List[SessionBalance]:
        return (
            self.db.query(SessionBalance)
            .filter(SessionBalance.team_id == team_id)
            .order_by(SessionBalance.player_id)
            .all()
        )

    def create(self, balance: SessionBalance) -> SessionBalance:
        total = int(balance.total_sessions or 0)
        used = int(balance.used_sessions or 0)
        remaining = balance.remaining_sessions
        if remaining is None:
            remaining = total - used
        if remaining != total - used:
            raise SessionValidationError("remaining_sessions must equal total_sessions - used_sessions")
        if self.get(balance.player_id, balance.team_id) is not None:
            raise BalanceAlreadyExistsError(
                f"Session balance already exists for player {balance.player_id} on team {balance.team_id}"
            )
        balance.total_sessions = total
        balance.used_sessions = used
        balance.remaining_sessions = remaining
        balance.version = 1
        self.db.add(balance)
        try:
            self.db.flush()
        except IntegrityError as exc:
            # Lost a creation race on the (player_id, team_id) unique key.
            raise BalanceAlreadyExistsError(
                f"Session balance already exists for player {balance.player_id} on team {balance.team_id}"
            ) from exc
        return balance

    def apply_delta(
        self,
        player_id: int,
        team_id: int,
        session_delta: int,
        total_delta: int = 0,
        used_delta: int = 0,
        *,
        actor_id: int | None = None,
    ) -> SessionBalance:
        if session_delta != total_delta - used_delta:
            raise SessionValidationError("session_delta must equal total_delta - used_delta")
        values = {
            "total_sessions": SessionBalance.total_sessions + total_delta,
            "used_sessions": SessionBalance.used_sessions + used_delta,
            "remaining_sessions": SessionBalance.remaining_sessions + session_delta,
            "version": SessionBalance.version + 1,
        }
        if actor_id is not None:
            values["last_updated_by_user"] = actor_id
        result = self.db.execute(
            update(SessionBalance)
            .where(SessionBalance.player_id == player_id, SessionBalance.team_id == team_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise BalanceNotFoundError(f"No session balance for player {player_id} on team {team_id}")
        return self._query(player_id, team_id).populate_existing().one()

    def replace_snapshot(
        self,
        balance: SessionBalance,
        *,
        expected_version: int,
        total_sessions: int,
        used_sessions: int,
        remaining_sessions: int,
        expiration_date: date | None,
        actor_id: int,
    ) -> SessionBalance:
        if remaining_sessions != total_sessions - used_sessions:
            raise SessionValidationError("remaining_sessions must equal total_sessions - used_sessions")
        result = self.db.execute(
            update(SessionBalance)
            .where(SessionBalance.id == balance.id, SessionBalance.version == expected_version)
            .values(
                total_sessions=total_sessions,
                used_sessions=used_sessions,
                remaining_sessions=remaining_sessions,
                expiration_date=expiration_date,
                last_updated_by_user=actor_id,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConcurrentBalanceUpdateError(
                f"Session balance for player {balance.player_id} on team {balance.team_id} "
                "was modified concurrently"
            )
        return self._query(balance.player_id, balance.team_id).populate_existing().one()
