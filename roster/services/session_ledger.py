from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.session_transaction import SessionTransaction, SessionTransactionReason
from .session_errors import SessionValidationError

_REASONS = {reason.value for reason in SessionTransactionReason}


class SessionTransactionLedger:
    """Append-only access to ``session_transactions``. There is no update or delete."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, transaction: SessionTransaction) -> int:
        if transaction.id is not None:
            raise SessionValidationError("Ledger rows are write-once")
        if isinstance(transaction.session_change, bool) or not isinstance(transaction.session_change, int):
            raise SessionValidationError("session_change must be an integer")
        if transaction.session_change == 0:
            raise SessionValidationError("session_change must not be zero")
        reason = getattr(transaction.reason, "value", transaction.reason)
        if reason not in _REASONS:
            raise SessionValidationError(f"Unknown ledger reason: {transaction.reason!r}")
        transaction.reason = reason
        if transaction.payment_id is not None and transaction.attendance_id is not None:
            raise SessionValidationError("A ledger row references a payment or an attendance record, not both")
        if reason == SessionTransactionReason.ADJUSTMENT.value and (
            transaction.payment_id is not None or transaction.attendance_id is not None
        ):
            raise SessionValidationError("Adjustments carry no payment or attendance reference")
        if transaction.date is None:
            transaction.date = datetime.now(timezone.utc)
        self.db.add(transaction)
        self.db.flush()
        return transaction.id

    def _player_query(self, player_id: int, team_id: int):
        return self.db.query(SessionTransaction).filter(
            SessionTransaction.player_id == player_id,
            SessionTransaction.team_id == team_id,
        )

    def list_by_player(
        self,
        player_id: int,
        team_id: int,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[SessionTransaction]:
        """Most recent first. Each call runs a fresh query, so callers can page or restart freely."""
        query = self._player_query(player_id, team_id).order_by(
            SessionTransaction.date.desc(), SessionTransaction.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def count_by_player(self, player_id: int, team_id: int) -> int:
        return self._player_query(player_id, team_id).count()

    def list_by_team(self, team_id: int, limit: Optional[int] = None, offset: int = 0) -> List[SessionTransaction]:
        query = (
            self.db.query(SessionTransaction)
            .filter(SessionTransaction.team_id == team_id)
            .order_by(SessionTransaction.date.desc(), SessionTransaction.id.desc())
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def net_change_by_attendance(self, attendance_ids: Iterable[int]) -> Dict[int, int]:
        """Outstanding charge per attendance row: negative while a session is consumed."""
        ids = sorted(set(attendance_ids))
        if not ids:
            return {}
        rows = (
            self.db.query(SessionTransaction.attendance_id, func.sum(SessionTransaction.session_change))
            .filter(
                SessionTransaction.attendance_id.in_(ids),
                SessionTransaction.reason == SessionTransactionReason.ATTENDANCE.value,
            )
            .group_by(SessionTransaction.attendance_id)
            .all()
        )
        return {attendance_id: int(total or 0) for attendance_id, total in rows}

    def net_change(self, player_id: int, team_id: int) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(SessionTransaction.session_change), 0))
            .filter(
                SessionTransaction.player_id == player_id,
                SessionTransaction.team_id == team_id,
            )
            .scalar()
        )
        return int(total or 0)
