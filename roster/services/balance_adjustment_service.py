from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models.session_balance import SessionBalance
from ..models.session_transaction import SessionTransaction, SessionTransactionReason
from ..platform.database import unit_of_work
from .session_accounting import open_balance, overwrite_balance
from .session_balance_store import SessionBalanceStore
from .session_errors import SessionValidationError
from .session_ledger import SessionTransactionLedger
from .session_validation import coerce_date, require_int, require_positive_int

logger = logging.getLogger(__name__)

_UNSET: Any = object()


@dataclass
class BalanceAdjustment:
    balance: SessionBalance
    transaction: Optional[SessionTransaction]
    session_change: int
    created_balance: bool


def adjustment_note(session_change: int, notes: Optional[str] = None) -> str:
    verb = "Added" if session_change > 0 else "Removed"
    summary = f"Manual adjustment: {verb} {abs(session_change)} sessions"
    cleaned = (notes or "").strip()
    return f"{summary} - {cleaned}" if cleaned else summary


class BalanceAdjustmentService:
    """Administrative override of a player's balance.

    The operator supplies the target ``remaining_sessions`` (and optionally
    ``total_sessions``); all three counters are written together so
    ``remaining == total - used`` still holds, and the difference is
    recorded as one ``adjustment`` ledger row.
    """

    def __init__(
        self,
        db: Session,
        *,
        balances: Optional[SessionBalanceStore] = None,
        ledger: Optional[SessionTransactionLedger] = None,
    ):
        self.db = db
        self.balances = balances or SessionBalanceStore(db)
        self.ledger = ledger or SessionTransactionLedger(db)

    def adjust(
        self,
        player_id: int,
        team_id: int,
        *,
        remaining_sessions: Any,
        actor_id: int,
        total_sessions: Any = None,
        expiration_date: Any = _UNSET,
        notes: Optional[str] = None,
    ) -> BalanceAdjustment:
        player_id = require_positive_int(player_id, "player_id")
        team_id = require_positive_int(team_id, "team_id")
        actor_id = require_positive_int(actor_id, "actor_id")
        remaining = require_int(remaining_sessions, "remaining_sessions")
        total = None
        if total_sessions is not None:
            total = require_int(total_sessions, "total_sessions")
            if total < 0:
                raise SessionValidationError("total_sessions must not be negative")
        if expiration_date is not _UNSET and expiration_date is not None:
            expiration_date = coerce_date(expiration_date, "expiration_date")

        with unit_of_work(self.db):
            existing = self.balances.get_for_update(player_id, team_id)
            if existing is None:
                adjustment = self._open(player_id, team_id, remaining, total, expiration_date, notes, actor_id)
            else:
                adjustment = self._overwrite(existing, remaining, total, expiration_date, notes, actor_id)

        logger.info(
            "Session balance adjusted player=%s team=%s change=%d remaining=%s",
            player_id,
            team_id,
            adjustment.session_change,
            adjustment.balance.remaining_sessions,
            extra={
                "team_id": team_id,
                "player_id": player_id,
                "session_change": adjustment.session_change,
                "user_id": actor_id,
            },
        )
        return adjustment

    def _open(
        self,
        player_id: int,
        team_id: int,
        remaining: int,
        total: Optional[int],
        expiration_date: Any,
        notes: Optional[str],
        actor_id: int,
    ) -> BalanceAdjustment:
        if total is None:
            total = max(remaining, 0)
        used = total - remaining
        if used < 0:
            raise SessionValidationError("remaining_sessions cannot exceed total_sessions")
        balance, entry = open_balance(
            self.balances,
            self.ledger,
            player_id=player_id,
            team_id=team_id,
            total_sessions=total,
            used_sessions=used,
            reason=SessionTransactionReason.ADJUSTMENT,
            actor_id=actor_id,
            expiration_date=None if expiration_date is _UNSET else expiration_date,
            notes=adjustment_note(remaining, notes) if remaining else None,
        )
        return BalanceAdjustment(balance=balance, transaction=entry, session_change=remaining, created_balance=True)

    def _overwrite(
        self,
        balance: SessionBalance,
        remaining: int,
        total: Optional[int],
        expiration_date: Any,
        notes: Optional[str],
        actor_id: int,
    ) -> BalanceAdjustment:
        if total is None:
            used = int(balance.used_sessions or 0)
            total = used + remaining
            if total < 0:
                # Overdraft deeper than the sessions already used.
                total = 0
                used = -remaining
        else:
            used = total - remaining
        if used < 0:
            raise SessionValidationError("remaining_sessions cannot exceed total_sessions")
        if total < 0:
            raise SessionValidationError("total_sessions must not be negative")
        if expiration_date is _UNSET:
            expiration_date = balance.expiration_date
        session_change = remaining - int(balance.remaining_sessions or 0)
        updated, entry = overwrite_balance(
            self.balances,
            self.ledger,
            balance,
            total_sessions=total,
            used_sessions=used,
            expiration_date=expiration_date,
            actor_id=actor_id,
            notes=adjustment_note(session_change, notes) if session_change else None,
        )
        return BalanceAdjustment(
            balance=updated,
            transaction=entry,
            session_change=session_change,
            created_balance=False,
        )
