"""Paired balance/ledger writes.

These are the only callers of the balance store's mutators. Each function
writes the balance and appends exactly one ledger row whose
``session_change`` equals the change applied to ``remaining_sessions``
(no row when that change is zero). Callers own the transaction.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Tuple

from ..models.session_balance import SessionBalance
from ..models.session_transaction import SessionTransaction, SessionTransactionReason
from .session_balance_store import SessionBalanceStore
from .session_errors import SessionValidationError
from .session_ledger import SessionTransactionLedger


def open_balance(
    balances: SessionBalanceStore,
    ledger: SessionTransactionLedger,
    *,
    player_id: int,
    team_id: int,
    total_sessions: int,
    used_sessions: int,
    reason: SessionTransactionReason,
    actor_id: int,
    expiration_date: date | None = None,
    payment_id: int | None = None,
    notes: str | None = None,
) -> Tuple[SessionBalance, Optional[SessionTransaction]]:
    remaining = total_sessions - used_sessions
    balance = balances.create(
        SessionBalance(
            player_id=player_id,
            team_id=team_id,
            total_sessions=total_sessions,
            used_sessions=used_sessions,
            remaining_sessions=remaining,
            expiration_date=expiration_date,
            last_updated_by_user=actor_id,
        )
    )
    entry = None
    if remaining != 0:
        entry = SessionTransaction(
            player_id=player_id,
            team_id=team_id,
            session_change=remaining,
            reason=reason.value,
            notes=notes,
            payment_id=payment_id,
            last_updated_by_user=actor_id,
        )
        ledger.append(entry)
    return balance, entry


def apply_session_change(
    balances: SessionBalanceStore,
    ledger: SessionTransactionLedger,
    *,
    player_id: int,
    team_id: int,
    reason: SessionTransactionReason,
    actor_id: int,
    total_delta: int = 0,
    used_delta: int = 0,
    payment_id: int | None = None,
    attendance_id: int | None = None,
    notes: str | None = None,
) -> Tuple[SessionBalance, SessionTransaction]:
    session_change = total_delta - used_delta
    if session_change == 0:
        raise SessionValidationError("A session change must move remaining_sessions")
    balance = balances.apply_delta(
        player_id,
        team_id,
        session_change,
        total_delta,
        used_delta,
        actor_id=actor_id,
    )
    entry = SessionTransaction(
        player_id=player_id,
        team_id=team_id,
        session_change=session_change,
        reason=reason.value,
        notes=notes,
        payment_id=payment_id,
        attendance_id=attendance_id,
        last_updated_by_user=actor_id,
    )
    ledger.append(entry)
    return balance, entry


def overwrite_balance(
    balances: SessionBalanceStore,
    ledger: SessionTransactionLedger,
    balance: SessionBalance,
    *,
    total_sessions: int,
    used_sessions: int,
    expiration_date: date | None,
    actor_id: int,
    notes: str | None = None,
) -> Tuple[SessionBalance, Optional[SessionTransaction]]:
    remaining = total_sessions - used_sessions
    delta = remaining - int(balance.remaining_sessions or 0)
    updated = balances.replace_snapshot(
        balance,
        expected_version=balance.version,
        total_sessions=total_sessions,
        used_sessions=used_sessions,
        remaining_sessions=remaining,
        expiration_date=expiration_date,
        actor_id=actor_id,
    )
    entry = None
    if delta != 0:
        entry = SessionTransaction(
            player_id=updated.player_id,
            team_id=updated.team_id,
            session_change=delta,
            reason=SessionTransactionReason.ADJUSTMENT.value,
            notes=notes,
            last_updated_by_user=actor_id,
        )
        ledger.append(entry)
    return updated, entry
