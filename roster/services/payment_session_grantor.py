from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models.payment import Payment
from ..models.session_balance import SessionBalance
from ..models.session_transaction import SessionTransaction, SessionTransactionReason
from .session_accounting import apply_session_change, open_balance
from .session_balance_store import SessionBalanceStore
from .session_errors import SessionValidationError
from .session_ledger import SessionTransactionLedger
from .session_validation import validate_session_count

logger = logging.getLogger(__name__)


@dataclass
class SessionGrant:
    balance: SessionBalance
    transaction: SessionTransaction
    session_count: int
    created_balance: bool


def annotate_payment_notes(notes: Optional[str], session_count: int) -> str:
    summary = f"Added {session_count} prepaid sessions"
    cleaned = (notes or "").strip()
    if not cleaned:
        return summary
    return f"{cleaned} ({summary})"


class PaymentSessionGrantor:
    """Turns a persisted payment into prepaid sessions.

    Runs inside the caller's unit of work and never commits, so the payment
    and its grant become visible together or not at all.
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

    def grant(self, payment: Payment, session_count: Any, *, actor_id: int) -> SessionGrant:
        count = validate_session_count(session_count)
        if payment.id is None:
            raise SessionValidationError("Payment must be persisted before sessions can be granted")

        notes = f"Added {count} sessions with payment #{payment.id}"
        existing = self.balances.get_for_update(payment.player_id, payment.team_id)
        if existing is None:
            balance, entry = open_balance(
                self.balances,
                self.ledger,
                player_id=payment.player_id,
                team_id=payment.team_id,
                total_sessions=count,
                used_sessions=0,
                reason=SessionTransactionReason.PURCHASE,
                actor_id=actor_id,
                payment_id=payment.id,
                notes=notes,
            )
        else:
            balance, entry = apply_session_change(
                self.balances,
                self.ledger,
                player_id=payment.player_id,
                team_id=payment.team_id,
                reason=SessionTransactionReason.PURCHASE,
                actor_id=actor_id,
                total_delta=count,
                payment_id=payment.id,
                notes=notes,
            )

        payment.notes = annotate_payment_notes(payment.notes, count)

        logger.info(
            "Granted %d prepaid sessions player=%s team=%s payment=%s remaining=%s",
            count,
            payment.player_id,
            payment.team_id,
            payment.id,
            balance.remaining_sessions,
            extra={"team_id": payment.team_id, "player_id": payment.player_id, "payment_id": payment.id},
        )
        return SessionGrant(
            balance=balance,
            transaction=entry,
            session_count=count,
            created_balance=existing is None,
        )
