from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from ..models.payment import Payment
from ..platform.database import unit_of_work
from .payment_session_grantor import PaymentSessionGrantor, SessionGrant
from .session_errors import SessionValidationError
from .session_validation import require_positive_int, validate_session_count

logger = logging.getLogger(__name__)


@dataclass
class PaymentResult:
    payment: Payment
    grant: Optional[SessionGrant] = None


def _validate_amount(value: Any) -> Decimal:
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise SessionValidationError("amount must be a number") from exc
    if not amount.is_finite() or amount <= 0:
        raise SessionValidationError("amount must be positive")
    return amount.quantize(Decimal("0.01"))


class PaymentService:
    def __init__(self, db: Session, *, grantor: Optional[PaymentSessionGrantor] = None):
        self.db = db
        self.grantor = grantor or PaymentSessionGrantor(db)

    def create_payment(
        self,
        *,
        player_id: int,
        team_id: int,
        amount: Any,
        actor_id: int,
        paid_at: Optional[datetime] = None,
        notes: Optional[str] = None,
        add_prepaid_sessions: bool = False,
        session_count: Any = None,
    ) -> PaymentResult:
        player_id = require_positive_int(player_id, "player_id")
        team_id = require_positive_int(team_id, "team_id")
        actor_id = require_positive_int(actor_id, "actor_id")
        amount = _validate_amount(amount)
        if add_prepaid_sessions:
            session_count = validate_session_count(session_count)

        with unit_of_work(self.db):
            payment = Payment(
                player_id=player_id,
                team_id=team_id,
                amount=amount,
                date=paid_at or datetime.now(timezone.utc),
                notes=notes,
                last_updated_by_user=actor_id,
            )
            self.db.add(payment)
            self.db.flush()
            grant = None
            if add_prepaid_sessions:
                grant = self.grantor.grant(payment, session_count, actor_id=actor_id)

        logger.info(
            "Payment recorded id=%s player=%s team=%s prepaid_sessions=%s",
            payment.id,
            player_id,
            team_id,
            grant.session_count if grant else 0,
            extra={"team_id": team_id, "player_id": player_id, "payment_id": payment.id},
        )
        return PaymentResult(payment=payment, grant=grant)

    def list_payments(self, team_id: int, player_id: Optional[int] = None) -> List[Payment]:
        query = self.db.query(Payment).filter(Payment.team_id == team_id)
        if player_id is not None:
            query = query.filter(Payment.player_id == player_id)
        return query.order_by(Payment.date.desc(), Payment.id.desc()).all()
