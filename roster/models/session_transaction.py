import enum
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String

from ..platform.database import Base


class SessionTransactionReason(str, enum.Enum):
    PURCHASE = "purchase"
    ATTENDANCE = "attendance"
    ADJUSTMENT = "adjustment"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionTransaction(Base):
    """Append-only ledger row. Rows are inserted once and never updated or deleted."""

    __tablename__ = "session_transactions"
    __table_args__ = (
        Index("ix_session_transactions_player_team", "player_id", "team_id"),
        CheckConstraint("session_change <> 0", name="ck_session_transactions_nonzero"),
        CheckConstraint(
            "reason IN ('purchase', 'attendance', 'adjustment')",
            name="ck_session_transactions_reason",
        ),
        CheckConstraint(
            "payment_id IS NULL OR attendance_id IS NULL",
            name="ck_session_transactions_single_reference",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, nullable=False)
    team_id = Column(Integer, index=True, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    session_change = Column(Integer, nullable=False)
    reason = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    payment_id = Column(Integer, nullable=True, index=True)
    attendance_id = Column(Integer, nullable=True, index=True)
    last_updated_by_user = Column(Integer, nullable=False)
