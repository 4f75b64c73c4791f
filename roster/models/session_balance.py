from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, UniqueConstraint
from sqlalchemy.sql import func

from ..platform.database import Base


class SessionBalance(Base):
    __tablename__ = "session_balances"
    __table_args__ = (
        UniqueConstraint("player_id", "team_id", name="uq_session_balances_player_team"),
        CheckConstraint(
            "remaining_sessions = total_sessions - used_sessions",
            name="ck_session_balances_remaining",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, index=True, nullable=False)
    team_id = Column(Integer, index=True, nullable=False)
    total_sessions = Column(Integer, nullable=False, default=0)
    used_sessions = Column(Integer, nullable=False, default=0)
    # Negative values are overdrafts.
    remaining_sessions = Column(Integer, nullable=False, default=0)
    expiration_date = Column(Date, nullable=True)
    version = Column(Integer, nullable=False, default=1)
    last_updated_by_user = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_overdrawn(self) -> bool:
        return (self.remaining_sessions or 0) < 0
