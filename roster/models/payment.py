from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from ..platform.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, index=True, nullable=False)
    team_id = Column(Integer, index=True, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(String, nullable=True)
    last_updated_by_user = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
