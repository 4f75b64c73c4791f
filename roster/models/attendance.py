from sqlalchemy import Boolean, Column, Date, Integer, UniqueConstraint

from ..platform.database import Base


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("team_id", "player_id", "date", name="uq_attendance_team_player_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, index=True, nullable=False)
    team_id = Column(Integer, index=True, nullable=False)
    date = Column(Date, index=True, nullable=False)
    present = Column(Boolean, nullable=False)
    last_updated_by_user = Column(Integer, nullable=False)
