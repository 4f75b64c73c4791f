from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.attendance import Attendance


class AttendanceRepository:
    def __init__(self, db: Session):
        self.db = db

    def for_date(self, team_id: int, on_date: date, *, for_update: bool = False) -> List[Attendance]:
        query = (
            self.db.query(Attendance)
            .filter(Attendance.team_id == team_id, Attendance.date == on_date)
            .order_by(Attendance.player_id)
        )
        if for_update:
            # Fresh values from the database, not the session's identity map.
            query = query.populate_existing().with_for_update()
        return query.all()

    def list_by_team(
        self,
        team_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Attendance]:
        query = self.db.query(Attendance).filter(Attendance.team_id == team_id)
        if start_date is not None:
            query = query.filter(Attendance.date >= start_date)
        if end_date is not None:
            query = query.filter(Attendance.date <= end_date)
        return query.order_by(Attendance.date.desc(), Attendance.player_id).all()

    def add(self, row: Attendance) -> Attendance:
        self.db.add(row)
        return row

    def delete(self, row: Attendance) -> None:
        self.db.delete(row)
