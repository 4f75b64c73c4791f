"""Attendance submissions and the session charges they drive."""
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...deps import CurrentUser, get_current_user, require_team_mutation
from ...platform.database import get_db
from ...schemas.attendance import (
    AttendanceReconciliationResponse,
    AttendanceRecordResponse,
    AttendanceSubmission,
)
from ...services.attendance_reconciler import AttendanceReconciler
from ...services.attendance_repository import AttendanceRepository

router = APIRouter(prefix="/teams/{team_id}/attendance", tags=["Attendance"])


@router.post("", response_model=AttendanceReconciliationResponse)
def submit_attendance(
    team_id: int,
    data: AttendanceSubmission,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_team_mutation),
):
    result = AttendanceReconciler(db).reconcile(
        team_id,
        data.date,
        [record.model_dump() for record in data.records],
        actor_id=current_user.id,
    )
    return AttendanceReconciliationResponse.model_validate(result)


@router.get("", response_model=List[AttendanceRecordResponse])
def list_attendance(
    team_id: int,
    on_date: date = Query(alias="date"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return AttendanceRepository(db).for_date(team_id, on_date)
