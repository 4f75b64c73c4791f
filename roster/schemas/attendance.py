from datetime import date, datetime
from typing import List

from pydantic import BaseModel, Field, StrictBool, field_validator

from .session import SessionTransactionResponse


def _calendar_day(value):
    # Accept full ISO timestamps from clients and keep only the day.
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and len(value.strip()) > 10:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).date()
    return value


class AttendanceRecordIn(BaseModel):
    player_id: int = Field(gt=0)
    present: StrictBool


class AttendanceSubmission(BaseModel):
    date: date
    records: List[AttendanceRecordIn]

    @field_validator("date", mode="before")
    @classmethod
    def _normalize_date(cls, value):
        return _calendar_day(value)


class AttendanceRecordResponse(BaseModel):
    id: int
    player_id: int
    team_id: int
    date: date
    present: bool
    last_updated_by_user: int

    model_config = {"from_attributes": True}


class AttendanceReconciliationResponse(BaseModel):
    team_id: int
    date: date
    records: List[AttendanceRecordResponse] = Field(default_factory=list)
    transactions: List[SessionTransactionResponse] = Field(default_factory=list)
    skipped_player_ids: List[int] = Field(default_factory=list)
    removed_player_ids: List[int] = Field(default_factory=list)
    sessions_used: int = 0
    sessions_restored: int = 0

    model_config = {"from_attributes": True}
