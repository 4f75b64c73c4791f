from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, StrictInt


class SessionBalanceResponse(BaseModel):
    id: int
    player_id: int
    team_id: int
    total_sessions: int
    used_sessions: int
    remaining_sessions: int
    expiration_date: Optional[date] = None
    version: int
    last_updated_by_user: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SessionTransactionResponse(BaseModel):
    id: int
    player_id: int
    team_id: int
    date: datetime
    session_change: int
    reason: str
    notes: Optional[str] = None
    payment_id: Optional[int] = None
    attendance_id: Optional[int] = None
    last_updated_by_user: int

    model_config = {"from_attributes": True}


class SessionTransactionPage(BaseModel):
    items: List[SessionTransactionResponse] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int = 0


class PlayerSessionsResponse(BaseModel):
    balance: Optional[SessionBalanceResponse] = None
    transactions: List[SessionTransactionResponse] = Field(default_factory=list)


class BalanceAdjustmentRequest(BaseModel):
    remaining_sessions: StrictInt
    total_sessions: Optional[StrictInt] = Field(default=None, ge=0)
    expiration_date: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class BalanceAdjustmentResponse(BaseModel):
    balance: SessionBalanceResponse
    transaction: Optional[SessionTransactionResponse] = None
    session_change: int
    created_balance: bool

    model_config = {"from_attributes": True}
