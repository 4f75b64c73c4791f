from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, StrictInt, model_validator

from .session import SessionBalanceResponse, SessionTransactionResponse


class PaymentCreate(BaseModel):
    player_id: int = Field(gt=0)
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    date: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    add_prepaid_sessions: bool = False
    session_count: Optional[StrictInt] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _require_session_count(self):
        if self.add_prepaid_sessions and self.session_count is None:
            raise ValueError("session_count is required when add_prepaid_sessions is true")
        return self


class PaymentResponse(BaseModel):
    id: int
    player_id: int
    team_id: int
    amount: Decimal
    date: datetime
    notes: Optional[str] = None
    last_updated_by_user: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SessionGrantResponse(BaseModel):
    session_count: int
    created_balance: bool
    balance: SessionBalanceResponse
    transaction: SessionTransactionResponse

    model_config = {"from_attributes": True}


class PaymentCreateResponse(BaseModel):
    payment: PaymentResponse
    grant: Optional[SessionGrantResponse] = None

    model_config = {"from_attributes": True}
