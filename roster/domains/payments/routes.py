"""Payments, optionally carrying a block of prepaid sessions."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...deps import CurrentUser, get_current_user, require_team_mutation
from ...platform.database import get_db
from ...schemas.payment import PaymentCreate, PaymentCreateResponse, PaymentResponse
from ...services.payment_service import PaymentService

router = APIRouter(prefix="/teams/{team_id}/payments", tags=["Payments"])


@router.post("", response_model=PaymentCreateResponse, status_code=status.HTTP_201_CREATED)
def create_payment(
    team_id: int,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_team_mutation),
):
    result = PaymentService(db).create_payment(
        player_id=data.player_id,
        team_id=team_id,
        amount=data.amount,
        actor_id=current_user.id,
        paid_at=data.date,
        notes=data.notes,
        add_prepaid_sessions=data.add_prepaid_sessions,
        session_count=data.session_count,
    )
    return PaymentCreateResponse.model_validate(result)


@router.get("", response_model=List[PaymentResponse])
def list_payments(
    team_id: int,
    player_id: Optional[int] = Query(default=None, gt=0),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return PaymentService(db).list_payments(team_id, player_id=player_id)
