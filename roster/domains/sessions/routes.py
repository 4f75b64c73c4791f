"""Prepaid session balances, their ledger, and manual adjustments."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...deps import CurrentUser, get_current_user, require_team_mutation
from ...platform.config import settings
from ...platform.database import get_db
from ...schemas.session import (
    BalanceAdjustmentRequest,
    BalanceAdjustmentResponse,
    PlayerSessionsResponse,
    SessionBalanceResponse,
    SessionTransactionPage,
    SessionTransactionResponse,
)
from ...services.balance_adjustment_service import BalanceAdjustmentService
from ...services.session_balance_store import SessionBalanceStore
from ...services.session_ledger import SessionTransactionLedger

router = APIRouter(prefix="/teams/{team_id}", tags=["Sessions"])


def _page_size(limit: Optional[int]) -> int:
    return limit if limit is not None else settings.DEFAULT_LEDGER_PAGE_SIZE


@router.get("/sessions", response_model=List[SessionBalanceResponse])
def list_balances(
    team_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return SessionBalanceStore(db).list_by_team(team_id)


@router.get("/sessions/{player_id}", response_model=PlayerSessionsResponse)
def get_player_sessions(
    team_id: int,
    player_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    balance = SessionBalanceStore(db).get(player_id, team_id)
    transactions = SessionTransactionLedger(db).list_by_player(
        player_id, team_id, limit=settings.DEFAULT_LEDGER_PAGE_SIZE
    )
    return PlayerSessionsResponse(
        balance=SessionBalanceResponse.model_validate(balance) if balance is not None else None,
        transactions=[SessionTransactionResponse.model_validate(entry) for entry in transactions],
    )


@router.get("/sessions/{player_id}/transactions", response_model=SessionTransactionPage)
def list_player_transactions(
    team_id: int,
    player_id: int,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    ledger = SessionTransactionLedger(db)
    page_size = _page_size(limit)
    return SessionTransactionPage(
        items=[
            SessionTransactionResponse.model_validate(entry)
            for entry in ledger.list_by_player(player_id, team_id, limit=page_size, offset=offset)
        ],
        total=ledger.count_by_player(player_id, team_id),
        limit=page_size,
        offset=offset,
    )


@router.put("/sessions/{player_id}", response_model=BalanceAdjustmentResponse)
def adjust_balance(
    team_id: int,
    player_id: int,
    data: BalanceAdjustmentRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_team_mutation),
):
    kwargs = {}
    # An omitted expiration_date keeps the stored one; an explicit null clears it.
    if "expiration_date" in data.model_fields_set:
        kwargs["expiration_date"] = data.expiration_date
    result = BalanceAdjustmentService(db).adjust(
        player_id,
        team_id,
        remaining_sessions=data.remaining_sessions,
        total_sessions=data.total_sessions,
        notes=data.notes,
        actor_id=current_user.id,
        **kwargs,
    )
    return BalanceAdjustmentResponse.model_validate(result)


@router.get("/session-transactions", response_model=List[SessionTransactionResponse])
def list_team_transactions(
    team_id: int,
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return SessionTransactionLedger(db).list_by_team(team_id, limit=_page_size(limit), offset=offset)
