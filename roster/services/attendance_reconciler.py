"""Attendance-driven session consumption.

A submission is the complete desired attendance for one team on one day.
Only players whose presence flips are charged (absent -> present) or
refunded (present -> absent); resubmitting the same payload changes nothing
in the ledger. The whole submission is one unit of work: attendance rows,
balances and ledger rows either all commit or none do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.attendance import Attendance
from ..models.session_balance import SessionBalance
from ..models.session_transaction import SessionTransaction, SessionTransactionReason
from ..platform.config import settings
from ..platform.database import unit_of_work
from .attendance_repository import AttendanceRepository
from .session_accounting import apply_session_change
from .session_balance_store import SessionBalanceStore
from .session_errors import ConcurrentAttendanceUpdateError, SessionOverdraftError, SessionValidationError
from .session_ledger import SessionTransactionLedger
from .session_validation import coerce_date, require_positive_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceMark:
    player_id: int
    present: bool


@dataclass
class AttendanceReconciliation:
    team_id: int
    date: date
    records: List[Attendance] = field(default_factory=list)
    transactions: List[SessionTransaction] = field(default_factory=list)
    skipped_player_ids: List[int] = field(default_factory=list)
    removed_player_ids: List[int] = field(default_factory=list)

    @property
    def sessions_used(self) -> int:
        return sum(1 for entry in self.transactions if entry.session_change < 0)

    @property
    def sessions_restored(self) -> int:
        return sum(1 for entry in self.transactions if entry.session_change > 0)


def _read_field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def normalize_marks(records: Iterable[Any]) -> List[AttendanceMark]:
    """Validate a whole batch before anything is written."""
    if records is None or isinstance(records, (str, bytes, Mapping)):
        raise SessionValidationError("records must be a list of attendance marks")
    marks: List[AttendanceMark] = []
    seen: set[int] = set()
    for index, record in enumerate(records):
        player_id = require_positive_int(_read_field(record, "player_id"), f"records[{index}].player_id")
        present = _read_field(record, "present")
        if not isinstance(present, bool):
            raise SessionValidationError(f"records[{index}].present must be a boolean")
        if player_id in seen:
            raise SessionValidationError(f"Player {player_id} appears more than once in the submission")
        seen.add(player_id)
        marks.append(AttendanceMark(player_id=player_id, present=present))
    return marks


class AttendanceReconciler:
    def __init__(
        self,
        db: Session,
        *,
        balances: Optional[SessionBalanceStore] = None,
        ledger: Optional[SessionTransactionLedger] = None,
        attendance: Optional[AttendanceRepository] = None,
        overdraft_policy: Optional[str] = None,
    ):
        self.db = db
        self.balances = balances or SessionBalanceStore(db)
        self.ledger = ledger or SessionTransactionLedger(db)
        self.attendance = attendance or AttendanceRepository(db)
        self.overdraft_policy = overdraft_policy or settings.SESSION_OVERDRAFT_POLICY

    def reconcile(
        self,
        team_id: int,
        on_date: Any,
        records: Iterable[Any],
        *,
        actor_id: int,
    ) -> AttendanceReconciliation:
        team_id = require_positive_int(team_id, "team_id")
        actor_id = require_positive_int(actor_id, "actor_id")
        on_date = coerce_date(on_date)
        marks = normalize_marks(records)

        with unit_of_work(self.db):
            result = self._reconcile(team_id, on_date, marks, actor_id)

        logger.info(
            "Attendance reconciled team=%s date=%s records=%d used=%d restored=%d skipped=%d",
            team_id,
            on_date.isoformat(),
            len(result.records),
            result.sessions_used,
            result.sessions_restored,
            len(result.skipped_player_ids),
            extra={"team_id": team_id, "user_id": actor_id},
        )
        return result

    def _reconcile(
        self,
        team_id: int,
        on_date: date,
        marks: List[AttendanceMark],
        actor_id: int,
    ) -> AttendanceReconciliation:
        result = AttendanceReconciliation(team_id=team_id, date=on_date)

        # Lock every balance the submission can touch before reading the stored
        # attendance, so concurrent submissions for the same players serialize.
        player_ids = {mark.player_id for mark in marks}
        player_ids.update(row.player_id for row in self.attendance.for_date(team_id, on_date))
        locked = self.balances.lock_many(team_id, player_ids)

        stored = self.attendance.for_date(team_id, on_date, for_update=True)
        late_ids = {row.player_id for row in stored} - player_ids
        if late_ids:
            locked.update(self.balances.lock_many(team_id, late_ids))
        existing: Dict[int, Attendance] = {row.player_id: row for row in stored}

        # player_id -> (now present?, attendance row)
        flips: Dict[int, tuple[bool, Attendance]] = {}
        for mark in marks:
            row = existing.pop(mark.player_id, None)
            was_present = bool(row.present) if row is not None else False
            if row is None:
                row = self.attendance.add(
                    Attendance(
                        player_id=mark.player_id,
                        team_id=team_id,
                        date=on_date,
                        present=mark.present,
                        last_updated_by_user=actor_id,
                    )
                )
            elif row.present != mark.present:
                row.present = mark.present
                row.last_updated_by_user = actor_id
            if was_present != mark.present:
                flips[mark.player_id] = (mark.present, row)

        # Players left out of a full replacement set count as absent.
        for player_id, row in existing.items():
            if row.present:
                flips[player_id] = (False, row)
            result.removed_player_ids.append(player_id)
            self.attendance.delete(row)

        try:
            self.db.flush()
        except IntegrityError as exc:
            # Another submission inserted the same (team, player, date) first.
            raise ConcurrentAttendanceUpdateError(
                f"Attendance for team {team_id} on {on_date.isoformat()} was modified concurrently"
            ) from exc

        outstanding = self.ledger.net_change_by_attendance(
            row.id for now_present, row in flips.values() if not now_present
        )
        for player_id in sorted(flips):
            now_present, row = flips[player_id]
            if player_id not in locked:
                # Not on a prepaid plan: nothing to charge or refund.
                logger.info(
                    "No session balance for player=%s team=%s, attendance change not charged",
                    player_id,
                    team_id,
                    extra={"team_id": team_id, "player_id": player_id},
                )
                result.skipped_player_ids.append(player_id)
                continue
            if now_present:
                used_delta = 1
                notes = f"Used 1 session for attendance on {on_date.isoformat()}"
            else:
                if outstanding.get(row.id, 0) >= 0:
                    # Marked present before the balance existed, so nothing was charged.
                    logger.info(
                        "No outstanding charge for player=%s team=%s date=%s, nothing to restore",
                        player_id,
                        team_id,
                        on_date.isoformat(),
                        extra={"team_id": team_id, "player_id": player_id},
                    )
                    result.skipped_player_ids.append(player_id)
                    continue
                used_delta = -1
                notes = f"Restored 1 session for attendance on {on_date.isoformat()}"
            balance, entry = apply_session_change(
                self.balances,
                self.ledger,
                player_id=player_id,
                team_id=team_id,
                reason=SessionTransactionReason.ATTENDANCE,
                actor_id=actor_id,
                used_delta=used_delta,
                attendance_id=row.id,
                notes=notes,
            )
            if now_present:
                self._check_overdraft(balance)
            result.transactions.append(entry)

        result.records = self.attendance.for_date(team_id, on_date)
        return result

    def _check_overdraft(self, balance: SessionBalance) -> None:
        if not balance.is_overdrawn or self.overdraft_policy == "allow":
            return
        if self.overdraft_policy == "reject":
            raise SessionOverdraftError(
                f"Player {balance.player_id} has no remaining sessions on team {balance.team_id}"
            )
        logger.warning(
            "Session balance overdrawn player=%s team=%s remaining=%s",
            balance.player_id,
            balance.team_id,
            balance.remaining_sessions,
            extra={"team_id": balance.team_id, "player_id": balance.player_id},
        )
