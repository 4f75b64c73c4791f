"""Manual balance adjustments."""

import pytest
from datetime import date

from roster.models.session_transaction import SessionTransaction
from roster.services.balance_adjustment_service import BalanceAdjustmentService, adjustment_note
from roster.services.payment_service import PaymentService
from roster.services.session_errors import SessionValidationError
from tests.conftest import assert_ledger_matches

TEAM = 7


def _buy(db, player_id=1, count=10):
    PaymentService(db).create_payment(
        player_id=player_id,
        team_id=TEAM,
        amount=100,
        actor_id=1,
        add_prepaid_sessions=True,
        session_count=count,
    )


class TestAdjustExistingBalance:

    def test_remaining_only_keeps_used(self, db):
        _buy(db, count=10)

        result = BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=15, actor_id=2)

        balance = assert_ledger_matches(db, 1, TEAM)
        assert (balance.total_sessions, balance.used_sessions, balance.remaining_sessions) == (15, 0, 15)
        assert result.session_change == 5
        assert result.created_balance is False
        assert result.transaction.reason == "adjustment"
        assert result.transaction.notes == "Manual adjustment: Added 5 sessions"
        assert result.transaction.payment_id is None
        assert result.transaction.attendance_id is None

    def test_removing_sessions(self, db):
        _buy(db, count=10)

        result = BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=4, actor_id=2, notes="Injury credit")

        assert result.session_change == -6
        assert result.transaction.notes == "Manual adjustment: Removed 6 sessions - Injury credit"
        balance = assert_ledger_matches(db, 1, TEAM)
        assert (balance.total_sessions, balance.used_sessions) == (4, 0)

    def test_explicit_total_sets_used(self, db):
        _buy(db, count=10)

        BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=6, total_sessions=10, actor_id=2)

        balance = assert_ledger_matches(db, 1, TEAM)
        assert (balance.total_sessions, balance.used_sessions, balance.remaining_sessions) == (10, 4, 6)

    def test_no_change_appends_nothing(self, db):
        _buy(db, count=10)

        result = BalanceAdjustmentService(db).adjust(
            1, TEAM, remaining_sessions=10, actor_id=2, expiration_date=date(2024, 6, 30)
        )

        assert result.transaction is None
        assert result.session_change == 0
        assert db.query(SessionTransaction).count() == 1
        balance = assert_ledger_matches(db, 1, TEAM)
        assert balance.expiration_date == date(2024, 6, 30)

    def test_expiration_kept_when_not_given(self, db):
        _buy(db, count=10)
        service = BalanceAdjustmentService(db)
        service.adjust(1, TEAM, remaining_sessions=10, actor_id=2, expiration_date="2024-06-30")

        service.adjust(1, TEAM, remaining_sessions=8, actor_id=2)

        assert assert_ledger_matches(db, 1, TEAM).expiration_date == date(2024, 6, 30)

    def test_explicit_none_clears_expiration(self, db):
        _buy(db, count=10)
        service = BalanceAdjustmentService(db)
        service.adjust(1, TEAM, remaining_sessions=10, actor_id=2, expiration_date=date(2024, 6, 30))

        service.adjust(1, TEAM, remaining_sessions=10, actor_id=2, expiration_date=None)

        assert assert_ledger_matches(db, 1, TEAM).expiration_date is None

    def test_negative_used_rejected(self, db):
        _buy(db, count=10)

        with pytest.raises(SessionValidationError):
            BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=12, total_sessions=10, actor_id=2)

        balance = assert_ledger_matches(db, 1, TEAM)
        assert balance.remaining_sessions == 10
        assert balance.version == 1

    def test_overdraft_target_below_used_sessions(self, db):
        _buy(db, count=10)

        result = BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=-2, actor_id=2)

        assert result.session_change == -12
        assert result.transaction.notes == "Manual adjustment: Removed 12 sessions"
        balance = assert_ledger_matches(db, 1, TEAM)
        assert (balance.total_sessions, balance.used_sessions, balance.remaining_sessions) == (0, 2, -2)
        assert balance.is_overdrawn

    def test_overdraft_target_keeps_used_when_covered(self, db):
        _buy(db, count=10)
        BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=7, total_sessions=10, actor_id=2)

        BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=-1, actor_id=2)

        balance = assert_ledger_matches(db, 1, TEAM)
        assert (balance.total_sessions, balance.used_sessions, balance.remaining_sessions) == (2, 3, -1)

    def test_adjustment_bumps_version(self, db):
        _buy(db, count=10)

        result = BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=3, actor_id=2)

        assert result.balance.version == 2


class TestAdjustMissingBalance:

    def test_creates_balance(self, db):
        result = BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=5, actor_id=2)

        assert result.created_balance is True
        balance = assert_ledger_matches(db, 1, TEAM)
        assert (balance.total_sessions, balance.used_sessions, balance.remaining_sessions) == (5, 0, 5)
        assert result.transaction.session_change == 5

    def test_zero_creates_balance_without_ledger_row(self, db):
        result = BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=0, actor_id=2)

        assert result.created_balance is True
        assert result.transaction is None
        assert db.query(SessionTransaction).count() == 0
        assert assert_ledger_matches(db, 1, TEAM).remaining_sessions == 0

    def test_negative_start_records_overdraft(self, db):
        BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=-2, actor_id=2)

        balance = assert_ledger_matches(db, 1, TEAM)
        assert (balance.total_sessions, balance.used_sessions, balance.remaining_sessions) == (0, 2, -2)


class TestValidation:

    @pytest.mark.parametrize("remaining", [None, "5", 2.0, True])
    def test_non_integer_remaining_rejected(self, db, remaining):
        with pytest.raises(SessionValidationError):
            BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=remaining, actor_id=2)

    def test_negative_total_rejected(self, db):
        with pytest.raises(SessionValidationError):
            BalanceAdjustmentService(db).adjust(1, TEAM, remaining_sessions=0, total_sessions=-1, actor_id=2)

    def test_adjustment_note(self):
        assert adjustment_note(3) == "Manual adjustment: Added 3 sessions"
        assert adjustment_note(-1, "typo") == "Manual adjustment: Removed 1 sessions - typo"
