"""Unit tests for SessionBalanceStore: reads, creation, delta and snapshot writes."""

import pytest

from roster.models.session_balance import SessionBalance
from roster.services.session_balance_store import SessionBalanceStore
from roster.services.session_errors import (
    BalanceAlreadyExistsError,
    BalanceNotFoundError,
    ConcurrentBalanceUpdateError,
    SessionValidationError,
)


def _create(store, player_id=1, team_id=7, total=10, used=0):
    return store.create(
        SessionBalance(
            player_id=player_id,
            team_id=team_id,
            total_sessions=total,
            used_sessions=used,
            last_updated_by_user=1,
        )
    )


class TestCreateAndRead:

    def test_get_missing_returns_none(self, db):
        assert SessionBalanceStore(db).get(1, 7) is None

    def test_create_derives_remaining(self, db):
        store = SessionBalanceStore(db)
        balance = _create(store, total=10, used=3)
        db.commit()

        fetched = store.get(1, 7)
        assert fetched.id == balance.id
        assert fetched.remaining_sessions == 7
        assert fetched.version == 1

    def test_create_rejects_inconsistent_counters(self, db):
        store = SessionBalanceStore(db)
        with pytest.raises(SessionValidationError):
            store.create(
                SessionBalance(
                    player_id=1,
                    team_id=7,
                    total_sessions=10,
                    used_sessions=0,
                    remaining_sessions=4,
                    last_updated_by_user=1,
                )
            )
        assert store.get(1, 7) is None

    def test_create_twice_raises(self, db):
        store = SessionBalanceStore(db)
        _create(store)
        db.commit()
        with pytest.raises(BalanceAlreadyExistsError):
            _create(store)

    def test_list_by_team_orders_by_player(self, db):
        store = SessionBalanceStore(db)
        _create(store, player_id=3)
        _create(store, player_id=1)
        _create(store, player_id=2, team_id=8)
        db.commit()
        assert [b.player_id for b in store.list_by_team(7)] == [1, 3]

    def test_lock_many_skips_missing_players(self, db):
        store = SessionBalanceStore(db)
        _create(store, player_id=1)
        _create(store, player_id=3)
        db.commit()
        locked = store.lock_many(7, [3, 2, 1])
        assert sorted(locked) == [1, 3]
        assert store.lock_many(7, []) == {}


class TestApplyDelta:

    def test_adds_to_total_and_remaining(self, db):
        store = SessionBalanceStore(db)
        _create(store, total=10)
        db.commit()

        balance = store.apply_delta(1, 7, 5, total_delta=5, actor_id=2)
        assert balance.total_sessions == 15
        assert balance.used_sessions == 0
        assert balance.remaining_sessions == 15
        assert balance.version == 2
        assert balance.last_updated_by_user == 2

    def test_consumption_can_overdraw(self, db):
        store = SessionBalanceStore(db)
        _create(store, total=0)
        db.commit()

        balance = store.apply_delta(1, 7, -1, used_delta=1)
        assert balance.used_sessions == 1
        assert balance.remaining_sessions == -1

    def test_missing_balance_raises(self, db):
        with pytest.raises(BalanceNotFoundError):
            SessionBalanceStore(db).apply_delta(1, 7, 1, total_delta=1)

    def test_inconsistent_deltas_rejected(self, db):
        store = SessionBalanceStore(db)
        _create(store)
        db.commit()
        with pytest.raises(SessionValidationError):
            store.apply_delta(1, 7, 2, total_delta=1)
        assert store.get(1, 7).remaining_sessions == 10


class TestReplaceSnapshot:

    def test_writes_all_counters_and_bumps_version(self, db):
        store = SessionBalanceStore(db)
        balance = _create(store, total=10, used=2)
        db.commit()

        updated = store.replace_snapshot(
            balance,
            expected_version=1,
            total_sessions=12,
            used_sessions=2,
            remaining_sessions=10,
            expiration_date=None,
            actor_id=4,
        )
        assert updated.total_sessions == 12
        assert updated.remaining_sessions == 10
        assert updated.version == 2
        assert updated.last_updated_by_user == 4

    def test_stale_version_raises(self, db):
        store = SessionBalanceStore(db)
        balance = _create(store)
        db.commit()
        store.apply_delta(1, 7, 1, total_delta=1)

        with pytest.raises(ConcurrentBalanceUpdateError):
            store.replace_snapshot(
                balance,
                expected_version=1,
                total_sessions=3,
                used_sessions=0,
                remaining_sessions=3,
                expiration_date=None,
                actor_id=1,
            )
