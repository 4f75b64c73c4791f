import os
# Override DATABASE_URL before any roster imports to avoid PostgreSQL driver requirement
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.pop("DATABASE_PUBLIC_URL", None)
# User 1 manages every team, user 2 manages team 7 only, user 3 manages nothing.
os.environ["TEAM_MANAGERS_JSON"] = '{"1": ["*"], "2": [7]}'
os.environ["SESSION_OVERDRAFT_POLICY"] = "allow"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from roster.platform.database import Base, get_db
from roster.main import app
from roster.models.session_balance import SessionBalance
from roster.models.session_transaction import SessionTransaction

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False, "timeout": 30})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

MANAGER_ID = 1
COACH_ID = 2
OUTSIDER_ID = 3


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def db():
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db):
    """Open extra sessions on the test database (closed at teardown)."""
    opened = []

    def _open():
        session = TestingSessionLocal()
        opened.append(session)
        return session

    yield _open
    for session in opened:
        session.close()


@pytest.fixture(scope="function")
def client(db):
    app.dependency_overrides[get_db] = override_get_db
    Base.metadata.create_all(bind=engine)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def user_headers(user_id=MANAGER_ID) -> dict:
    return {"X-User-Id": str(user_id)}


def assert_ledger_matches(db, player_id: int, team_id: int) -> SessionBalance:
    """Balance invariant holds and the ledger sums to remaining_sessions."""
    db.expire_all()
    balance = (
        db.query(SessionBalance)
        .filter(SessionBalance.player_id == player_id, SessionBalance.team_id == team_id)
        .one()
    )
    assert balance.remaining_sessions == balance.total_sessions - balance.used_sessions
    changes = [
        row.session_change
        for row in db.query(SessionTransaction).filter(
            SessionTransaction.player_id == player_id,
            SessionTransaction.team_id == team_id,
        )
    ]
    assert 0 not in changes
    assert sum(changes) == balance.remaining_sessions
    return balance
