"""Create prepaid session ledger tables.

Revision ID: 001_prepaid_session_ledger
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001_prepaid_session_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("last_updated_by_user", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_payments_id", "payments", ["id"], unique=False)
    op.create_index("ix_payments_player_id", "payments", ["player_id"], unique=False)
    op.create_index("ix_payments_team_id", "payments", ["team_id"], unique=False)

    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("present", sa.Boolean(), nullable=False),
        sa.Column("last_updated_by_user", sa.Integer(), nullable=False),
        sa.UniqueConstraint("team_id", "player_id", "date", name="uq_attendance_team_player_date"),
    )
    op.create_index("ix_attendance_id", "attendance", ["id"], unique=False)
    op.create_index("ix_attendance_player_id", "attendance", ["player_id"], unique=False)
    op.create_index("ix_attendance_team_id", "attendance", ["team_id"], unique=False)
    op.create_index("ix_attendance_date", "attendance", ["date"], unique=False)

    op.create_table(
        "session_balances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("total_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("used_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("remaining_sessions", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expiration_date", sa.Date(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("last_updated_by_user", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("player_id", "team_id", name="uq_session_balances_player_team"),
        sa.CheckConstraint(
            "remaining_sessions = total_sessions - used_sessions",
            name="ck_session_balances_remaining",
        ),
    )
    op.create_index("ix_session_balances_id", "session_balances", ["id"], unique=False)
    op.create_index("ix_session_balances_player_id", "session_balances", ["player_id"], unique=False)
    op.create_index("ix_session_balances_team_id", "session_balances", ["team_id"], unique=False)

    op.create_table(
        "session_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("player_id", sa.Integer(), nullable=False),
        sa.Column("team_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("session_change", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(), nullable=False),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("payment_id", sa.Integer(), nullable=True),
        sa.Column("attendance_id", sa.Integer(), nullable=True),
        sa.Column("last_updated_by_user", sa.Integer(), nullable=False),
        sa.CheckConstraint("session_change <> 0", name="ck_session_transactions_nonzero"),
        sa.CheckConstraint(
            "reason IN ('purchase', 'attendance', 'adjustment')",
            name="ck_session_transactions_reason",
        ),
        sa.CheckConstraint(
            "payment_id IS NULL OR attendance_id IS NULL",
            name="ck_session_transactions_single_reference",
        ),
    )
    op.create_index("ix_session_transactions_id", "session_transactions", ["id"], unique=False)
    op.create_index(
        "ix_session_transactions_player_team",
        "session_transactions",
        ["player_id", "team_id"],
        unique=False,
    )
    op.create_index("ix_session_transactions_team_id", "session_transactions", ["team_id"], unique=False)
    op.create_index("ix_session_transactions_date", "session_transactions", ["date"], unique=False)
    op.create_index("ix_session_transactions_payment_id", "session_transactions", ["payment_id"], unique=False)
    op.create_index(
        "ix_session_transactions_attendance_id",
        "session_transactions",
        ["attendance_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_table("session_transactions")
    op.drop_table("session_balances")
    op.drop_table("attendance")
    op.drop_table("payments")
