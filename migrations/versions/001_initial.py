"""Create users, caregiver links, months, runs, readings and medical profiles.

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

MEAL_CONTEXTS = (
    "BEFORE_BREAKFAST",
    "AFTER_BREAKFAST",
    "BEFORE_LUNCH",
    "AFTER_LUNCH",
    "BEFORE_DINNER",
    "AFTER_DINNER",
    "BEDTIME",
    "WAKEUP",
    "FASTING",
    "OTHER",
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    postgresql.ENUM("standard", "caregiver", name="userrole").create(op.get_bind())
    postgresql.ENUM(*MEAL_CONTEXTS, name="mealcontext").create(op.get_bind())

    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("external_auth_id", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            postgresql.ENUM("standard", "caregiver", name="userrole", create_type=False),
            nullable=False,
            server_default="standard",
        ),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_users_external_auth_id"), "users", ["external_auth_id"], unique=True
    )

    op.create_table(
        "caregiver_links",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("caregiver_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["caregiver_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("caregiver_id", "user_id", name="uq_caregiver_user"),
        sa.CheckConstraint("caregiver_id != user_id", name="ck_no_self_link"),
    )
    op.create_index(
        op.f("ix_caregiver_links_caregiver_id"), "caregiver_links", ["caregiver_id"]
    )
    op.create_index(op.f("ix_caregiver_links_user_id"), "caregiver_links", ["user_id"])

    op.create_table(
        "months",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("average_glucose", sa.Float(), nullable=True),
        sa.Column("calculated_a1c", sa.Float(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_date <= end_date", name="ck_month_date_order"),
    )
    op.create_index(op.f("ix_months_user_id"), "months", ["user_id"])
    op.create_index("ix_months_user_start", "months", ["user_id", "start_date"])

    op.create_table(
        "runs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("month_id", sa.UUID(), nullable=True),
        sa.Column("average_glucose", sa.Float(), nullable=True),
        sa.Column("calculated_a1c", sa.Float(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["month_id"], ["months.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_date <= end_date", name="ck_run_date_order"),
    )
    op.create_index(op.f("ix_runs_user_id"), "runs", ["user_id"])
    op.create_index(op.f("ix_runs_month_id"), "runs", ["month_id"])
    op.create_index("ix_runs_user_start", "runs", ["user_id", "start_date"])

    op.create_table(
        "glucose_readings",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "meal_context",
            postgresql.ENUM(*MEAL_CONTEXTS, name="mealcontext", create_type=False),
            nullable=False,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("run_id", sa.UUID(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["run_id"], ["runs.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_glucose_readings_user_id"), "glucose_readings", ["user_id"])
    op.create_index(op.f("ix_glucose_readings_run_id"), "glucose_readings", ["run_id"])
    # Index for querying recent readings for a user
    op.create_index(
        "ix_glucose_readings_user_timestamp",
        "glucose_readings",
        ["user_id", "timestamp"],
    )

    op.create_table(
        "user_medical_profiles",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("target_a1c", sa.Float(), nullable=True),
        sa.Column("estimated_average_glucose", sa.Float(), nullable=True),
        sa.Column("estimated_a1c", sa.Float(), nullable=True),
        sa.Column(
            "estimate_reading_count", sa.Integer(), nullable=False, server_default="0"
        ),
        sa.Column("estimated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_user_medical_profiles_user_id"),
        "user_medical_profiles",
        ["user_id"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_user_medical_profiles_user_id"), table_name="user_medical_profiles"
    )
    op.drop_table("user_medical_profiles")

    op.drop_index("ix_glucose_readings_user_timestamp", table_name="glucose_readings")
    op.drop_index(op.f("ix_glucose_readings_run_id"), table_name="glucose_readings")
    op.drop_index(op.f("ix_glucose_readings_user_id"), table_name="glucose_readings")
    op.drop_table("glucose_readings")

    op.drop_index("ix_runs_user_start", table_name="runs")
    op.drop_index(op.f("ix_runs_month_id"), table_name="runs")
    op.drop_index(op.f("ix_runs_user_id"), table_name="runs")
    op.drop_table("runs")

    op.drop_index("ix_months_user_start", table_name="months")
    op.drop_index(op.f("ix_months_user_id"), table_name="months")
    op.drop_table("months")

    op.drop_index(op.f("ix_caregiver_links_user_id"), table_name="caregiver_links")
    op.drop_index(op.f("ix_caregiver_links_caregiver_id"), table_name="caregiver_links")
    op.drop_table("caregiver_links")

    op.drop_index(op.f("ix_users_external_auth_id"), table_name="users")
    op.drop_table("users")

    postgresql.ENUM(*MEAL_CONTEXTS, name="mealcontext").drop(op.get_bind())
    postgresql.ENUM("standard", "caregiver", name="userrole").drop(op.get_bind())
