"""Initial schema: builds, payments, stripe_events, profiles.

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "builds",
        sa.Column("id", sa.String(128), primary_key=True),
        sa.Column("build_id", sa.String(200), nullable=False),
        sa.Column("platform", sa.String(20), nullable=False),
        sa.Column("app_name", sa.String(200), nullable=False),
        sa.Column("package_id", sa.String(200), nullable=True),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("download_url", sa.String(2000), nullable=True),
        sa.Column("aab_download_url", sa.String(2000), nullable=True),
        sa.Column("artifact_url", sa.String(2000), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("is_synthesized", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("idempotency_key", sa.String(200), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_builds_build_id", "builds", ["build_id"], unique=True)
    op.create_index("ix_builds_user_id", "builds", ["user_id"])
    op.create_index("ix_builds_idempotency_key", "builds", ["idempotency_key"])

    op.create_table(
        "payments",
        sa.Column("payment_id", sa.String(128), primary_key=True),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("build_id", sa.String(200), nullable=False),
        sa.Column("stripe_session_id", sa.String(255), nullable=False),
        sa.Column("stripe_payment_intent_id", sa.String(255), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])
    op.create_index("ix_payments_build_id", "payments", ["build_id"])
    op.create_index("ix_payments_stripe_session_id", "payments", ["stripe_session_id"])
    op.create_index(
        "uq_payments_build_completed",
        "payments",
        ["build_id"],
        unique=True,
        postgresql_where=sa.text("status = 'completed'"),
        sqlite_where=sa.text("status = 'completed'"),
    )

    op.create_table(
        "stripe_events",
        sa.Column("event_id", sa.String(255), primary_key=True),
        sa.Column("event_type", sa.String(255), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(128), primary_key=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("full_name", sa.String(200), nullable=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("profiles")
    op.drop_table("stripe_events")
    op.drop_index("uq_payments_build_completed", table_name="payments")
    op.drop_table("payments")
    op.drop_table("builds")
