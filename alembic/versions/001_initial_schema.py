"""Initial schema: digest settings, digest history, job runs

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "digest_settings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("schedule_time", sa.String(5), nullable=False, server_default="08:00"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="Asia/Jakarta"),
        sa.Column("topics", sa.JSON(), nullable=False),
        sa.Column("custom_prompt", sa.Text(), nullable=True),
        sa.Column("language", sa.String(5), nullable=False, server_default="id"),
        sa.Column("push_token", sa.String(255), nullable=True),
        sa.Column("utc_hour", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("utc_minute", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_digest_settings_user_id", "digest_settings", ["user_id"], unique=True)
    op.create_index("ix_digest_settings_utc_hour", "digest_settings", ["utc_hour"])

    op.create_table(
        "digest_history",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("topics", sa.JSON(), nullable=False),
        sa.Column("language", sa.String(5), nullable=False, server_default="id"),
        sa.Column("sources", sa.JSON(), nullable=False),
        sa.Column("sent_at", sa.DateTime(), nullable=False),
        sa.Column("read_at", sa.DateTime(), nullable=True),
        sa.Column("notification_id", sa.String(64), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_digest_history_user_id", "digest_history", ["user_id"])
    op.create_index("ix_digest_history_sent_at", "digest_history", ["sent_at"])
    op.create_index("ix_digest_history_user_sent", "digest_history", ["user_id", "sent_at"])

    op.create_table(
        "job_runs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("job_id", sa.String(100), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("finished_at", sa.DateTime(), nullable=False),
        sa.Column("outcome", sa.String(20), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_job_runs_job_id", "job_runs", ["job_id"])
    op.create_index("ix_job_runs_scheduled_at", "job_runs", ["scheduled_at"])


def downgrade() -> None:
    op.drop_index("ix_job_runs_scheduled_at", table_name="job_runs")
    op.drop_index("ix_job_runs_job_id", table_name="job_runs")
    op.drop_table("job_runs")

    op.drop_index("ix_digest_history_user_sent", table_name="digest_history")
    op.drop_index("ix_digest_history_sent_at", table_name="digest_history")
    op.drop_index("ix_digest_history_user_id", table_name="digest_history")
    op.drop_table("digest_history")

    op.drop_index("ix_digest_settings_utc_hour", table_name="digest_settings")
    op.drop_index("ix_digest_settings_user_id", table_name="digest_settings")
    op.drop_table("digest_settings")
