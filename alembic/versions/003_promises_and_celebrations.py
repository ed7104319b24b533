"""Pinky promises and class completion celebrations.

A completion celebration row is created when a class first reaches 100%;
the client shows it once and acknowledges it.

Revision ID: 003_promises_and_celebrations
Revises: 002_sessions_and_feed
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "003_promises_and_celebrations"
down_revision: str | None = "002_sessions_and_feed"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS pinky_promises (
            id          VARCHAR(36) PRIMARY KEY,
            user_id     VARCHAR(36) NOT NULL,
            block_id    VARCHAR(36) NOT NULL REFERENCES study_blocks(id) ON DELETE CASCADE,
            date        DATE NOT NULL,
            status      VARCHAR(16) NOT NULL DEFAULT 'active'
                        CHECK (status IN ('active', 'completed', 'broken')),
            created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
            resolved_at TIMESTAMPTZ,
            CONSTRAINT uq_pinky_promises_user_block_date UNIQUE (user_id, block_id, date)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_pinky_promises_user_id ON pinky_promises (user_id)")
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_pinky_promises_active_date
        ON pinky_promises (date)
        WHERE status = 'active'
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS class_completion_celebrations (
            id            VARCHAR(36) PRIMARY KEY,
            user_id       VARCHAR(36) NOT NULL,
            class_id      VARCHAR(36) NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            celebrated    BOOLEAN NOT NULL DEFAULT FALSE,
            created_at    TIMESTAMPTZ NOT NULL DEFAULT now(),
            celebrated_at TIMESTAMPTZ,
            CONSTRAINT uq_class_completion_user_class UNIQUE (user_id, class_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_class_completion_user_pending
        ON class_completion_celebrations (user_id)
        WHERE celebrated = FALSE
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS class_completion_celebrations CASCADE")
    op.execute("DROP TABLE IF EXISTS pinky_promises CASCADE")
