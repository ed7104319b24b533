"""Profiles, classes, and syllabus output (topics, assignments, study blocks).

Revision ID: 001_profiles_and_classes
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_profiles_and_classes"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id                  VARCHAR(36) PRIMARY KEY,
            user_id             VARCHAR(36) NOT NULL UNIQUE,
            username            VARCHAR(64) NOT NULL UNIQUE,
            display_name        VARCHAR(128) NOT NULL,
            email               VARCHAR(320),
            bio                 TEXT,
            photo_url           TEXT,
            streak              INTEGER NOT NULL DEFAULT 0,
            longest_streak      INTEGER NOT NULL DEFAULT 0,
            total_minutes       INTEGER NOT NULL DEFAULT 0,
            last_study_date     DATE,
            weekday_study_range VARCHAR(32),
            weekend_study_range VARCHAR(32),
            earliest_study_time TIME,
            latest_study_time   TIME,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at          TIMESTAMPTZ
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS classes (
            id                          VARCHAR(36) PRIMARY KEY,
            user_id                     VARCHAR(36) NOT NULL,
            name                        VARCHAR(128) NOT NULL,
            syllabus_url                TEXT,
            ai_parsed                   BOOLEAN NOT NULL DEFAULT FALSE,
            difficulty                  VARCHAR(16),
            progress_percentage         INTEGER NOT NULL DEFAULT 0
                                        CHECK (progress_percentage BETWEEN 0 AND 100),
            streak                      INTEGER NOT NULL DEFAULT 0,
            last_studied_date           DATE,
            estimated_total_minutes     INTEGER NOT NULL DEFAULT 0,
            estimated_remaining_minutes INTEGER NOT NULL DEFAULT 0,
            created_at                  TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at                  TIMESTAMPTZ,
            CHECK (estimated_remaining_minutes <= estimated_total_minutes)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_classes_user_id ON classes (user_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS syllabus_topics (
            id                VARCHAR(36) PRIMARY KEY,
            class_id          VARCHAR(36) NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            title             VARCHAR(256) NOT NULL,
            description       TEXT,
            order_index       INTEGER NOT NULL DEFAULT 0,
            estimated_minutes INTEGER NOT NULL DEFAULT 60,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS syllabus_assignments (
            id                VARCHAR(36) PRIMARY KEY,
            class_id          VARCHAR(36) NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            title             VARCHAR(256) NOT NULL,
            type              VARCHAR(16) NOT NULL DEFAULT 'reading',
            due_date          DATE,
            estimated_minutes INTEGER NOT NULL DEFAULT 60,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS study_blocks (
            id               VARCHAR(36) PRIMARY KEY,
            user_id          VARCHAR(36) NOT NULL,
            class_id         VARCHAR(36) NOT NULL REFERENCES classes(id) ON DELETE CASCADE,
            assignment_id    VARCHAR(36) REFERENCES syllabus_assignments(id) ON DELETE SET NULL,
            block_date       DATE NOT NULL,
            start_time       TIME,
            duration_minutes INTEGER NOT NULL,
            created_at       TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_study_blocks_user_id ON study_blocks (user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_study_blocks_user_date ON study_blocks (user_id, block_date)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS study_blocks CASCADE")
    op.execute("DROP TABLE IF EXISTS syllabus_assignments CASCADE")
    op.execute("DROP TABLE IF EXISTS syllabus_topics CASCADE")
    op.execute("DROP TABLE IF EXISTS classes CASCADE")
    op.execute("DROP TABLE IF EXISTS profiles CASCADE")
