"""Study sessions, feed posts, reactions, friendships.

Revision ID: 002_sessions_and_feed
Revises: 001_profiles_and_classes
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_sessions_and_feed"
down_revision: str | None = "001_profiles_and_classes"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS study_sessions (
            id              VARCHAR(36) PRIMARY KEY,
            user_id         VARCHAR(36) NOT NULL,
            class_id        VARCHAR(36) REFERENCES classes(id) ON DELETE SET NULL,
            assignment_id   VARCHAR(36),
            block_id        VARCHAR(36),
            minutes_studied INTEGER NOT NULL,
            target_minutes  INTEGER,
            started_at      TIMESTAMPTZ NOT NULL,
            completed_at    TIMESTAMPTZ NOT NULL,
            photo_url       TEXT,
            front_photo_url TEXT,
            back_photo_url  TEXT,
            timelapse_url   TEXT,
            created_at      TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_study_sessions_user_id ON study_sessions (user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_study_sessions_block_id ON study_sessions (block_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_study_sessions_class ON study_sessions (class_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS feed_posts (
            id              VARCHAR(36) PRIMARY KEY,
            user_id         VARCHAR(36) NOT NULL,
            session_id      VARCHAR(36) NOT NULL REFERENCES study_sessions(id) ON DELETE CASCADE,
            class_id        VARCHAR(36) REFERENCES classes(id) ON DELETE SET NULL,
            photo_url       TEXT NOT NULL DEFAULT '',
            front_photo_url TEXT,
            back_photo_url  TEXT,
            timelapse_url   TEXT,
            minutes_studied INTEGER NOT NULL,
            caption         TEXT,
            visibility      VARCHAR(16) NOT NULL DEFAULT 'friends',
            created_at      TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_feed_posts_user_id ON feed_posts (user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_feed_posts_created ON feed_posts (created_at DESC)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS reactions (
            id         VARCHAR(36) PRIMARY KEY,
            post_id    VARCHAR(36) NOT NULL REFERENCES feed_posts(id) ON DELETE CASCADE,
            user_id    VARCHAR(36) NOT NULL,
            emoji      VARCHAR(16) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_reactions_post_user_emoji UNIQUE (post_id, user_id, emoji)
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS friendships (
            id         VARCHAR(36) PRIMARY KEY,
            user_id    VARCHAR(36) NOT NULL,
            friend_id  VARCHAR(36) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_friendships_user_friend UNIQUE (user_id, friend_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS ix_friendships_user_id ON friendships (user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS ix_friendships_friend_id ON friendships (friend_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS friendships CASCADE")
    op.execute("DROP TABLE IF EXISTS reactions CASCADE")
    op.execute("DROP TABLE IF EXISTS feed_posts CASCADE")
    op.execute("DROP TABLE IF EXISTS study_sessions CASCADE")
