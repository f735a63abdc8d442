"""Baseline schema: users, issues, votes, comments and the gamification ledger.

Revision ID: 001_baseline
Revises: None
Create Date: 2026-02-01
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            email VARCHAR(320) UNIQUE NOT NULL,
            password_hash VARCHAR(256) NOT NULL,
            name VARCHAR(128) NOT NULL,
            avatar TEXT,
            role VARCHAR(16) NOT NULL DEFAULT 'user',
            points INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_active_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_users_points ON users(points)")

    # --- Issues ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS issues (
            id SERIAL PRIMARY KEY,
            title VARCHAR(256) NOT NULL,
            description TEXT NOT NULL,
            category VARCHAR(32) NOT NULL,
            severity VARCHAR(16) NOT NULL,
            status VARCHAR(16) NOT NULL DEFAULT 'open',
            latitude DOUBLE PRECISION NOT NULL,
            longitude DOUBLE PRECISION NOT NULL,
            address TEXT,
            region VARCHAR(128),
            images JSON,
            reported_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            resolved_at TIMESTAMPTZ,
            user_id INTEGER NOT NULL REFERENCES users(id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_issues_user ON issues(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_issues_location ON issues(latitude, longitude)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_issues_reported ON issues(reported_at)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS comments (
            id SERIAL PRIMARY KEY,
            content TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            issue_id INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
            user_id INTEGER NOT NULL REFERENCES users(id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_comments_issue ON comments(issue_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_comments_user ON comments(user_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS votes (
            id SERIAL PRIMARY KEY,
            type VARCHAR(16) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            issue_id INTEGER NOT NULL REFERENCES issues(id) ON DELETE CASCADE,
            user_id INTEGER NOT NULL REFERENCES users(id),
            CONSTRAINT votes_issue_user_type_key UNIQUE (issue_id, user_id, type)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_votes_user ON votes(user_id)")

    # --- Contribution ledger (append-only) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS contributions (
            id SERIAL PRIMARY KEY,
            type VARCHAR(32) NOT NULL,
            points INTEGER NOT NULL CHECK (points >= 0),
            description TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            user_id INTEGER NOT NULL REFERENCES users(id),
            issue_id INTEGER REFERENCES issues(id) ON DELETE SET NULL
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_contributions_user ON contributions(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_contributions_created ON contributions(created_at)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_contributions_issue ON contributions(issue_id, type)")

    # --- Badges ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS badges (
            id SERIAL PRIMARY KEY,
            name VARCHAR(128) UNIQUE NOT NULL,
            description TEXT NOT NULL,
            icon VARCHAR(64) NOT NULL,
            requirement JSON NOT NULL,
            points INTEGER NOT NULL,
            category VARCHAR(32) NOT NULL DEFAULT 'general',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            badge_id INTEGER NOT NULL REFERENCES badges(id) ON DELETE CASCADE,
            unlocked_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_badges_user_id_badge_id_key UNIQUE (user_id, badge_id)
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_user_badges_user ON user_badges(user_id)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_badges CASCADE")
    op.execute("DROP TABLE IF EXISTS badges CASCADE")
    op.execute("DROP TABLE IF EXISTS contributions CASCADE")
    op.execute("DROP TABLE IF EXISTS votes CASCADE")
    op.execute("DROP TABLE IF EXISTS comments CASCADE")
    op.execute("DROP TABLE IF EXISTS issues CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
