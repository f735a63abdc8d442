"""Open data, alerts and institution access.

Revision ID: 002_open_data_alerts_institutions
Revises: 001_baseline
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_open_data_alerts_institutions"
down_revision: str | None = "001_baseline"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Datasets and readings ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS datasets (
            id SERIAL PRIMARY KEY,
            name VARCHAR(256) NOT NULL,
            description TEXT NOT NULL,
            category VARCHAR(32) NOT NULL,
            source VARCHAR(256) NOT NULL,
            region VARCHAR(128),
            data JSON NOT NULL,
            unit VARCHAR(32),
            last_updated TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_datasets_category ON datasets(category)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS climate_readings (
            id SERIAL PRIMARY KEY,
            type VARCHAR(32) NOT NULL,
            value DOUBLE PRECISION NOT NULL,
            unit VARCHAR(32) NOT NULL,
            latitude DOUBLE PRECISION NOT NULL,
            longitude DOUBLE PRECISION NOT NULL,
            region VARCHAR(128),
            source VARCHAR(64) NOT NULL DEFAULT 'user_submitted',
            recorded_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            user_id INTEGER REFERENCES users(id) ON DELETE SET NULL
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_readings_type_recorded ON climate_readings(type, recorded_at)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_readings_region ON climate_readings(region)")

    # --- Alerts ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS alerts (
            id SERIAL PRIMARY KEY,
            type VARCHAR(16) NOT NULL,
            title VARCHAR(256) NOT NULL,
            message TEXT NOT NULL,
            region VARCHAR(128),
            is_active BOOLEAN NOT NULL DEFAULT true,
            expires_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            issue_id INTEGER REFERENCES issues(id) ON DELETE SET NULL
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_alerts_active ON alerts(is_active, expires_at)")

    # --- Institutions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS institutions (
            id SERIAL PRIMARY KEY,
            name VARCHAR(256) NOT NULL,
            email VARCHAR(320) UNIQUE NOT NULL,
            type VARCHAR(32) NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            api_key_prefix VARCHAR(16) NOT NULL,
            api_key_hash VARCHAR(256) NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_institutions_key_prefix ON institutions(api_key_prefix)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS institutions CASCADE")
    op.execute("DROP TABLE IF EXISTS alerts CASCADE")
    op.execute("DROP TABLE IF EXISTS climate_readings CASCADE")
    op.execute("DROP TABLE IF EXISTS datasets CASCADE")
