"""initial_tables

Revision ID: core_001
Revises:
Create Date: 2025-01-01 00:00:00.000000

"""

from __future__ import annotations

from alembic import op

# revision identifiers, used by Alembic.
revision = "core_001"
down_revision = None
branch_labels = ("core",)
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            username TEXT NOT NULL UNIQUE,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)

    op.execute("""
        CREATE TABLE IF NOT EXISTS health_data (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            parameter_type TEXT NOT NULL CHECK (
                parameter_type IN (
                    'blood_pressure_systolic',
                    'blood_pressure_diastolic',
                    'heart_rate',
                    'glucose'
                )
            ),
            value NUMERIC(10, 2) NOT NULL CHECK (value >= 0),
            timestamp TIMESTAMPTZ NOT NULL DEFAULT now(),
            notes TEXT
        )
    """)

    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_health_data_user_type_timestamp
        ON health_data (user_id, parameter_type, timestamp DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS health_data")
    op.execute("DROP TABLE IF EXISTS users")
