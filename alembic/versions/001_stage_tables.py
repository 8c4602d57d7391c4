"""Create stage_table and status_table.

Revision ID: 001
Create Date: 2026-10-17

stage_table holds the work items (one per exported file); status_table holds
the last terminal status written for each item.
"""

from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- stage_table ----------------------------------------------------------
    op.execute(
        """
        CREATE TABLE stage_table (
            id BIGINT GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            file_name TEXT NOT NULL,
            source_query TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK (status IN ('PENDING', 'IN_PROGRESS', 'SUCCESS', 'FAILURE')),
            claimed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ DEFAULT NOW()
        )
    """
    )

    # Claims scan PENDING rows; release scans IN_PROGRESS by claim time
    op.execute(
        """
        CREATE INDEX ix_stage_table_status
        ON stage_table (status, claimed_at)
    """
    )

    # -- status_table ---------------------------------------------------------
    op.execute(
        """
        CREATE TABLE status_table (
            id BIGINT PRIMARY KEY
                REFERENCES stage_table(id) ON DELETE CASCADE,
            status TEXT NOT NULL
                CHECK (status IN ('SUCCESS', 'FAILURE')),
            message TEXT,
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS status_table CASCADE")
    op.execute("DROP TABLE IF EXISTS stage_table CASCADE")
