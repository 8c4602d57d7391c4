"""Claim and inspect work items in stage_table.

All methods take an open asyncpg connection; callers own the transaction
(see stage_export.db.transaction).
"""

from __future__ import annotations

import logging

import asyncpg

from stage_export.export.types import ItemStatus, WorkItem

logger = logging.getLogger(__name__)


def _to_item(row: asyncpg.Record) -> WorkItem:
    return WorkItem(
        id=row["id"],
        file_name=row["file_name"],
        source_query=row["source_query"],
    )


class StageStore:
    """Stateless data-access object for stage_table."""

    async def claim_pending(self, conn: asyncpg.Connection, *, batch_size: int) -> list[WorkItem]:
        """Atomically move up to `batch_size` PENDING rows to IN_PROGRESS.

        Rows are picked in random order. FOR UPDATE SKIP LOCKED keeps two
        concurrent claims from ever returning the same row; the UPDATE and
        RETURNING happen in one statement so a claimed row is always handed
        back to exactly one caller. An empty list means nothing was pending.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        rows = await conn.fetch(
            """
            UPDATE stage_table
            SET status = 'IN_PROGRESS',
                claimed_at = NOW()
            WHERE id IN (
                SELECT id
                FROM stage_table
                WHERE status = 'PENDING'
                ORDER BY RANDOM()
                LIMIT $1
                FOR UPDATE SKIP LOCKED
            )
            RETURNING id, file_name, source_query
            """,
            batch_size,
        )
        return [_to_item(r) for r in rows]

    async def peek_pending(self, conn: asyncpg.Connection, *, limit: int) -> list[WorkItem]:
        """List PENDING rows without claiming them."""
        rows = await conn.fetch(
            """
            SELECT id, file_name, source_query
            FROM stage_table
            WHERE status = 'PENDING'
            ORDER BY id
            LIMIT $1
            """,
            limit,
        )
        return [_to_item(r) for r in rows]

    async def release_stale(self, conn: asyncpg.Connection, *, lease_seconds: int) -> list[int]:
        """Return IN_PROGRESS rows claimed more than `lease_seconds` ago to PENDING."""
        if lease_seconds < 1:
            raise ValueError("lease_seconds must be >= 1")

        rows = await conn.fetch(
            """
            UPDATE stage_table
            SET status = 'PENDING',
                claimed_at = NULL
            WHERE status = 'IN_PROGRESS'
              AND claimed_at < NOW() - make_interval(secs => $1)
            RETURNING id
            """,
            float(lease_seconds),
        )
        ids = [r["id"] for r in rows]
        if ids:
            logger.warning("Released %d stale claims: %s", len(ids), ids)
        return ids

    async def count_by_status(self, conn: asyncpg.Connection) -> dict[str, int]:
        rows = await conn.fetch("SELECT status, COUNT(*) AS n FROM stage_table GROUP BY status")
        counts = {s.value: 0 for s in ItemStatus}
        for r in rows:
            counts[r["status"]] = int(r["n"])
        return counts
