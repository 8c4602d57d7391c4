"""Upsert and read terminal statuses in status_table.

One status_table row per work item; a later write for the same id replaces
the earlier one. The matching stage_table row is moved to the same terminal
status in the caller's transaction.
"""

from __future__ import annotations

import logging

import asyncpg

from stage_export.export.config import DEFAULT_MESSAGE_MAX_CHARS
from stage_export.export.types import ItemStatus, StatusRecord

logger = logging.getLogger(__name__)


def truncate_message(message: str | None, max_chars: int) -> str:
    if not message:
        return ""
    # Postgres TEXT cannot hold NUL characters
    return message.replace("\x00", "")[:max_chars]


class StatusStore:
    """Stateless data-access object for status_table."""

    def __init__(self, *, max_message_chars: int = DEFAULT_MESSAGE_MAX_CHARS) -> None:
        if max_message_chars < 1:
            raise ValueError("max_message_chars must be >= 1")
        self._max_message_chars = max_message_chars

    async def record(
        self,
        conn: asyncpg.Connection,
        *,
        item_id: int,
        status: ItemStatus,
        message: str | None,
    ) -> None:
        """Upsert the terminal status for `item_id` and close out its stage row."""
        if not status.is_terminal:
            raise ValueError(f"Only SUCCESS or FAILURE can be recorded, got {status.value}")

        stored = truncate_message(message, self._max_message_chars)

        await conn.execute(
            """
            INSERT INTO status_table (id, status, message, updated_at)
            VALUES ($1, $2, $3, NOW())
            ON CONFLICT (id) DO UPDATE SET
                status = EXCLUDED.status,
                message = EXCLUDED.message,
                updated_at = EXCLUDED.updated_at
            """,
            item_id,
            status.value,
            stored,
        )
        await conn.execute(
            "UPDATE stage_table SET status = $2 WHERE id = $1",
            item_id,
            status.value,
        )
        logger.debug("Recorded status id=%s status=%s", item_id, status.value)

    async def get(self, conn: asyncpg.Connection, *, item_id: int) -> StatusRecord | None:
        row = await conn.fetchrow(
            "SELECT id, status, message, updated_at FROM status_table WHERE id = $1",
            item_id,
        )
        if row is None:
            return None
        return StatusRecord(
            id=row["id"],
            status=ItemStatus(row["status"]),
            message=row["message"] or "",
            updated_at=row["updated_at"],
        )
