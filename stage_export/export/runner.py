from __future__ import annotations

import asyncio
import logging
import os
import posixpath
import tempfile

from google.cloud import bigquery, storage

from stage_export.db import transaction
from stage_export.export.bigquery import estimate_query_bytes, export_query_to_csv
from stage_export.export.config import ExportConfig
from stage_export.export.gcs import object_name, upload_file
from stage_export.export.sftp import SftpConfig, SftpUploader
from stage_export.export.types import ItemStatus, ProcessResult, WorkItem
from stage_export.stores.stage_store import StageStore
from stage_export.stores.status_store import StatusStore

logger = logging.getLogger(__name__)


class ExportRunner:
    def __init__(
        self,
        *,
        cfg: ExportConfig,
        bigquery_client: bigquery.Client,
        storage_client: storage.Client,
    ) -> None:
        self._cfg = cfg
        self._bq = bigquery_client
        self._gcs = storage_client
        self._stage = StageStore()
        self._status = StatusStore(max_message_chars=cfg.message_max_chars)
        self._sftp = SftpUploader(
            cfg=SftpConfig(
                host=cfg.sftp_host,
                port=cfg.sftp_port,
                username=cfg.sftp_username,
                password=cfg.sftp_password,
                key_path=cfg.sftp_key_path,
                remote_dir=cfg.sftp_remote_dir,
            )
        )

    async def run_batch(self, *, batch_size: int | None = None, dry_run: bool = False) -> dict[str, int]:
        """One batch cycle: claim up to `batch_size` items, process them all, return counts."""
        size = batch_size or self._cfg.batch_size

        if dry_run:
            async with transaction() as conn:
                pending = await self._stage.peek_pending(conn, limit=size)
            for it in pending:
                logger.info("[DRY-RUN] id=%s file=%s", it.id, it.file_name)
            return {"total": len(pending), "success": 0, "failure": 0}

        if self._cfg.claim_lease_seconds > 0:
            async with transaction() as conn:
                await self._stage.release_stale(conn, lease_seconds=self._cfg.claim_lease_seconds)

        # Claim: one statement, one transaction
        async with transaction() as conn:
            items = await self._stage.claim_pending(conn, batch_size=size)

        logger.info("Claimed %d items (batch size %d)", len(items), size)
        if not items:
            return {"total": 0, "success": 0, "failure": 0}

        sem = asyncio.Semaphore(size)

        async def worker(it: WorkItem) -> ProcessResult:
            async with sem:
                return await self.process_item(it)

        results = await asyncio.gather(*[worker(it) for it in items])

        success = sum(1 for r in results if r.status is ItemStatus.SUCCESS)
        failure = sum(1 for r in results if r.status is ItemStatus.FAILURE)

        async with transaction() as conn:
            counts = await self._stage.count_by_status(conn)
        logger.info("Batch finished success=%d failure=%d table=%s", success, failure, counts)

        return {"total": len(items), "success": success, "failure": failure}

    async def estimate_pending(self, *, limit: int | None = None) -> dict[int, int]:
        """Dry-run the queries of pending items and return bytes scanned per id.

        Items whose dry run fails are logged and left out of the result.
        """
        async with transaction() as conn:
            pending = await self._stage.peek_pending(conn, limit=limit or self._cfg.batch_size)

        out: dict[int, int] = {}
        for it in pending:
            try:
                n = await asyncio.to_thread(estimate_query_bytes, self._bq, it.source_query)
            except Exception as e:
                logger.warning(
                    "[ESTIMATE] failed: id=%s file=%s :: %s: %s",
                    it.id,
                    it.file_name,
                    type(e).__name__,
                    e,
                )
                continue
            logger.info("[ESTIMATE] id=%s file=%s bytes=%d", it.id, it.file_name, n)
            out[it.id] = n
        return out

    async def process_item(self, item: WorkItem) -> ProcessResult:
        """Export one claimed item and record its terminal status exactly once.

        Processing errors become FAILURE; errors while recording the status
        propagate and abort the run.
        """
        last_err: str | None = None
        rows: int | None = None
        for attempt in range(self._cfg.max_retries_per_item + 1):
            try:
                rows = await self._process_item_once(item)
                last_err = None
                break
            except Exception as e:
                last_err = str(e) or type(e).__name__
                logger.warning(
                    "Item failed (attempt %d/%d): id=%s file=%s :: %s: %s",
                    attempt + 1,
                    self._cfg.max_retries_per_item + 1,
                    item.id,
                    item.file_name,
                    type(e).__name__,
                    e,
                )
                if attempt >= self._cfg.max_retries_per_item:
                    break
                await asyncio.sleep(min(2**attempt, 10))

        if last_err is not None:
            await self._record(item, ItemStatus.FAILURE, last_err)
            return ProcessResult(item=item, status=ItemStatus.FAILURE, rows=None, error_message=last_err)

        await self._record(item, ItemStatus.SUCCESS, f"Exported {rows} rows")
        return ProcessResult(item=item, status=ItemStatus.SUCCESS, rows=rows, error_message=None)

    async def _process_item_once(self, item: WorkItem) -> int:
        if not item.file_name or not item.file_name.strip("/"):
            raise ValueError(f"Item {item.id} has an empty file_name")
        if not item.source_query or not item.source_query.strip():
            raise ValueError(f"Item {item.id} has an empty source_query")

        with tempfile.TemporaryDirectory(prefix="stage-export-", dir=self._cfg.work_dir) as tmp:
            local_path = os.path.join(tmp, posixpath.basename(item.file_name.rstrip("/")))

            # Query -> local CSV (blocking I/O -> run in thread)
            rows = await asyncio.to_thread(
                export_query_to_csv,
                self._bq,
                item.source_query,
                local_path,
                max_bytes_billed=self._cfg.bq_max_bytes_billed,
            )

            uri = await asyncio.to_thread(
                upload_file,
                self._gcs,
                self._cfg.gcs_bucket,
                object_name(self._cfg.gcs_prefix, item.file_name),
                local_path,
            )

            remote = await asyncio.to_thread(self._sftp.upload, local_path, item.file_name)

        logger.info("Exported id=%s rows=%d to %s and sftp:%s", item.id, rows, uri, remote)
        return rows

    async def _record(self, item: WorkItem, status: ItemStatus, message: str) -> None:
        async with transaction() as conn:
            await self._status.record(conn, item_id=item.id, status=status, message=message)
