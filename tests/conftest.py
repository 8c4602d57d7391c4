"""Shared test fixtures for the stage-export test suite."""

from __future__ import annotations

import pytest

from stage_export.export.config import ExportConfig
from stage_export.export.types import WorkItem


def make_config(
    *,
    batch_size: int = 3,
    max_retries: int = 0,
    message_max_chars: int = 1000,
    claim_lease_seconds: int = 0,
    work_dir: str | None = None,
) -> ExportConfig:
    return ExportConfig(
        gcs_bucket="test-bucket",
        gcs_prefix="processed/",
        sftp_host="sftp.example.com",
        sftp_port=22,
        sftp_username="exporter",
        sftp_password="secret",
        sftp_key_path=None,
        sftp_remote_dir="upload",
        bq_project="test-project",
        bq_location=None,
        bq_max_bytes_billed=None,
        batch_size=batch_size,
        work_dir=work_dir,
        message_max_chars=message_max_chars,
        max_retries_per_item=max_retries,
        claim_lease_seconds=claim_lease_seconds,
    )


@pytest.fixture
def export_cfg() -> ExportConfig:
    return make_config()


@pytest.fixture
def work_item() -> WorkItem:
    return WorkItem(
        id=1,
        file_name="daily/prices.csv",
        source_query="SELECT ticker, close FROM `proj.ds.prices` WHERE trade_date = CURRENT_DATE()",
    )
