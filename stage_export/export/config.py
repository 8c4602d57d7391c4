from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_MESSAGE_MAX_CHARS = 1000


def _parse_int(name: str, v: str) -> int:
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {v!r}") from None


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    return _parse_int(name, v)


def _get_optional_int(name: str) -> int | None:
    v = os.getenv(name)
    if v is None or not v.strip():
        return None
    return _parse_int(name, v)


@dataclass(frozen=True)
class ExportConfig:
    # Cloud Storage
    gcs_bucket: str
    gcs_prefix: str  # e.g. "processed/"

    # SFTP
    sftp_host: str
    sftp_port: int
    sftp_username: str
    sftp_password: str | None
    sftp_key_path: str | None
    sftp_remote_dir: str

    # BigQuery
    bq_project: str | None
    bq_location: str | None
    bq_max_bytes_billed: int | None

    # Batch
    batch_size: int
    work_dir: str | None  # None = system temp dir
    message_max_chars: int

    # Retries / claim lease
    max_retries_per_item: int
    claim_lease_seconds: int  # 0 = never release stale claims

    @classmethod
    def from_env(cls) -> ExportConfig:
        gcs_bucket = os.getenv("STAGE_EXPORT_GCS_BUCKET")
        if not gcs_bucket:
            raise ValueError("STAGE_EXPORT_GCS_BUCKET is required")

        gcs_prefix = os.getenv("STAGE_EXPORT_GCS_PREFIX", "processed/")
        if gcs_prefix and not gcs_prefix.endswith("/"):
            gcs_prefix += "/"

        sftp_host = os.getenv("STAGE_EXPORT_SFTP_HOST")
        if not sftp_host:
            raise ValueError("STAGE_EXPORT_SFTP_HOST is required")
        sftp_username = os.getenv("STAGE_EXPORT_SFTP_USERNAME")
        if not sftp_username:
            raise ValueError("STAGE_EXPORT_SFTP_USERNAME is required")

        remote_dir = os.getenv("STAGE_EXPORT_SFTP_REMOTE_DIR", "upload").rstrip("/")

        return cls(
            gcs_bucket=gcs_bucket,
            gcs_prefix=gcs_prefix,
            sftp_host=sftp_host,
            sftp_port=_get_int("STAGE_EXPORT_SFTP_PORT", 22),
            sftp_username=sftp_username,
            sftp_password=os.getenv("STAGE_EXPORT_SFTP_PASSWORD") or None,
            sftp_key_path=os.getenv("STAGE_EXPORT_SFTP_KEY_PATH") or None,
            sftp_remote_dir=remote_dir or ".",
            bq_project=os.getenv("GOOGLE_CLOUD_PROJECT") or None,
            bq_location=os.getenv("STAGE_EXPORT_BQ_LOCATION") or None,
            bq_max_bytes_billed=_get_optional_int("STAGE_EXPORT_BQ_MAX_BYTES_BILLED"),
            batch_size=_get_int("STAGE_EXPORT_BATCH_SIZE", 10),
            work_dir=os.getenv("STAGE_EXPORT_WORK_DIR") or None,
            message_max_chars=_get_int("STAGE_EXPORT_MESSAGE_MAX_CHARS", DEFAULT_MESSAGE_MAX_CHARS),
            max_retries_per_item=_get_int("STAGE_EXPORT_MAX_RETRIES_PER_ITEM", 0),
            claim_lease_seconds=_get_int("STAGE_EXPORT_CLAIM_LEASE_SECONDS", 0),
        )

    def validate(self) -> None:
        if not self.sftp_password and not self.sftp_key_path:
            raise ValueError(
                "SFTP auth missing: set STAGE_EXPORT_SFTP_PASSWORD or STAGE_EXPORT_SFTP_KEY_PATH"
            )
        if not 0 < self.sftp_port < 65536:
            raise ValueError("STAGE_EXPORT_SFTP_PORT must be a valid TCP port")
        if self.batch_size < 1:
            raise ValueError("STAGE_EXPORT_BATCH_SIZE must be >= 1")
        if self.message_max_chars < 1:
            raise ValueError("STAGE_EXPORT_MESSAGE_MAX_CHARS must be >= 1")
        if self.max_retries_per_item < 0:
            raise ValueError("STAGE_EXPORT_MAX_RETRIES_PER_ITEM must be >= 0")
        if self.claim_lease_seconds < 0:
            raise ValueError("STAGE_EXPORT_CLAIM_LEASE_SECONDS must be >= 0")
        if self.bq_max_bytes_billed is not None and self.bq_max_bytes_billed < 1:
            raise ValueError("STAGE_EXPORT_BQ_MAX_BYTES_BILLED must be >= 1 when set")
        if self.work_dir is not None and not os.path.isdir(self.work_dir):
            raise ValueError(f"STAGE_EXPORT_WORK_DIR does not exist: {self.work_dir}")
