"""BigQuery helpers: run a work item's query into a CSV file, or price it.

Both helpers are blocking; the runner calls them through asyncio.to_thread.
"""

from __future__ import annotations

import base64
import csv
import datetime
import decimal
import json
import logging

from google.cloud import bigquery

logger = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    raise TypeError(f"Cannot encode {type(value).__name__} for CSV")


def _csv_value(value):
    """Encode one result cell the way a BigQuery CSV extract would.

    BYTES become base64, REPEATED and RECORD values become compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (list, dict)):
        return json.dumps(value, default=_json_default, separators=(",", ":"))
    return value


def _job_config(*, max_bytes_billed: int | None) -> bigquery.QueryJobConfig:
    cfg = bigquery.QueryJobConfig()
    if max_bytes_billed is not None:
        cfg.maximum_bytes_billed = max_bytes_billed
    return cfg


def export_query_to_csv(
    client: bigquery.Client,
    query: str,
    path: str,
    *,
    max_bytes_billed: int | None = None,
) -> int:
    """Run `query` and write every result row to `path` as CSV.

    The first line is the header taken from the result schema. Returns the
    number of data rows written.
    """
    job = client.query(query, job_config=_job_config(max_bytes_billed=max_bytes_billed))
    result = job.result()

    header = [field.name for field in result.schema]
    n = 0
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(header)
        for row in result:
            writer.writerow([_csv_value(v) for v in row.values()])
            n += 1

    logger.debug(
        "Query job %s wrote %d rows (%s bytes processed)",
        getattr(job, "job_id", "?"),
        n,
        getattr(job, "total_bytes_processed", None),
    )
    return n


def estimate_query_bytes(client: bigquery.Client, query: str) -> int:
    """Dry-run `query` and return the bytes BigQuery would scan.

    The dry run neither executes the query nor bills for it; it is the
    cheapest way to spot a missing partition filter before running a batch.
    """
    cfg = bigquery.QueryJobConfig(dry_run=True, use_query_cache=False)
    job = client.query(query, job_config=cfg)
    return int(job.total_bytes_processed or 0)
