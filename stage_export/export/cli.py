from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stage-export",
        description="Claim PENDING rows from stage_table and export their BigQuery results to GCS and SFTP",
    )

    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="List pending work and exit (no claims, no uploads)")
    mode.add_argument(
        "--estimate",
        action="store_true",
        help="Dry-run pending queries in BigQuery and log bytes scanned (no claims)",
    )

    p.add_argument(
        "--batch-size",
        type=int,
        default=0,
        help="Override STAGE_EXPORT_BATCH_SIZE",
    )
    p.add_argument("--log-level", default="INFO", help="Python logging level (INFO, DEBUG, ...)")
    return p
