from __future__ import annotations

import asyncio
import logging

from google.cloud import bigquery, storage

from stage_export.db import close_pool
from stage_export.export.cli import build_parser
from stage_export.export.config import ExportConfig
from stage_export.export.runner import ExportRunner
from stage_export.logging_config import generate_run_id, setup_logging


async def _amain(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level.upper(), run_id=generate_run_id())
    logger = logging.getLogger("stage_export.export")

    cfg = ExportConfig.from_env()
    cfg.validate()

    # CLI overrides
    batch_size = args.batch_size if args.batch_size and args.batch_size > 0 else cfg.batch_size

    runner = ExportRunner(
        cfg=cfg,
        bigquery_client=bigquery.Client(project=cfg.bq_project, location=cfg.bq_location),
        storage_client=storage.Client(project=cfg.bq_project),
    )

    try:
        if args.estimate:
            estimates = await runner.estimate_pending(limit=batch_size)
            logger.info("DONE estimated %d queries, %d bytes total", len(estimates), sum(estimates.values()))
            return 0

        stats = await runner.run_batch(batch_size=batch_size, dry_run=bool(args.dry_run))
    finally:
        await close_pool()

    logger.info("DONE totals=%s", stats)
    return 0 if stats["failure"] == 0 else 2


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
