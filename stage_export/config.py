"""Environment-variable-driven settings shared across the stage-export job.

Per-run export settings live in stage_export.export.config.ExportConfig.
"""

from __future__ import annotations

import os

# -- Database -----------------------------------------------------------------
DB_POOL_MAX: int = int(os.getenv("DB_POOL_MAX", "5"))
DB_COMMAND_TIMEOUT_S: float = float(os.getenv("DB_COMMAND_TIMEOUT_S", "30"))

# -- Runtime ------------------------------------------------------------------
IS_CLOUD_RUN: bool = bool(os.getenv("K_SERVICE") or os.getenv("CLOUD_RUN_JOB"))
