"""Structured JSON logging for Cloud Run compatibility.

Configures python-json-logger for Cloud Logging severity and labels.
Batch runs carry a run id on every record so a cycle's log lines can be
grouped in Cloud Logging.
"""

from __future__ import annotations

import logging
import uuid

from pythonjsonlogger.json import JsonFormatter

from stage_export.config import IS_CLOUD_RUN

_LABELS_KEY = "logging.googleapis.com/labels"


class GCPJsonFormatter(JsonFormatter):
    """JSON lines in the shape Cloud Logging parses from a job's stdout.

    Python level names are valid Cloud Logging severities as-is. The run id
    goes into the entry labels so one batch cycle can be filtered on.
    """

    def add_fields(
        self,
        log_record: dict[str, object],
        record: logging.LogRecord,
        message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["severity"] = record.levelname
        log_record.pop("levelname", None)
        run_id = log_record.pop("run_id", None)
        if run_id:
            log_record[_LABELS_KEY] = {"run_id": run_id}


class _RunIdFilter(logging.Filter):
    def __init__(self, run_id: str) -> None:
        super().__init__()
        self._run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self._run_id
        return True


def setup_logging(*, level: str = "INFO", run_id: str | None = None) -> None:
    """Configure structured JSON logging when on Cloud Run, plain text locally."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler()
    if IS_CLOUD_RUN:
        handler.setFormatter(GCPJsonFormatter(
            fmt="%(message)s %(name)s %(funcName)s %(lineno)d %(run_id)s",
            rename_fields={"message": "message", "name": "logger"},
        ))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)-8s [%(run_id)s] %(name)s:%(lineno)d  %(message)s",
            datefmt="%H:%M:%S",
        ))
    handler.addFilter(_RunIdFilter(run_id or "-"))

    root.addHandler(handler)


def generate_run_id() -> str:
    """Generate a short id correlating all log lines of one batch cycle."""
    return uuid.uuid4().hex[:16]
