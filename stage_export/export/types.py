from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class ItemStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"

    @property
    def is_terminal(self) -> bool:
        return self in (ItemStatus.SUCCESS, ItemStatus.FAILURE)


@dataclass(frozen=True)
class WorkItem:
    id: int
    file_name: str  # relative object name, e.g. "daily/prices.csv"
    source_query: str  # BigQuery Standard SQL


@dataclass(frozen=True)
class StatusRecord:
    id: int
    status: ItemStatus
    message: str
    updated_at: datetime | None


@dataclass(frozen=True)
class ProcessResult:
    item: WorkItem
    status: ItemStatus  # SUCCESS|FAILURE
    rows: int | None
    error_message: str | None
