#!/usr/bin/env python3
"""
Backfill Models - Data structures passed between the backfill components.

ORM rows never leave a unit of work; everything here is a plain snapshot.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

MAX_FAILURE_REASON_LENGTH = 500


@dataclass
class BackfillRequest:
    """One invocation of the engine: resume job_id, or start a new job in mode."""
    job_id: Optional[str] = None
    mode: Optional[str] = None
    batch_size: Optional[int] = None
    max_batches: Optional[int] = None


@dataclass
class BackfillResult:
    """What the caller sees after an invocation (counters are cumulative)."""
    job_id: str
    processed: int
    updated: int
    skipped: int
    failed: int
    failures: List[Dict[str, str]]
    next_cursor: Optional[str]
    is_complete: bool
    elapsed_ms: int


@dataclass(frozen=True)
class BottleSnapshot:
    """The fields of a bottle row the backfill reads."""
    id: Any
    wine_id: Any
    readiness_score: Optional[int] = None
    readiness_status: Optional[str] = None
    readiness_updated_at: Optional[datetime] = None
    readiness_version: Optional[int] = None

    @classmethod
    def from_orm(cls, bottle) -> "BottleSnapshot":
        return cls(
            id=bottle.id,
            wine_id=bottle.wine_id,
            readiness_score=bottle.readiness_score,
            readiness_status=bottle.readiness_status,
            readiness_updated_at=bottle.readiness_updated_at,
            readiness_version=bottle.readiness_version,
        )


@dataclass(frozen=True)
class FailureRecord:
    bottle_id: str
    reason: str

    @classmethod
    def build(cls, bottle_id: Any, reason: Any) -> "FailureRecord":
        text = str(reason) or reason.__class__.__name__
        return cls(bottle_id=str(bottle_id), reason=text[:MAX_FAILURE_REASON_LENGTH])

    def to_dict(self) -> Dict[str, str]:
        return {'bottle_id': self.bottle_id, 'reason': self.reason}


@dataclass
class BatchOutcome:
    """Per-page deltas produced by the worker pool and the eligibility filter."""
    processed: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    failures: List[FailureRecord] = field(default_factory=list)
    last_id: Optional[str] = None


@dataclass
class BackfillJobState:
    """Detached copy of a job row as last persisted."""
    id: str
    mode: str
    batch_size: int
    current_version: int
    status: str
    cursor: Optional[str]
    processed: int
    updated: int
    skipped: int
    failed: int
    failures: List[Dict[str, str]]
    row_version: int
    estimated_total: Optional[int] = None
    started_by: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.status == 'completed'

    @classmethod
    def from_orm(cls, job) -> "BackfillJobState":
        return cls(
            id=str(job.id),
            mode=job.mode,
            batch_size=job.batch_size,
            current_version=job.current_version,
            status=job.status,
            cursor=job.cursor,
            processed=job.processed,
            updated=job.updated,
            skipped=job.skipped,
            failed=job.failed,
            failures=list(job.failures or []),
            row_version=job.row_version,
            estimated_total=job.estimated_total,
            started_by=str(job.started_by) if job.started_by else None,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )
