#!/usr/bin/env python3
"""
Response models for API endpoints.

Fields are serialized in camelCase for the admin UI.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional

from pipeline.models import BackfillJobState, BackfillResult


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FailureEntry(CamelModel):
    """One recent per-bottle failure."""
    bottle_id: str
    reason: str


class RunBackfillResponse(CamelModel):
    """Cumulative job counters after one invocation."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "jobId": "6ba7b810-9dad-11d1-80b4-00c04fd430c8",
                "processed": 200,
                "updated": 180,
                "skipped": 19,
                "failed": 1,
                "failures": [
                    {"bottleId": "550e8400-e29b-41d4-a716-446655440000", "reason": "database is locked"}
                ],
                "nextCursor": "550e8400-e29b-41d4-a716-446655440000",
                "isComplete": False,
                "elapsedMs": 412
            }
        }
    )

    job_id: str
    processed: int = Field(ge=0)
    updated: int = Field(ge=0)
    skipped: int = Field(ge=0)
    failed: int = Field(ge=0)
    failures: List[FailureEntry] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    is_complete: bool
    elapsed_ms: int = Field(ge=0)

    @classmethod
    def from_result(cls, result: BackfillResult) -> "RunBackfillResponse":
        return cls(
            job_id=result.job_id,
            processed=result.processed,
            updated=result.updated,
            skipped=result.skipped,
            failed=result.failed,
            failures=[FailureEntry(**f) for f in result.failures],
            next_cursor=result.next_cursor,
            is_complete=result.is_complete,
            elapsed_ms=result.elapsed_ms,
        )


class BackfillJobResponse(CamelModel):
    """Persisted state of one backfill job."""
    job_id: str
    mode: str
    batch_size: int
    current_version: int
    status: str
    cursor: Optional[str] = None
    processed: int
    updated: int
    skipped: int
    failed: int
    failures: List[FailureEntry] = Field(default_factory=list)
    estimated_total: Optional[int] = None
    started_by: Optional[str] = None
    is_complete: bool
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @classmethod
    def from_state(cls, job: BackfillJobState) -> "BackfillJobResponse":
        return cls(
            job_id=job.id,
            mode=job.mode,
            batch_size=job.batch_size,
            current_version=job.current_version,
            status=job.status,
            cursor=job.cursor,
            processed=job.processed,
            updated=job.updated,
            skipped=job.skipped,
            failed=job.failed,
            failures=[FailureEntry(**f) for f in job.failures],
            estimated_total=job.estimated_total,
            started_by=job.started_by,
            is_complete=job.is_complete,
            created_at=job.created_at,
            started_at=job.started_at,
            finished_at=job.finished_at,
        )


class BackfillJobsResponse(CamelModel):
    """Recent backfill jobs, newest first."""
    jobs: List[BackfillJobResponse]
    total: int


class BackfillEstimateResponse(CamelModel):
    """How many bottles a new run in this mode would score (approximate)."""
    mode: str
    current_version: int
    estimated_total: int = Field(ge=0)
