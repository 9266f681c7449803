import logging
from typing import Any, List, Optional
from datetime import datetime, timezone

from sqlalchemy import select

from database.models import ReadinessBackfillJob
from database.repositories.base import BaseRepository, coerce_uuid

logger = logging.getLogger(__name__)


class BackfillJobRepository(BaseRepository):
    def create(
        self,
        mode: str,
        batch_size: int,
        current_version: int,
        started_by: Any = None,
        estimated_total: Optional[int] = None
    ) -> ReadinessBackfillJob:
        now = datetime.now(timezone.utc)
        job = ReadinessBackfillJob(
            mode=mode,
            batch_size=batch_size,
            current_version=current_version,
            status='running',
            cursor=None,
            processed=0,
            updated=0,
            skipped=0,
            failed=0,
            failures=[],
            started_by=coerce_uuid(started_by),
            estimated_total=estimated_total,
            started_at=now,
        )
        self.db.add(job)
        self.db.flush()  # Generate ID
        return job

    def get_by_id(self, job_id: Any) -> Optional[ReadinessBackfillJob]:
        job_id = coerce_uuid(job_id)
        if job_id is None:
            return None
        stmt = select(ReadinessBackfillJob).where(ReadinessBackfillJob.id == job_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_for_update(self, job_id: Any) -> Optional[ReadinessBackfillJob]:
        """Load a job with a row lock held until the unit of work ends.

        The lock is a no-op on backends without SELECT ... FOR UPDATE
        (SQLite); the job's row_version still catches a lost update there.
        """
        job_id = coerce_uuid(job_id)
        if job_id is None:
            return None
        stmt = (
            select(ReadinessBackfillJob)
            .where(ReadinessBackfillJob.id == job_id)
            .with_for_update()
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_recent(self, status: Optional[str] = None, limit: int = 20) -> List[ReadinessBackfillJob]:
        stmt = select(ReadinessBackfillJob)
        if status:
            stmt = stmt.where(ReadinessBackfillJob.status == status)
        stmt = stmt.order_by(
            ReadinessBackfillJob.created_at.desc(),
            ReadinessBackfillJob.started_at.desc()
        ).limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def get_active(self) -> Optional[ReadinessBackfillJob]:
        """Most recently started job that is still running, if any."""
        jobs = self.list_recent(status='running', limit=1)
        return jobs[0] if jobs else None
