"""Job record manager: the durable progress record of a backfill.

Every change to a job row goes through here, one short unit of work per
change, so counters and cursor always move together.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, ContextManager, List, Optional

from core.readiness.models import BackfillMode
from database.repository import CellarRepository
from pipeline.exceptions import BackfillJobConflict, BackfillJobNotFound
from pipeline.models import BackfillJobState, BatchOutcome

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_RING_SIZE = 50


class JobRecordManager:
    def __init__(
        self,
        uow_factory: Callable[[], ContextManager[CellarRepository]],
        failure_ring_size: int = DEFAULT_FAILURE_RING_SIZE
    ):
        self.uow_factory = uow_factory
        self.failure_ring_size = failure_ring_size

    def create(
        self,
        mode: BackfillMode,
        batch_size: int,
        current_version: int,
        started_by: Optional[str] = None
    ) -> BackfillJobState:
        """Start a new job at the beginning of the bottle ordering."""
        mode = BackfillMode(mode)
        with self.uow_factory() as repo:
            estimated_total = repo.bottles.count_needing_readiness(mode, current_version)
            job = repo.jobs.create(
                mode=mode.value,
                batch_size=batch_size,
                current_version=current_version,
                started_by=started_by,
                estimated_total=estimated_total,
            )
            state = BackfillJobState.from_orm(job)

        logger.info(
            f"Created readiness backfill job {state.id} "
            f"(mode={state.mode}, batch_size={batch_size}, version={current_version}, "
            f"estimated_total={estimated_total})"
        )
        return state

    def load(self, job_id: str) -> BackfillJobState:
        with self.uow_factory() as repo:
            job = repo.jobs.get_by_id(job_id)
            if job is None:
                raise BackfillJobNotFound(f"Backfill job not found: {job_id}")
            return BackfillJobState.from_orm(job)

    def advance(self, state: BackfillJobState, outcome: BatchOutcome) -> BackfillJobState:
        """Add one page's deltas and move the cursor past it, atomically.

        The row is locked for the duration of the update and its row_version
        must still match what the caller last saw. A mismatch means another
        invocation advanced the same job; nothing is written in that case.
        """
        with self.uow_factory() as repo:
            job = repo.jobs.get_for_update(state.id)
            if job is None:
                raise BackfillJobNotFound(f"Backfill job not found: {state.id}")
            if job.row_version != state.row_version:
                raise BackfillJobConflict(
                    f"Backfill job {state.id} was modified concurrently "
                    f"(expected row version {state.row_version}, found {job.row_version})"
                )

            job.processed += outcome.processed
            job.updated += outcome.updated
            job.skipped += outcome.skipped
            job.failed += outcome.failed
            if outcome.last_id is not None:
                job.cursor = outcome.last_id

            if outcome.failures:
                failures = list(job.failures or []) + [f.to_dict() for f in outcome.failures]
                # Reassign so the JSON column is flagged dirty
                job.failures = failures[-self.failure_ring_size:]

            repo.db.flush()
            return BackfillJobState.from_orm(job)

    def complete(self, state: BackfillJobState) -> BackfillJobState:
        with self.uow_factory() as repo:
            job = repo.jobs.get_for_update(state.id)
            if job is None:
                raise BackfillJobNotFound(f"Backfill job not found: {state.id}")
            if job.status != 'completed':
                job.status = 'completed'
                job.finished_at = datetime.now(timezone.utc)
                repo.db.flush()
            completed = BackfillJobState.from_orm(job)

        logger.info(
            f"Readiness backfill job {completed.id} completed: "
            f"processed={completed.processed} updated={completed.updated} "
            f"skipped={completed.skipped} failed={completed.failed}"
        )
        return completed

    def estimate(self, mode: BackfillMode, current_version: int) -> int:
        with self.uow_factory() as repo:
            return repo.bottles.count_needing_readiness(BackfillMode(mode), current_version)

    def list_recent(self, status: Optional[str] = None, limit: int = 20) -> List[BackfillJobState]:
        with self.uow_factory() as repo:
            return [BackfillJobState.from_orm(job) for job in repo.jobs.list_recent(status=status, limit=limit)]

    def get_active(self) -> Optional[BackfillJobState]:
        with self.uow_factory() as repo:
            job = repo.jobs.get_active()
            return BackfillJobState.from_orm(job) if job else None
