"""Readiness backfill engine.

One invocation establishes the job, walks at most max_batches pages of
bottles from the job's cursor, scores the eligible ones, and persists the
job after every page. Long backfills are driven by invoking again with the
returned job id.
"""

import time
import logging
from typing import Callable, ContextManager, Optional

from core.config_loader import BackfillConfig, ReadinessConfig
from core.readiness import BackfillMode, partition_eligible
from core.readiness.scoring import current_year
from database.repository import CellarRepository
from pipeline.authorization import AuthorizationService
from pipeline.control import JobLock
from pipeline.exceptions import AdminRequired, InvalidBackfillRequest
from pipeline.job_manager import JobRecordManager
from pipeline.models import BackfillJobState, BackfillRequest, BackfillResult, BatchOutcome
from pipeline.walker import BatchCursorWalker
from pipeline.worker_pool import BoundedWorkerPool

logger = logging.getLogger(__name__)

DEFAULT_MODE = BackfillMode.MISSING_ONLY


class ReadinessBackfillEngine:
    def __init__(
        self,
        uow_factory: Callable[[], ContextManager[CellarRepository]],
        authorization: AuthorizationService,
        backfill_config: Optional[BackfillConfig] = None,
        readiness_config: Optional[ReadinessConfig] = None
    ):
        self.uow_factory = uow_factory
        self.authorization = authorization
        self.backfill_config = backfill_config or BackfillConfig()
        self.readiness_config = readiness_config or ReadinessConfig()
        self.jobs = JobRecordManager(uow_factory, self.backfill_config.failure_ring_size)

    def validate(self, request: BackfillRequest) -> BackfillRequest:
        """Fill in defaults and reject out-of-range values.

        Returns a new request; the caller's object is left as is.
        """
        cfg = self.backfill_config

        mode = request.mode or DEFAULT_MODE.value
        try:
            mode = BackfillMode(mode).value
        except ValueError:
            valid = ", ".join(m.value for m in BackfillMode)
            raise InvalidBackfillRequest(f"Unknown mode '{request.mode}'. Expected one of: {valid}")

        batch_size = cfg.default_batch_size if request.batch_size is None else request.batch_size
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) \
                or not 1 <= batch_size <= cfg.max_batch_size:
            raise InvalidBackfillRequest(
                f"batch_size must be an integer between 1 and {cfg.max_batch_size}, got {batch_size!r}"
            )

        max_batches = cfg.default_max_batches if request.max_batches is None else request.max_batches
        if isinstance(max_batches, bool) or not isinstance(max_batches, int) \
                or not 1 <= max_batches <= cfg.max_batches_limit:
            raise InvalidBackfillRequest(
                f"max_batches must be an integer between 1 and {cfg.max_batches_limit}, got {max_batches!r}"
            )

        job_id = request.job_id.strip() if request.job_id else None
        return BackfillRequest(job_id=job_id or None, mode=mode, batch_size=batch_size, max_batches=max_batches)

    def run(self, caller_id: Optional[str], request: Optional[BackfillRequest] = None) -> BackfillResult:
        """Run one invocation of the backfill for an administrator.

        Raises:
            InvalidBackfillRequest: malformed request
            AdminRequired: caller is not an administrator
            BackfillJobNotFound: request.job_id does not exist
            BackfillJobLocked: the job is being driven by another invocation
        """
        started = time.monotonic()
        request = self.validate(request or BackfillRequest())

        if not self.authorization.is_admin(caller_id):
            logger.warning(f"Readiness backfill refused: caller {caller_id} is not an administrator")
            raise AdminRequired("Administrator privileges are required to run the readiness backfill")

        if request.job_id:
            job = self.jobs.load(request.job_id)
            logger.info(
                f"Resuming readiness backfill job {job.id} "
                f"(mode={job.mode}, cursor={job.cursor}, processed={job.processed})"
            )
            if job.is_complete:
                logger.info(f"Readiness backfill job {job.id} is already complete")
                return self._result(job, started)
        else:
            job = self.jobs.create(
                mode=BackfillMode(request.mode),
                batch_size=request.batch_size,
                current_version=self.readiness_config.version,
                started_by=caller_id,
            )

        with JobLock(self.backfill_config.lock_dir, job.id):
            job = self._run_batches(job, request.max_batches)

        return self._result(job, started)

    def _run_batches(self, job: BackfillJobState, max_batches: int) -> BackfillJobState:
        year = self.readiness_config.current_year or current_year()
        mode = BackfillMode(job.mode)
        walker = BatchCursorWalker(self.uow_factory, job.batch_size)
        pool = BoundedWorkerPool(
            self.uow_factory,
            version=job.current_version,
            year=year,
            concurrency=self.backfill_config.concurrency,
            write_retry_attempts=self.backfill_config.write_retry_attempts,
        )

        for batch_num in range(1, max_batches + 1):
            page = walker.fetch_next(job.cursor)
            if not page.bottles:
                logger.info(f"Job {job.id}: no bottles after cursor {job.cursor}")
                return self.jobs.complete(job)

            eligible, ineligible = partition_eligible(page.bottles, mode, job.current_version)
            outcome = pool.process(eligible)
            outcome.processed = len(page.bottles)
            outcome.skipped += len(ineligible)
            outcome.last_id = page.last_id

            job = self.jobs.advance(job, outcome)
            self._log_batch(job, batch_num, max_batches, outcome)

            if page.is_last:
                return self.jobs.complete(job)

        return job

    @staticmethod
    def _log_batch(job: BackfillJobState, batch_num: int, max_batches: int, outcome: BatchOutcome) -> None:
        logger.info(
            f"Job {job.id} batch {batch_num}/{max_batches}: "
            f"processed={outcome.processed} updated={outcome.updated} "
            f"skipped={outcome.skipped} failed={outcome.failed} cursor={job.cursor}"
        )

    def _result(self, job: BackfillJobState, started: float) -> BackfillResult:
        limit = self.backfill_config.response_failures
        failures = job.failures[-limit:] if limit else []
        return BackfillResult(
            job_id=job.id,
            processed=job.processed,
            updated=job.updated,
            skipped=job.skipped,
            failed=job.failed,
            failures=[dict(f) for f in failures],
            next_cursor=None if job.is_complete else job.cursor,
            is_complete=job.is_complete,
            elapsed_ms=int((time.monotonic() - started) * 1000),
        )
