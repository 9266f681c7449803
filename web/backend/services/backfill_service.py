#!/usr/bin/env python3
"""
Backfill service - admin operations on the readiness backfill.
"""

import logging
from typing import Optional

from core.app_context import AppContext
from core.readiness import BackfillMode
from pipeline.exceptions import AdminRequired, InvalidBackfillRequest
from pipeline.models import BackfillRequest
from ..models.requests import RunBackfillRequest
from ..models.responses import (
    RunBackfillResponse,
    BackfillJobResponse,
    BackfillJobsResponse,
    BackfillEstimateResponse
)

logger = logging.getLogger(__name__)

JOB_STATUSES = ('running', 'completed')


class BackfillService:
    """Service for running and inspecting readiness backfill jobs."""

    def __init__(self, ctx: AppContext):
        self.ctx = ctx

    def _require_admin(self, caller_id: str) -> None:
        if not self.ctx.authorization.is_admin(caller_id):
            raise AdminRequired("Administrator privileges are required")

    def run(self, caller_id: str, body: RunBackfillRequest) -> RunBackfillResponse:
        """
        Run one engine invocation (at most maxBatches pages) and return the
        job's cumulative counters. The engine performs its own admin check.
        """
        request = BackfillRequest(
            job_id=body.job_id,
            mode=body.mode,
            batch_size=body.batch_size,
            max_batches=body.max_batches
        )
        result = self.ctx.engine.run(caller_id, request)
        return RunBackfillResponse.from_result(result)

    def list_jobs(self, caller_id: str, status: Optional[str] = None, limit: int = 20) -> BackfillJobsResponse:
        """
        Get recent jobs, newest first.

        Args:
            caller_id: Authenticated caller.
            status: Optional status filter ("running" or "completed").
            limit: Maximum number of jobs to return.
        """
        if status is not None and status not in JOB_STATUSES:
            raise InvalidBackfillRequest(
                f"Unknown status '{status}'. Expected one of: {', '.join(JOB_STATUSES)}"
            )
        self._require_admin(caller_id)

        jobs = [BackfillJobResponse.from_state(job) for job in self.ctx.jobs.list_recent(status=status, limit=limit)]
        return BackfillJobsResponse(jobs=jobs, total=len(jobs))

    def get_job(self, caller_id: str, job_id: str) -> BackfillJobResponse:
        self._require_admin(caller_id)
        return BackfillJobResponse.from_state(self.ctx.jobs.load(job_id))

    def get_active_job(self, caller_id: str) -> Optional[BackfillJobResponse]:
        """Most recent running job, so the admin UI can offer to resume it."""
        self._require_admin(caller_id)
        job = self.ctx.jobs.get_active()
        return BackfillJobResponse.from_state(job) if job else None

    def estimate(self, caller_id: str, mode: Optional[str] = None) -> BackfillEstimateResponse:
        try:
            backfill_mode = BackfillMode(mode or BackfillMode.MISSING_ONLY.value)
        except ValueError:
            raise InvalidBackfillRequest(f"Unknown mode '{mode}'")
        self._require_admin(caller_id)

        version = self.ctx.config.readiness.version
        total = self.ctx.jobs.estimate(backfill_mode, version)
        return BackfillEstimateResponse(mode=backfill_mode.value, current_version=version, estimated_total=total)
