#!/usr/bin/env python3
"""
Readiness backfill endpoints - run, resume and inspect backfill jobs.

All endpoints are administrative: the caller id comes from the gateway's
X-User-Id header and must belong to an admin profile.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from ..config import get_config
from ..dependencies import get_backfill_service, get_caller_id
from ..models.requests import RunBackfillRequest
from ..models.responses import (
    RunBackfillResponse,
    BackfillJobResponse,
    BackfillJobsResponse,
    BackfillEstimateResponse
)
from ..services.backfill_service import BackfillService

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/api/admin/readiness-backfill", tags=["readiness-backfill"])


def add_rate_limit_handlers(app):
    """Add rate limit exception handlers to the FastAPI app."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


async def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": f"Rate limit exceeded: {exc.detail}",
            "type": "RateLimitExceeded"
        }
    )


def _run_rate_limit() -> str:
    return get_config().web.run_rate_limit


@router.post("/run", response_model=RunBackfillResponse)
@limiter.limit(_run_rate_limit)
def run_backfill(
    request: Request,
    body: RunBackfillRequest,
    caller_id: str = Depends(get_caller_id),
    service: BackfillService = Depends(get_backfill_service)
):
    """
    Start a new backfill (no jobId) or resume one (jobId).

    Processes at most maxBatches pages, then returns the job's cumulative
    counters. Call again with the returned jobId until isComplete is true.
    """
    return service.run(caller_id, body)


@router.get("/jobs", response_model=BackfillJobsResponse)
def list_backfill_jobs(
    status: Optional[str] = Query(default=None, description="Filter by status: running or completed"),
    limit: int = Query(default=20, ge=1, le=100, description="Maximum jobs to return"),
    caller_id: str = Depends(get_caller_id),
    service: BackfillService = Depends(get_backfill_service)
):
    """List recent backfill jobs, newest first."""
    return service.list_jobs(caller_id, status=status, limit=limit)


@router.get("/jobs/active", response_model=Optional[BackfillJobResponse])
def get_active_backfill_job(
    caller_id: str = Depends(get_caller_id),
    service: BackfillService = Depends(get_backfill_service)
):
    """
    Get the most recent running job, if any.

    Useful for the admin UI to offer "resume" after a page refresh.
    """
    return service.get_active_job(caller_id)


@router.get("/jobs/{job_id}", response_model=BackfillJobResponse)
def get_backfill_job(
    job_id: str,
    caller_id: str = Depends(get_caller_id),
    service: BackfillService = Depends(get_backfill_service)
):
    """Get one job's persisted state."""
    return service.get_job(caller_id, job_id)


@router.get("/estimate", response_model=BackfillEstimateResponse)
def estimate_backfill(
    mode: Optional[str] = Query(default=None, description="missing_only (default), stale_or_missing or force_all"),
    caller_id: str = Depends(get_caller_id),
    service: BackfillService = Depends(get_backfill_service)
):
    """Estimate how many bottles a new run in this mode would score."""
    return service.estimate(caller_id, mode)
