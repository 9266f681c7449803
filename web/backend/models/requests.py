#!/usr/bin/env python3
"""
Request models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional


class RunBackfillRequest(BaseModel):
    """
    Request to start or resume a readiness backfill.

    Ranges are checked by the engine so that out-of-range values come back
    as 400 InvalidBackfillRequest rather than a schema error.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    job_id: Optional[str] = Field(None, description="Resume this job; omit to start a new one")
    mode: Optional[str] = Field(
        None,
        description="missing_only (default), stale_or_missing or force_all; ignored on resume"
    )
    batch_size: Optional[int] = Field(None, description="Bottles per page (default 200); ignored on resume")
    max_batches: Optional[int] = Field(None, description="Pages to process in this call (default 1)")
