#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException

from core.app_context import AppContext
from .config import get_config
from .services.backfill_service import BackfillService

CALLER_HEADER = "X-User-Id"


@lru_cache()
def get_app_context() -> AppContext:
    """
    Process-wide application context, built on first use.

    Tests replace it with app.dependency_overrides[get_app_context].
    """
    return AppContext.build(get_config())


def get_caller_id(x_user_id: Optional[str] = Header(default=None, alias=CALLER_HEADER)) -> str:
    """
    Authenticated caller id, as forwarded by the gateway.

    Raises:
        HTTPException: 401 if the header is missing or blank.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail=f"Missing {CALLER_HEADER} header")
    return x_user_id.strip()


def get_backfill_service(ctx: AppContext = Depends(get_app_context)) -> BackfillService:
    return BackfillService(ctx)
