#!/usr/bin/env python3
"""
Error handlers for the web application.

Engine errors (pipeline.exceptions) are mapped to HTTP status codes here;
everything is returned in the same {success, error, type} envelope.
"""

import logging
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from pipeline.exceptions import (
    BackfillError,
    InvalidBackfillRequest,
    AdminRequired,
    BackfillJobNotFound,
    BackfillJobLocked,
    BackfillJobConflict,
)

logger = logging.getLogger(__name__)

STATUS_CODES = {
    InvalidBackfillRequest: 400,
    AdminRequired: 403,
    BackfillJobNotFound: 404,
    BackfillJobLocked: 409,
    BackfillJobConflict: 409,
}


def _error_response(status_code: int, error, error_type: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "type": error_type
        }
    )


async def backfill_exception_handler(
    request: Request,
    exc: BackfillError
) -> JSONResponse:
    """
    Handle backfill engine exceptions.

    Args:
        request: The FastAPI request.
        exc: The engine exception.

    Returns:
        JSONResponse with error details.
    """
    status_code = 500
    for exc_class, code in STATUS_CODES.items():
        if isinstance(exc, exc_class):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"Backfill error in {request.url.path}: {exc}", exc_info=True)
    else:
        logger.info(f"Backfill request rejected in {request.url.path} ({status_code}): {exc}")

    return _error_response(status_code, str(exc), exc.__class__.__name__)


async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle record store failures: the invocation failed, persisted job
    state from earlier batches is intact and the caller may retry.
    """
    logger.error(f"Database error in {request.url.path}: {exc}", exc_info=True)
    return _error_response(503, "Record store unavailable, retry later", "DatabaseUnavailable")


async def http_exception_handler(
    request: Request,
    exc: HTTPException
) -> JSONResponse:
    """
    Handle FastAPI HTTP exceptions with consistent format.
    """
    return _error_response(exc.status_code, exc.detail, "HTTPException")


async def general_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handle unexpected exceptions.
    """
    logger.exception(f"Unexpected error in {request.url.path}")
    return _error_response(500, "Internal server error", "InternalError")
