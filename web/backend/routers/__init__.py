"""API route handlers."""

from .backfill import router as backfill_router
