"""Business logic services."""

from .backfill_service import BackfillService
