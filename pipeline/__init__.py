"""Readiness backfill engine for the cellar."""

from .backfill import ReadinessBackfillEngine
from .models import BackfillRequest, BackfillResult, BackfillJobState

__all__ = ['ReadinessBackfillEngine', 'BackfillRequest', 'BackfillResult', 'BackfillJobState']
