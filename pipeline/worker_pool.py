"""Bounded worker pool: score and write one page of bottles.

Concurrency only bounds simultaneous writes to the store; scoring itself is
instantaneous. Per-bottle errors are always absorbed here and reported as
failures, never raised.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, ContextManager, Dict, List, Optional, Tuple

from sqlalchemy.exc import DBAPIError, OperationalError, SQLAlchemyError
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.readiness import StructureProfile, WineFacts, score_readiness
from database.repository import CellarRepository
from pipeline.models import BatchOutcome, BottleSnapshot, FailureRecord

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5

UPDATED = 'updated'
SKIPPED = 'skipped'
FAILED = 'failed'


@dataclass(frozen=True)
class ItemOutcome:
    bottle_id: Any
    result: str
    reason: Optional[str] = None


def describe_error(exc: Exception) -> str:
    """Short failure reason safe to store on the job and return to callers.

    SQLAlchemy messages embed the SQL statement and its bound parameters;
    only the driver error (first line) or the exception class is kept.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        lines = str(exc.orig).strip().splitlines()
        detail = lines[0] if lines else exc.orig.__class__.__name__
        return f"{exc.__class__.__name__}: {detail}"
    if isinstance(exc, SQLAlchemyError):
        return exc.__class__.__name__
    return str(exc) or exc.__class__.__name__


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception()
    logger.warning(
        "Transient store error writing readiness (attempt %s), retrying: %s",
        retry_state.attempt_number, exc,
    )


class BoundedWorkerPool:
    """Applies the scoring function to a page of bottles, N at a time."""

    def __init__(
        self,
        uow_factory: Callable[[], ContextManager[CellarRepository]],
        version: int,
        year: int,
        concurrency: int = DEFAULT_CONCURRENCY,
        write_retry_attempts: int = 3
    ):
        self.uow_factory = uow_factory
        self.version = version
        self.year = year
        self.concurrency = concurrency
        self.write_retry_attempts = write_retry_attempts

    def _load_wines(self, bottles: List[BottleSnapshot]) -> Dict[Any, Tuple[WineFacts, Optional[StructureProfile]]]:
        """One IN query for every wine on the page, converted to scoring inputs."""
        with self.uow_factory() as repo:
            wines = repo.wines.get_by_ids(b.wine_id for b in bottles)
            return {
                wine_id: (WineFacts.from_row(wine), StructureProfile.from_mapping(wine.wine_profile))
                for wine_id, wine in wines.items()
            }

    def _write(self, bottle_id: Any, fields: Dict[str, Any]) -> bool:
        for attempt in Retrying(
            stop=stop_after_attempt(self.write_retry_attempts),
            wait=wait_exponential(multiplier=0.1, max=2),
            retry=retry_if_exception_type(OperationalError),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                with self.uow_factory() as repo:
                    found = repo.bottles.stamp_readiness(
                        bottle_id, fields, self.version, datetime.now(timezone.utc)
                    )
        return found

    def _process_one(
        self,
        bottle: BottleSnapshot,
        wine: Optional[Tuple[WineFacts, Optional[StructureProfile]]]
    ) -> ItemOutcome:
        if wine is None:
            logger.info(f"Skipping bottle {bottle.id}: wine {bottle.wine_id} not found")
            return ItemOutcome(bottle.id, SKIPPED, 'wine not found')

        facts, profile = wine
        try:
            result = score_readiness(facts, profile, self.year)
            if not self._write(bottle.id, result.as_bottle_fields()):
                logger.info(f"Skipping bottle {bottle.id}: deleted before its readiness was written")
                return ItemOutcome(bottle.id, SKIPPED, 'bottle not found')
        except Exception as e:
            logger.warning(f"Failed to update readiness for bottle {bottle.id}: {e}")
            return ItemOutcome(bottle.id, FAILED, describe_error(e))

        return ItemOutcome(bottle.id, UPDATED)

    def process(self, bottles: List[BottleSnapshot]) -> BatchOutcome:
        """Score and write every bottle; return updated/skipped/failed deltas.

        All bottles are attempted before this returns, whatever their order
        of completion.
        """
        outcome = BatchOutcome()
        if not bottles:
            return outcome

        wines = self._load_wines(bottles)

        with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="readiness") as executor:
            futures = [
                executor.submit(self._process_one, bottle, wines.get(bottle.wine_id))
                for bottle in bottles
            ]
            items = [future.result() for future in futures]

        for item in items:
            if item.result == UPDATED:
                outcome.updated += 1
            elif item.result == SKIPPED:
                outcome.skipped += 1
            else:
                outcome.failed += 1
                outcome.failures.append(FailureRecord.build(item.bottle_id, item.reason))

        return outcome
