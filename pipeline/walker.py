"""Batch cursor walker: deterministic id-ordered paging over all bottles."""

import logging
from dataclasses import dataclass
from typing import Callable, ContextManager, List, Optional

from database.repository import CellarRepository
from pipeline.models import BottleSnapshot

logger = logging.getLogger(__name__)


@dataclass
class BottlePage:
    bottles: List[BottleSnapshot]
    limit: int

    @property
    def last_id(self) -> Optional[str]:
        return str(self.bottles[-1].id) if self.bottles else None

    @property
    def is_last(self) -> bool:
        """A short (or empty) page means nothing is left after it."""
        return len(self.bottles) < self.limit


class BatchCursorWalker:
    """Fetches pages of bottles strictly after a cursor, ordered by id.

    The walker never moves the cursor itself. The engine persists the page's
    last id only after every bottle on the page was attempted, so a crash
    mid-page replays that page on resume.
    """

    def __init__(self, uow_factory: Callable[[], ContextManager[CellarRepository]], batch_size: int):
        self.uow_factory = uow_factory
        self.batch_size = batch_size

    def fetch_next(self, cursor: Optional[str]) -> BottlePage:
        with self.uow_factory() as repo:
            rows = repo.bottles.fetch_page(cursor, self.batch_size)
            bottles = [BottleSnapshot.from_orm(row) for row in rows]

        logger.debug(f"Fetched {len(bottles)} bottles after cursor {cursor}")
        return BottlePage(bottles=bottles, limit=self.batch_size)
