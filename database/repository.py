import logging

from sqlalchemy.orm import Session

from database.repositories import (
    BottleRepository,
    WineRepository,
    BackfillJobRepository,
    ProfileRepository,
)

logger = logging.getLogger(__name__)


class CellarRepository:
    """Facade over the per-aggregate repositories sharing one Session.

    Usage:
        with cellar_uow() as repo:
            page = repo.bottles.fetch_page(cursor, 200)
            wines = repo.wines.get_by_ids(b.wine_id for b in page)
    """

    def __init__(self, db: Session):
        self.db = db
        self.bottles = BottleRepository(db)
        self.wines = WineRepository(db)
        self.jobs = BackfillJobRepository(db)
        self.profiles = ProfileRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
