import contextlib
import logging
from typing import Iterator, Optional

from sqlalchemy.orm import sessionmaker

from database.repository import CellarRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def cellar_uow(session_factory: Optional[sessionmaker] = None) -> Iterator[CellarRepository]:
    """Per-unit-of-work transaction scope.

    Yields a CellarRepository bound to a fresh Session. Commits on success,
    rolls back on exception, always closes.

    Usage:
        with cellar_uow() as repo:
            job = repo.jobs.get_by_id(job_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    if session_factory is None:
        from database.database import SessionLocal
        session_factory = SessionLocal

    session = session_factory()
    try:
        repo = CellarRepository(session)
        yield repo
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
