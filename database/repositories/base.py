import uuid
from typing import Any, Optional

from sqlalchemy.orm import Session


def coerce_uuid(value: Any) -> Optional[uuid.UUID]:
    """Return value as a UUID, or None if it is not one."""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class BaseRepository:
    def __init__(self, db: Session):
        self.db = db

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
