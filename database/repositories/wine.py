from typing import Any, Dict, Iterable

from sqlalchemy import select

from database.models import Wine
from database.repositories.base import BaseRepository


class WineRepository(BaseRepository):
    def get_by_ids(self, wine_ids: Iterable[Any]) -> Dict[Any, Wine]:
        """Fetch wines for a set of ids in a single IN query."""
        ids = {wid for wid in wine_ids if wid is not None}
        if not ids:
            return {}

        stmt = select(Wine).where(Wine.id.in_(ids))
        return {wine.id: wine for wine in self.db.execute(stmt).scalars().all()}
