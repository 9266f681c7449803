import logging
from typing import Any, Dict, List, Optional
from datetime import datetime

from sqlalchemy import select, update, func, or_

from core.readiness.models import BackfillMode
from database.models import Bottle, READINESS_COLUMNS
from database.repositories.base import BaseRepository, coerce_uuid

logger = logging.getLogger(__name__)


class BottleRepository(BaseRepository):
    def fetch_page(self, after_cursor: Optional[str], limit: int) -> List[Bottle]:
        """Fetch the next page of bottles in ascending id order.

        Args:
            after_cursor: Last bottle id of the previous page (exclusive), or None
            limit: Page size

        Returns:
            Up to `limit` bottles with id strictly greater than the cursor
        """
        stmt = select(Bottle).order_by(Bottle.id.asc()).limit(limit)

        if after_cursor is not None:
            cursor_id = coerce_uuid(after_cursor)
            if cursor_id is None:
                raise ValueError(f"Malformed bottle cursor: {after_cursor!r}")
            stmt = stmt.where(Bottle.id > cursor_id)

        return list(self.db.execute(stmt).scalars().all())

    def count_needing_readiness(self, mode: BackfillMode, current_version: int) -> int:
        """Estimate how many bottles a backfill in this mode would score."""
        mode = BackfillMode(mode)
        stmt = select(func.count()).select_from(Bottle)

        missing = or_(
            Bottle.readiness_score.is_(None),
            Bottle.readiness_status.is_(None),
            Bottle.readiness_updated_at.is_(None),
        )
        if mode is BackfillMode.MISSING_ONLY:
            stmt = stmt.where(missing)
        elif mode is BackfillMode.STALE_OR_MISSING:
            stmt = stmt.where(or_(
                missing,
                Bottle.readiness_version.is_(None),
                Bottle.readiness_version != current_version,
            ))

        return self.db.execute(stmt).scalar_one()

    def update_readiness(self, bottle_id: Any, fields: Dict[str, Any]) -> bool:
        """Overwrite a bottle's readiness columns with a single UPDATE.

        Only readiness columns may be written here; anything else is a bug
        in the caller.

        Returns:
            False if the bottle no longer exists
        """
        unknown = set(fields) - set(READINESS_COLUMNS)
        if unknown:
            raise ValueError(f"Not readiness columns: {sorted(unknown)}")

        stmt = (
            update(Bottle)
            .where(Bottle.id == coerce_uuid(bottle_id))
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        return result.rowcount > 0

    def stamp_readiness(
        self,
        bottle_id: Any,
        readiness_fields: Dict[str, Any],
        version: int,
        now: datetime
    ) -> bool:
        fields = dict(readiness_fields)
        fields['readiness_version'] = version
        fields['readiness_updated_at'] = now
        return self.update_readiness(bottle_id, fields)
