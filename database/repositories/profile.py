from typing import Any

from sqlalchemy import select

from database.models import Profile
from database.repositories.base import BaseRepository, coerce_uuid


class ProfileRepository(BaseRepository):
    def is_admin(self, profile_id: Any) -> bool:
        profile_id = coerce_uuid(profile_id)
        if profile_id is None:
            return False

        stmt = select(Profile.is_admin).where(Profile.id == profile_id)
        return bool(self.db.execute(stmt).scalar_one_or_none())
