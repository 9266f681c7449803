import uuid

from sqlalchemy import Column, Text, Boolean, TIMESTAMP, Uuid, func

from .base import Base


class Profile(Base):
    """
    Account profile. Only the admin flag matters to the backfill job.
    """
    __tablename__ = 'profiles'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    display_name = Column(Text)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
