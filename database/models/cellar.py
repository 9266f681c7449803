import uuid

from sqlalchemy import Column, Integer, Text, TIMESTAMP, ForeignKey, Uuid, Index, func
from sqlalchemy.orm import relationship

from .base import Base, JSONType


class Wine(Base):
    """
    A wine as entered by its owner. Shared by every bottle of it and
    read-only to the readiness backfill.
    """
    __tablename__ = 'wines'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=True)

    wine_name = Column(Text, nullable=False)
    producer = Column(Text)
    vintage = Column(Integer)
    color = Column(Text)  # free text: red|white|rose|sparkling|...
    region = Column(Text)
    country = Column(Text)
    grapes = Column(JSONType, default=list)

    # AI-authored structural profile: body/tannin/acidity/oak/power/...
    wine_profile = Column(JSONType)
    wine_profile_updated_at = Column(TIMESTAMP(timezone=True))

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    bottles = relationship("Bottle", back_populates="wine")


class Bottle(Base):
    """
    A bottle (or lot of bottles) a user owns.

    Readiness columns are written only by the readiness backfill; analysis
    columns only by the AI analysis path. Neither writer touches the other's
    columns.
    """
    __tablename__ = 'bottles'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete='CASCADE'), nullable=True)
    wine_id = Column(Uuid(as_uuid=True), ForeignKey('wines.id', ondelete='CASCADE'), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)

    # === Readiness (deterministic backfill) ===
    readiness_score = Column(Integer)
    readiness_status = Column(Text)  # TooYoung|Approaching|InWindow|Peak|PastPeak|Unknown
    drink_window_start = Column(Integer)
    drink_window_end = Column(Integer)
    readiness_confidence = Column(Text)  # low|medium|high
    readiness_reasons = Column(JSONType)
    readiness_version = Column(Integer, nullable=False, default=1)
    readiness_updated_at = Column(TIMESTAMP(timezone=True))

    # === AI analysis (separate, best-effort path) ===
    analysis_summary = Column(Text)
    analysis_reasons = Column(JSONType)
    analysis_notes = Column(Text)
    serve_temp_c = Column(Integer)
    decant_minutes = Column(Integer)
    analyzed_at = Column(TIMESTAMP(timezone=True))

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    wine = relationship("Wine", back_populates="bottles")

    __table_args__ = (
        Index('idx_bottles_wine', 'wine_id'),
        Index('idx_bottles_owner', 'owner_id'),
        Index('idx_bottles_readiness_version', 'readiness_version', 'id'),
        Index('idx_bottles_readiness_updated_at', 'readiness_updated_at'),
    )


READINESS_COLUMNS = (
    'readiness_score',
    'readiness_status',
    'drink_window_start',
    'drink_window_end',
    'readiness_confidence',
    'readiness_reasons',
    'readiness_version',
    'readiness_updated_at',
)
