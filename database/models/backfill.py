import uuid

from sqlalchemy import Column, Integer, Text, TIMESTAMP, ForeignKey, Uuid, Index, CheckConstraint, func

from .base import Base, JSONType


class ReadinessBackfillJob(Base):
    """
    One run of the global readiness backfill.

    Holds everything needed to resume: the cursor (last bottle id of the last
    fully attempted page) and cumulative counters. row_version is bumped on
    every write so a second writer fails loudly instead of losing counts.
    """
    __tablename__ = 'readiness_backfill_jobs'

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Job configuration (fixed at creation)
    mode = Column(Text, nullable=False)
    batch_size = Column(Integer, nullable=False, default=200)
    current_version = Column(Integer, nullable=False)

    # Progress tracking
    status = Column(Text, nullable=False, default='running')
    cursor = Column(Text)
    processed = Column(Integer, nullable=False, default=0)
    updated = Column(Integer, nullable=False, default=0)
    skipped = Column(Integer, nullable=False, default=0)
    failed = Column(Integer, nullable=False, default=0)
    failures = Column(JSONType, nullable=False, default=list)  # [{bottle_id, reason}], newest last

    started_by = Column(Uuid(as_uuid=True), ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True)
    estimated_total = Column(Integer)
    row_version = Column(Integer, nullable=False)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    started_at = Column(TIMESTAMP(timezone=True))
    finished_at = Column(TIMESTAMP(timezone=True))

    __mapper_args__ = {"version_id_col": row_version}

    __table_args__ = (
        CheckConstraint("mode IN ('missing_only', 'stale_or_missing', 'force_all')", name='ck_backfill_mode'),
        CheckConstraint("status IN ('running', 'completed')", name='ck_backfill_status'),
        Index('idx_readiness_jobs_status', 'status', 'created_at'),
        Index('idx_readiness_jobs_started_by', 'started_by', 'created_at'),
    )
