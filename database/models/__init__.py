from .base import Base, JSONType
from .profile import Profile
from .cellar import Wine, Bottle, READINESS_COLUMNS
from .backfill import ReadinessBackfillJob

__all__ = [
    'Base',
    'JSONType',
    'Profile',
    'Wine',
    'Bottle',
    'READINESS_COLUMNS',
    'ReadinessBackfillJob',
]
