from database.repositories.base import BaseRepository, coerce_uuid
from database.repositories.bottle import BottleRepository
from database.repositories.wine import WineRepository
from database.repositories.backfill_job import BackfillJobRepository
from database.repositories.profile import ProfileRepository

__all__ = [
    'BaseRepository',
    'coerce_uuid',
    'BottleRepository',
    'WineRepository',
    'BackfillJobRepository',
    'ProfileRepository',
]
