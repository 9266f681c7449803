"""
Authorization Interface - the admin check the backfill engine relies on.

Authentication happens upstream; the engine only asks whether an already
identified caller may run an administrative operation.
"""
from abc import ABC, abstractmethod
from typing import Callable, ContextManager, Optional

from database.repository import CellarRepository


class AuthorizationService(ABC):

    @abstractmethod
    def is_admin(self, caller_id: Optional[str]) -> bool:
        """Return True if the caller is an administrator."""
        pass


class ProfileAuthorizationService(AuthorizationService):
    """Reads the admin flag from the caller's profile row."""

    def __init__(self, uow_factory: Callable[[], ContextManager[CellarRepository]]):
        self.uow_factory = uow_factory

    def is_admin(self, caller_id: Optional[str]) -> bool:
        if not caller_id:
            return False
        with self.uow_factory() as repo:
            return repo.profiles.is_admin(caller_id)
