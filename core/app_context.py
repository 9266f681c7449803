from dataclasses import dataclass
from functools import partial
from typing import Callable, ContextManager, Optional

from core.config_loader import AppConfig
from database.repository import CellarRepository
from pipeline.authorization import AuthorizationService, ProfileAuthorizationService
from pipeline.backfill import ReadinessBackfillEngine
from pipeline.job_manager import JobRecordManager


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Provides a single source of truth for service instantiation shared by
    the CLI and the web application. DB access is obtained per operation
    through uow_factory, never held here.
    """
    config: AppConfig
    uow_factory: Callable[[], ContextManager[CellarRepository]]
    authorization: AuthorizationService
    engine: ReadinessBackfillEngine

    @property
    def jobs(self) -> JobRecordManager:
        return self.engine.jobs

    @classmethod
    def build(
        cls,
        config: AppConfig,
        uow_factory: Optional[Callable[[], ContextManager[CellarRepository]]] = None
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            uow_factory: Unit-of-work factory; defaults to cellar_uow on the
                engine built from config.database.url

        Returns:
            Fully wired AppContext instance
        """
        if uow_factory is None:
            uow_factory = cls._build_uow_factory(config)

        authorization = ProfileAuthorizationService(uow_factory)
        engine = ReadinessBackfillEngine(
            uow_factory,
            authorization,
            backfill_config=config.backfill,
            readiness_config=config.readiness,
        )

        return cls(
            config=config,
            uow_factory=uow_factory,
            authorization=authorization,
            engine=engine,
        )

    @staticmethod
    def _build_uow_factory(config: AppConfig) -> Callable[[], ContextManager[CellarRepository]]:
        from database.database import build_session_factory
        from database.uow import cellar_uow

        session_factory = build_session_factory(config.database.url)
        return partial(cellar_uow, session_factory)
