from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.config_loader import load_config

DATABASE_URL = load_config().database.url

engine = create_engine(DATABASE_URL, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def build_session_factory(url: str, **engine_kwargs) -> sessionmaker:
    """Create a sessionmaker for an explicit database URL (tests, tooling)."""
    if url.startswith("sqlite"):
        # Worker pool threads share the engine
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
    else:
        engine_kwargs.setdefault("pool_pre_ping", True)
    return sessionmaker(autocommit=False, autoflush=False, bind=create_engine(url, **engine_kwargs))
