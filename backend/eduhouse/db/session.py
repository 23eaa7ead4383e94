from collections.abc import Generator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from eduhouse.core.config import settings


def _engine_options(database_url: str) -> dict[str, Any]:
    if database_url.startswith('sqlite'):
        # A single shared connection keeps in-memory databases alive across threads.
        return {'connect_args': {'check_same_thread': False}, 'poolclass': StaticPool}
    return {'pool_pre_ping': True}


engine = create_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
