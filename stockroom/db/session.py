from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from stockroom.core.config import get_settings


def create_session_factory(database_url: Optional[str] = None) -> sessionmaker:
    """Build a session factory for the configured (or given) database."""
    settings = get_settings()
    engine = create_engine(
        database_url or settings.database_url,
        echo=settings.database_echo,
    )
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


SessionLocal = create_session_factory()


def get_db() -> Generator[Session, None, None]:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
