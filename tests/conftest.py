"""Pytest configuration and shared fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockroom.core.config import get_settings
from stockroom.core.rbac.roles import get_role_catalog
from stockroom.db.base import Base
from stockroom.db import models  # noqa: F401  (registers tables on Base.metadata)


@pytest.fixture(autouse=True)
def clear_cached_config():
    """Settings and the role catalog are cached per process; reset around each test."""
    get_settings.cache_clear()
    get_role_catalog.cache_clear()
    yield
    get_settings.cache_clear()
    get_role_catalog.cache_clear()


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """Session that is rolled back after each test."""
    session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_catalog():
    """Small catalog dictionary in the role catalog file layout."""
    return {
        "permissions": [
            {"slug": "*:*", "description": "Everything", "system": True},
            {"slug": "products:manage", "description": "Manage products"},
            {"slug": "inventory*:read", "description": "Read stock"},
            {"slug": "reports:view"},
        ],
        "roles": {
            "owner": {
                "name": "Owner",
                "is_system": True,
                "permissions": ["*:*"],
            },
            "clerk": {
                "name": "Clerk",
                "description": "Stock clerk",
                "permissions": ["products:manage", "inventory*:read"],
            },
            "auditor": {
                "name": "Auditor",
                "permissions": ["inventory*:read", "reports:view"],
            },
        },
    }
