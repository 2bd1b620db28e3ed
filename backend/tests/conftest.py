"""
Pytest fixtures and configuration for ShopSync Backend tests

This file provides shared fixtures that can be used across all test modules.
Every test gets a fresh in-memory SQLite store; the remote API is served by
FakeShopify (see shopify_fakes.py).
"""
import os

# Settings are read at import time: point the app at a throwaway store
# before anything from shopsync is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SYNC_API_KEY"] = "test-sync-key"
os.environ["SYNC_SCHEDULER_ENABLED"] = "false"
os.environ["DB_AUTO_CREATE"] = "false"

import pytest  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from shopsync.core.database import Base  # noqa: E402
from shopsync import models  # noqa: E402,F401
from shopsync.services.ingestion_service import IngestionService  # noqa: E402
from shopsync.services.tenant_service import TenantService  # noqa: E402

from shopify_fakes import FakeShopify  # noqa: E402


@pytest.fixture(scope="function")
def engine():
    """
    Provides an in-memory SQLite engine with the full schema

    Scope: function (new database per test)
    StaticPool keeps the single in-memory connection alive across sessions.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """Provides a session for direct assertions against the store"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def tenant(session_factory):
    """Registered tenant for acme.myshopify.com"""
    return TenantService(session_factory).register(
        "acme.myshopify.com", "shpat_acme_secret", "Acme Store", "owner@acme.test"
    )


@pytest.fixture
def other_tenant(session_factory):
    """Second registered tenant, for isolation tests"""
    return TenantService(session_factory).register(
        "globex.myshopify.com", "shpat_globex_secret", "Globex", "owner@globex.test"
    )


@pytest.fixture
def shop(tenant):
    """Empty fake shop for the default tenant"""
    return FakeShopify(shop_domain=tenant.shop_domain)


@pytest.fixture
def make_service(session_factory):
    """
    Builds an IngestionService for a tenant wired to a fake shop

    Usage:
        service = make_service(tenant, shop)
    """
    def build(tenant, shop, **kwargs):
        return IngestionService.for_tenant(
            tenant,
            connector=shop.connector(tenant.access_token),
            session_factory=session_factory,
            **kwargs,
        )

    return build
