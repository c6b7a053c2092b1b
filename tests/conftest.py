"""Test configuration and fixtures"""
import os

# Must be set before app modules build the engine and settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STOCK_LOCK_BACKEND", "local")
os.environ.setdefault("LOW_STOCK_ALERTS_ENABLED", "true")

import pytest
from unittest.mock import Mock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from redlock import Redlock

from app.db.base import Base
from app.core.locks import LocalStockLock
from app.services.product_service import ProductService


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite engine; a file lets several threads share the data"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'inventory.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def stock_lock():
    return LocalStockLock(timeout=2.0)


@pytest.fixture
def notifier():
    """Records low-stock signals"""
    return Mock()


@pytest.fixture
def service(db_session, stock_lock, notifier):
    return ProductService(db_session, stock_lock=stock_lock, low_stock_notifier=notifier)


@pytest.fixture
def laptop(service):
    """Laptop with 50 units and the default threshold of 10"""
    return service.create(name="Laptop", stock_quantity=50, low_stock_threshold=10)


@pytest.fixture
def mock_redlock():
    """Mocked Redlock"""
    redlock_mock = Mock(spec=Redlock)
    redlock_mock.lock.return_value = Mock()
    redlock_mock.unlock.return_value = True
    return redlock_mock


@pytest.fixture
def sample_product_data():
    return {
        "name": "Laptop",
        "description": "15 inch business laptop",
        "stock_quantity": 50,
        "low_stock_threshold": 10,
    }
