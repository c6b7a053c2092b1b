"""Dependency injection tests"""
from unittest.mock import Mock, patch
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.dependencies import (
    dispatch_low_stock_alert,
    get_db,
    get_low_stock_notifier,
    get_product_service,
    get_stock_lock,
)
from app.core.locks import RedlockStockLock, local_stock_lock
from app.models.product import Product
from app.services.product_service import ProductService


class TestDependencies:

    def test_get_db(self):
        """Session is closed when the request finishes"""
        with patch('app.core.dependencies.SessionLocal') as mock_session_local:
            db_mock = Mock(spec=Session)
            mock_session_local.return_value = db_mock

            gen = get_db()
            db = next(gen)

            assert db == db_mock
            mock_session_local.assert_called_once()

            gen.close()
            db_mock.close.assert_called_once()

    def test_get_stock_lock_local(self):
        with patch.object(settings, 'STOCK_LOCK_BACKEND', 'local'):
            assert get_stock_lock() is local_stock_lock

    def test_get_stock_lock_redis(self, mock_redlock):
        with patch.object(settings, 'STOCK_LOCK_BACKEND', 'redis'), \
             patch.object(settings, 'STOCK_LOCK_TTL_MS', 3000), \
             patch('app.core.redis.redlock', mock_redlock):
            lock = get_stock_lock()

        assert isinstance(lock, RedlockStockLock)
        assert lock.rlock is mock_redlock
        assert lock.ttl_ms == 3000

    def test_get_low_stock_notifier(self):
        with patch.object(settings, 'LOW_STOCK_ALERTS_ENABLED', True):
            assert get_low_stock_notifier() is dispatch_low_stock_alert
        with patch.object(settings, 'LOW_STOCK_ALERTS_ENABLED', False):
            assert get_low_stock_notifier() is None

    def test_dispatch_low_stock_alert(self):
        product = Product(id=4, name="Cable", stock_quantity=2, low_stock_threshold=10)

        with patch('tasks.inventory_tasks.notify_low_stock') as mock_task:
            dispatch_low_stock_alert(product)

        mock_task.delay.assert_called_once_with(4, "Cable", 2, 10)

    def test_dispatch_low_stock_alert_broker_down(self):
        """A broker failure is logged, not raised"""
        product = Product(id=4, name="Cable", stock_quantity=2, low_stock_threshold=10)

        with patch('tasks.inventory_tasks.notify_low_stock') as mock_task:
            mock_task.delay.side_effect = ConnectionError("broker unreachable")
            dispatch_low_stock_alert(product)

        mock_task.delay.assert_called_once()

    def test_get_product_service(self, stock_lock, notifier):
        db_mock = Mock(spec=Session)

        with patch.object(settings, 'STOCK_LOCK_TIMEOUT', 1.5):
            service = get_product_service(db=db_mock, stock_lock=stock_lock, notifier=notifier)

        assert isinstance(service, ProductService)
        assert service.db is db_mock
        assert service.stock_lock is stock_lock
        assert service.low_stock_notifier is notifier
        assert service.repository.lock_timeout == 1.5
