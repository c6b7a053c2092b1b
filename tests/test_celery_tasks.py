"""Celery task tests"""
import pytest
from unittest.mock import Mock, patch

from app.models.product import Product
from tasks.inventory_tasks import low_stock_report, notify_low_stock


class TestInventoryTasks:

    def test_notify_low_stock(self):
        result = notify_low_stock(3, "Cable", 4, 10)

        assert result == {
            "product_id": 3,
            "name": "Cable",
            "stock_quantity": 4,
            "low_stock_threshold": 10,
            "shortfall": 6,
        }

    def test_notify_low_stock_at_threshold(self):
        assert notify_low_stock(3, "Cable", 10, 10)["shortfall"] == 0

    def test_low_stock_report(self, session_factory):
        db = session_factory()
        db.add_all([
            Product(name="Cable", stock_quantity=2, low_stock_threshold=10),
            Product(name="Laptop", stock_quantity=50, low_stock_threshold=10),
            Product(name="Dock", stock_quantity=0, low_stock_threshold=0),
        ])
        db.commit()
        db.close()

        with patch('tasks.inventory_tasks.SessionLocal', session_factory):
            result = low_stock_report()

        assert result["count"] == 2
        assert [p["name"] for p in result["products"]] == ["Cable", "Dock"]
        assert result["products"][0]["stock_quantity"] == 2

    def test_low_stock_report_empty(self, session_factory):
        with patch('tasks.inventory_tasks.SessionLocal', session_factory):
            result = low_stock_report()

        assert result == {"count": 0, "products": []}

    def test_low_stock_report_exception(self):
        db_mock = Mock()

        with patch('tasks.inventory_tasks.SessionLocal') as mock_session_local, \
             patch('tasks.inventory_tasks.ProductService') as mock_service:
            mock_session_local.return_value = db_mock
            mock_service.return_value.list_low_stock.side_effect = Exception("database down")

            with pytest.raises(Exception) as exc_info:
                low_stock_report()

        assert "database down" in str(exc_info.value)
        db_mock.rollback.assert_called_once()
        db_mock.close.assert_called_once()
