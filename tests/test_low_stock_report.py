"""Low stock report script tests"""
import json
from unittest.mock import patch

from app.jobs.low_stock_report import format_rows, main
from app.models.product import Product


class TestLowStockReport:

    def test_format_rows_empty(self):
        assert format_rows([]) == "No products are low on stock"

    def test_format_rows(self):
        text = format_rows([
            {"id": 1, "name": "Cable", "stock_quantity": 2, "low_stock_threshold": 10},
        ])
        lines = text.splitlines()
        assert lines[0].split() == ["ID", "STOCK", "THRESHOLD", "NAME"]
        assert lines[1].split() == ["1", "2", "10", "Cable"]

    def test_main_json(self, session_factory, capsys):
        db = session_factory()
        db.add_all([
            Product(name="Cable", stock_quantity=2, low_stock_threshold=10),
            Product(name="Laptop", stock_quantity=50, low_stock_threshold=10),
        ])
        db.commit()
        db.close()

        with patch('app.jobs.low_stock_report.SessionLocal', session_factory):
            assert main(["--json"]) == 0

        rows = json.loads(capsys.readouterr().out)
        assert [row["name"] for row in rows] == ["Cable"]

    def test_main_failure(self, capsys):
        with patch('app.jobs.low_stock_report.run_report', side_effect=RuntimeError("no database")):
            assert main([]) == 1

        assert "no database" in capsys.readouterr().out
