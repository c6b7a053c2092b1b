"""Product aggregate tests"""
import pytest
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError

from app.core.exceptions import (
    InsufficientStockError,
    InternalInconsistencyError,
    InvalidStockOperationError,
)
from app.models.product import DEFAULT_LOW_STOCK_THRESHOLD, Product


def make_product(stock=20, threshold=10):
    return Product(id=1, name="Widget", stock_quantity=stock, low_stock_threshold=threshold)


class TestProductAggregate:
    """In-memory stock rules"""

    def test_add_stock(self):
        product = make_product(stock=20)
        product.add_stock(5)
        assert product.stock_quantity == 25

    @pytest.mark.parametrize("quantity", [0, -1, -100])
    def test_add_stock_rejects_non_positive(self, quantity):
        product = make_product(stock=20)
        with pytest.raises(InvalidStockOperationError):
            product.add_stock(quantity)
        assert product.stock_quantity == 20

    def test_remove_stock(self):
        product = make_product(stock=20)
        product.remove_stock(8)
        assert product.stock_quantity == 12

    def test_remove_all_stock(self):
        product = make_product(stock=20)
        product.remove_stock(20)
        assert product.stock_quantity == 0

    def test_remove_stock_insufficient(self):
        product = make_product(stock=20)
        with pytest.raises(InsufficientStockError) as exc_info:
            product.remove_stock(21)

        assert exc_info.value.product_id == 1
        assert exc_info.value.requested == 21
        assert exc_info.value.available == 20
        assert product.stock_quantity == 20

    @pytest.mark.parametrize("quantity", [0, -3])
    def test_remove_stock_rejects_non_positive(self, quantity):
        product = make_product(stock=20)
        with pytest.raises(InvalidStockOperationError):
            product.remove_stock(quantity)

    @pytest.mark.parametrize(
        "stock, threshold, expected",
        [(9, 10, True), (10, 10, True), (11, 10, False), (0, 0, True), (1, 0, False)],
    )
    def test_is_low_stock(self, stock, threshold, expected):
        assert make_product(stock, threshold).is_low_stock is expected

    def test_is_low_stock_follows_changes(self):
        product = make_product(stock=11, threshold=10)
        assert product.is_low_stock is False
        product.remove_stock(1)
        assert product.is_low_stock is True
        product.low_stock_threshold = 5
        assert product.is_low_stock is False

    def test_check_invariants_negative_stock(self):
        product = make_product()
        product.stock_quantity = -1
        with pytest.raises(InternalInconsistencyError):
            product.check_invariants()

    def test_check_invariants_negative_threshold(self):
        product = make_product()
        product.low_stock_threshold = -1
        with pytest.raises(InternalInconsistencyError):
            product.check_invariants()


class TestProductPersistence:
    """Mapping, defaults and database constraints"""

    def test_defaults_on_insert(self, db_session):
        product = Product(name="Mouse", stock_quantity=3)
        db_session.add(product)
        db_session.commit()

        assert product.id is not None
        assert product.low_stock_threshold == DEFAULT_LOW_STOCK_THRESHOLD
        assert product.version == 1
        assert product.created_at is not None
        assert product.updated_at is not None
        assert product.description is None

    def test_version_increments_on_update(self, db_session):
        product = Product(name="Mouse", stock_quantity=3)
        db_session.add(product)
        db_session.commit()
        created_at = product.created_at

        product.add_stock(2)
        db_session.commit()
        assert product.version == 2

        product.description = "Wireless"
        db_session.commit()
        assert product.version == 3
        assert product.created_at == created_at

    def test_negative_stock_is_never_written(self, db_session):
        product = Product(name="Mouse", stock_quantity=3)
        db_session.add(product)
        db_session.commit()

        product.stock_quantity = -1
        with pytest.raises(InternalInconsistencyError):
            db_session.commit()
        db_session.rollback()

    def test_check_constraint(self, db_session):
        with pytest.raises(IntegrityError):
            db_session.execute(
                insert(Product.__table__).values(
                    name="Broken",
                    stock_quantity=-5,
                    low_stock_threshold=1,
                    version=1,
                )
            )
        db_session.rollback()

    def test_name_unique_ignoring_case(self, db_session):
        db_session.add(Product(name="Laptop", stock_quantity=1))
        db_session.commit()

        db_session.add(Product(name="LAPTOP", stock_quantity=1))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()
