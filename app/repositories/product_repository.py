"""Product persistence backed by a SQLAlchemy session."""

import logging
from typing import List, Optional

from sqlalchemy import exists, func, select, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.core.exceptions import StockLockTimeoutError
from app.models.product import Product

logger = logging.getLogger(__name__)

# PostgreSQL "lock_not_available"
LOCK_NOT_AVAILABLE = "55P03"


class ProductRepository:
    """Queries and writes for the ``products`` table.

    The repository never commits; transaction boundaries belong to the
    service. ``find_by_id_for_update`` takes a row lock that lasts until the
    caller commits or rolls back.
    """

    def __init__(self, db: Session, lock_timeout: Optional[float] = None):
        self.db = db
        self.lock_timeout = lock_timeout

    def find_by_id(self, product_id: int) -> Optional[Product]:
        # refresh objects already in the identity map with the committed row
        return self.db.get(Product, product_id, populate_existing=True)

    def find_by_id_for_update(self, product_id: int) -> Optional[Product]:
        """Load a product with an exclusive row lock (SELECT ... FOR UPDATE)."""
        if self._is_postgres() and self.lock_timeout and self.lock_timeout > 0:
            # SET does not take bind parameters
            timeout_ms = int(self.lock_timeout * 1000)
            self.db.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))

        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        try:
            return self.db.execute(stmt).scalar_one_or_none()
        except OperationalError as e:
            if getattr(e.orig, "sqlstate", None) == LOCK_NOT_AVAILABLE:
                logger.warning(f"Row lock wait expired for product {product_id}")
                raise StockLockTimeoutError(product_id, self.lock_timeout) from e
            raise

    def save(self, product: Product) -> Product:
        """Insert or update; flushing assigns id, timestamps and version."""
        self.db.add(product)
        self.db.flush()
        return product

    def delete_by_id(self, product_id: int) -> None:
        product = self.find_by_id(product_id)
        if product is not None:
            self.db.delete(product)
            self.db.flush()

    def exists_by_id(self, product_id: int) -> bool:
        return bool(self.db.scalar(select(exists().where(Product.id == product_id))))

    def exists_by_name_ignore_case(self, name: str, exclude_id: Optional[int] = None) -> bool:
        """Compare with SQL lower(); ASCII-only case folding on SQLite."""
        condition = func.lower(Product.name) == name.lower()
        if exclude_id is not None:
            condition = condition & (Product.id != exclude_id)
        return bool(self.db.scalar(select(exists().where(condition))))

    def find_all(self) -> List[Product]:
        return self._load(select(Product).order_by(Product.id))

    def find_all_below_threshold(self) -> List[Product]:
        stmt = (
            select(Product)
            .where(Product.stock_quantity <= Product.low_stock_threshold)
            .order_by(Product.id)
        )
        return self._load(stmt)

    def find_by_name_containing_ignore_case(self, substring: str) -> List[Product]:
        stmt = (
            select(Product)
            .where(func.lower(Product.name).contains(substring.lower(), autoescape=True))
            .order_by(Product.id)
        )
        return self._load(stmt)

    def find_out_of_stock(self) -> List[Product]:
        stmt = select(Product).where(Product.stock_quantity == 0).order_by(Product.id)
        return self._load(stmt)

    def find_by_stock_quantity_between(self, minimum: int, maximum: int) -> List[Product]:
        stmt = (
            select(Product)
            .where(Product.stock_quantity.between(minimum, maximum))
            .order_by(Product.id)
        )
        return self._load(stmt)

    def total_stock_quantity(self) -> int:
        total = self.db.scalar(select(func.coalesce(func.sum(Product.stock_quantity), 0)))
        return int(total or 0)

    def count(self) -> int:
        return int(self.db.scalar(select(func.count(Product.id))) or 0)

    def _is_postgres(self) -> bool:
        bind = self.db.get_bind()
        return bind.dialect.name == "postgresql"

    def _load(self, stmt) -> List[Product]:
        stmt = stmt.execution_options(populate_existing=True)
        return list(self.db.execute(stmt).scalars().all())
