"""Product and stock service."""

import logging
from typing import Callable, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import (
    ConcurrentUpdateError,
    DuplicateProductNameError,
    InsufficientStockError,
    InvalidStockOperationError,
    InventoryError,
    ProductNotFoundError,
    ValidationFailedError,
)
from app.core.locks import LocalStockLock, RedlockStockLock, local_stock_lock
from app.models.product import DEFAULT_LOW_STOCK_THRESHOLD, MAX_STOCK_QUANTITY, Product
from app.repositories.product_repository import ProductRepository
from app.schemas.base import field_errors
from app.schemas.product import (
    MAX_QUANTITY_PER_OPERATION,
    ProductCreate,
    ProductUpdate,
    StockSummary,
)

logger = logging.getLogger(__name__)

LowStockNotifier = Callable[[Product], None]


class ProductService:
    """Product CRUD and stock mutations.

    Every write runs as one transaction on ``db``: commit on success,
    rollback and re-raise on failure. Stock mutations additionally hold the
    per-product ``stock_lock`` and a database row lock from the read until
    the commit, so changes to one product are applied one at a time.
    """

    def __init__(
        self,
        db: Session,
        stock_lock: Optional[Union[LocalStockLock, RedlockStockLock]] = None,
        low_stock_notifier: Optional[LowStockNotifier] = None,
        lock_timeout: Optional[float] = None,
    ):
        self.db = db
        self.stock_lock = stock_lock if stock_lock is not None else local_stock_lock
        self.low_stock_notifier = low_stock_notifier
        self.repository = ProductRepository(db, lock_timeout=lock_timeout)

    # ==================== Queries ====================

    def get_by_id(self, product_id: int) -> Product:
        logger.debug(f"Fetching product {product_id}")
        product = self.repository.find_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def list_all(self) -> List[Product]:
        logger.debug("Fetching all products")
        return self.repository.find_all()

    def list_low_stock(self) -> List[Product]:
        products = self.repository.find_all_below_threshold()
        logger.info(f"Found {len(products)} products with low stock")
        return products

    def list_out_of_stock(self) -> List[Product]:
        return self.repository.find_out_of_stock()

    def list_by_stock_range(self, minimum: int, maximum: int) -> List[Product]:
        errors = {}
        if minimum < 0:
            errors["min"] = "Minimum cannot be negative"
        if maximum < minimum:
            errors["max"] = "Maximum cannot be lower than minimum"
        if errors:
            raise ValidationFailedError(errors)
        return self.repository.find_by_stock_quantity_between(minimum, maximum)

    def search_by_name(self, substring: Optional[str]) -> List[Product]:
        """Case-insensitive substring search; an empty string matches all."""
        logger.debug(f"Searching products by name: {substring!r}")
        return self.repository.find_by_name_containing_ignore_case(substring or "")

    def stock_summary(self) -> StockSummary:
        return StockSummary(
            product_count=self.repository.count(),
            total_stock_quantity=self.repository.total_stock_quantity(),
            low_stock_count=len(self.repository.find_all_below_threshold()),
            out_of_stock_count=len(self.repository.find_out_of_stock()),
        )

    # ==================== Product lifecycle ====================

    def create(
        self,
        name: str,
        stock_quantity: int,
        description: Optional[str] = None,
        low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD,
    ) -> Product:
        payload = self._validate(
            ProductCreate,
            name=name,
            description=description,
            stock_quantity=stock_quantity,
            low_stock_threshold=low_stock_threshold,
        )
        logger.debug(f"Creating product: {payload.name}")

        try:
            if self.repository.exists_by_name_ignore_case(payload.name):
                raise DuplicateProductNameError(payload.name)
            product = self.repository.save(Product(**payload.model_dump()))
            self.db.commit()
        except IntegrityError as e:
            # lost a race with another create of the same name
            self.db.rollback()
            raise DuplicateProductNameError(payload.name) from e
        except InventoryError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create product {payload.name!r}: {e}")
            raise

        logger.info(f"Product created with ID {product.id}")
        return product

    def update(self, product_id: int, **changes) -> Product:
        """Apply only the supplied fields (name, description, low_stock_threshold)."""
        updates = self._validate(ProductUpdate, **changes).changes()
        new_name = updates.get("name")
        logger.debug(f"Updating product {product_id}: {sorted(updates)}")

        try:
            product = self.repository.find_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if new_name is not None and self.repository.exists_by_name_ignore_case(
                new_name, exclude_id=product.id
            ):
                raise DuplicateProductNameError(new_name)

            for field, value in updates.items():
                setattr(product, field, value)
            product.check_invariants()

            self.repository.save(product)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if new_name is None:
                raise
            raise DuplicateProductNameError(new_name) from e
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentUpdateError(product_id) from e
        except InventoryError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update product {product_id}: {e}")
            raise

        logger.info(f"Product {product_id} updated")
        return product

    def delete(self, product_id: int) -> None:
        logger.debug(f"Deleting product {product_id}")
        try:
            if not self.repository.exists_by_id(product_id):
                raise ProductNotFoundError(product_id)
            self.repository.delete_by_id(product_id)
            self.db.commit()
        except StaleDataError as e:
            self.db.rollback()
            raise ConcurrentUpdateError(product_id) from e
        except InventoryError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete product {product_id}: {e}")
            raise

        logger.info(f"Product {product_id} deleted")

    # ==================== Stock mutations ====================

    def add_stock(self, product_id: int, quantity: int) -> Product:
        """Add units under the product's exclusive lock."""
        self._check_quantity(quantity)
        logger.debug(f"Adding {quantity} units to product {product_id}")

        with self.stock_lock.hold(product_id):
            try:
                product = self.repository.find_by_id_for_update(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)

                if product.stock_quantity > MAX_STOCK_QUANTITY - quantity:
                    raise InvalidStockOperationError(
                        "Stock addition would exceed maximum allowed value"
                    )

                product.add_stock(quantity)
                self.repository.save(product)
                self.db.commit()
            except StaleDataError as e:
                self.db.rollback()
                raise ConcurrentUpdateError(product_id) from e
            except InventoryError:
                self.db.rollback()
                raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to add stock to product {product_id}: {e}")
                raise

        logger.info(
            f"Added {quantity} units to product {product_id}. "
            f"New stock: {product.stock_quantity}"
        )
        return product

    def remove_stock(self, product_id: int, quantity: int) -> Product:
        """Remove units under the product's exclusive lock.

        Emits the low-stock signal when the product ends at or below its
        threshold.
        """
        self._check_quantity(quantity)
        logger.debug(f"Removing {quantity} units from product {product_id}")

        with self.stock_lock.hold(product_id):
            try:
                product = self.repository.find_by_id_for_update(product_id)
                if product is None:
                    raise ProductNotFoundError(product_id)

                if product.stock_quantity < quantity:
                    raise InsufficientStockError(product_id, quantity, product.stock_quantity)

                product.remove_stock(quantity)
                self.repository.save(product)
                self.db.commit()
            except StaleDataError as e:
                self.db.rollback()
                raise ConcurrentUpdateError(product_id) from e
            except InventoryError:
                self.db.rollback()
                raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to remove stock from product {product_id}: {e}")
                raise

        logger.info(
            f"Removed {quantity} units from product {product_id}. "
            f"New stock: {product.stock_quantity}"
        )

        if product.is_low_stock:
            logger.warning(
                f"Product {product_id} is now low on stock. "
                f"Current: {product.stock_quantity}, Threshold: {product.low_stock_threshold}"
            )
            if self.low_stock_notifier is not None:
                # the removal is already committed
                try:
                    self.low_stock_notifier(product)
                except Exception as e:
                    logger.error(f"Low stock notification failed for product {product_id}: {e}")

        return product

    # ==================== Helpers ====================

    @staticmethod
    def _validate(schema, **values):
        try:
            return schema(**values)
        except ValidationError as e:
            raise ValidationFailedError(field_errors(e.errors())) from e

    @staticmethod
    def _check_quantity(quantity) -> None:
        # non-positive values are rejected by the aggregate itself
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationFailedError({"quantity": "Quantity must be an integer"})
        if quantity > MAX_QUANTITY_PER_OPERATION:
            raise ValidationFailedError(
                {"quantity": f"Quantity cannot exceed {MAX_QUANTITY_PER_OPERATION:,} per operation"}
            )
