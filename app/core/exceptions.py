"""Domain exceptions for the inventory service.

Every business-rule violation raised by the product aggregate or the
product service derives from ``InventoryError``. Each class carries the
HTTP status and a stable error code used by the global exception handler
in ``app.main``; the service layer itself never builds HTTP responses.
"""

from typing import Dict, Optional


class InventoryError(Exception):
    """Base class for all inventory errors."""

    status_code: int = 400
    code: str = "inventory_error"

    def __init__(self, message: Optional[str] = None):
        if message is None:
            message = "An unspecified inventory error occurred."
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        """Extra fields exposed in the error response body."""
        return {}


class ProductNotFoundError(InventoryError):
    """Raised when a product id does not reference an existing product."""

    status_code = 404
    code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(f"Product with ID {product_id} not found")
        self.product_id = product_id

    def to_dict(self) -> dict:
        return {"product_id": self.product_id}


class DuplicateProductNameError(InventoryError):
    """Raised when a create or rename would break name uniqueness."""

    status_code = 409
    code = "duplicate_product_name"

    def __init__(self, name: str):
        super().__init__(f"Product with name '{name}' already exists")
        self.name = name

    def to_dict(self) -> dict:
        return {"name": self.name}


class InsufficientStockError(InventoryError):
    """Raised when a removal would drive the stock quantity negative."""

    code = "insufficient_stock"

    def __init__(self, product_id: Optional[int], requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product ID {product_id}. "
            f"Requested: {requested}, Available: {available}"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class InvalidStockOperationError(InventoryError):
    """Non-positive quantity, stock overflow or another domain rule violation."""

    code = "invalid_stock_operation"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ValidationFailedError(InventoryError):
    """Structural or range violations on input, keyed by field name."""

    status_code = 422
    code = "validation_failed"

    def __init__(self, field_errors: Dict[str, str]):
        super().__init__("Invalid input parameters")
        self.field_errors = dict(field_errors)

    def to_dict(self) -> dict:
        return {"validation_errors": self.field_errors}


class InternalInconsistencyError(InventoryError):
    """A post-condition failed after a mutation; indicates a bug."""

    status_code = 500
    code = "internal_inconsistency"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class StockLockTimeoutError(InventoryError):
    """The exclusive lock on a product could not be acquired in time.

    Another request is mutating the same product; callers may retry.
    """

    status_code = 429
    code = "stock_lock_timeout"

    def __init__(self, product_id: int, timeout: Optional[float] = None):
        if timeout is None:
            message = f"Stock of product ID {product_id} is busy, please retry"
        else:
            message = (
                f"Stock of product ID {product_id} is busy "
                f"(waited {timeout:g}s), please retry"
            )
        super().__init__(message)
        self.product_id = product_id
        self.timeout = timeout

    def to_dict(self) -> dict:
        return {"product_id": self.product_id}


class ConcurrentUpdateError(InventoryError):
    """The optimistic version check failed on write."""

    status_code = 409
    code = "concurrent_update"

    def __init__(self, product_id: Optional[int]):
        super().__init__(
            f"Product with ID {product_id} was modified concurrently, please retry"
        )
        self.product_id = product_id

    def to_dict(self) -> dict:
        return {"product_id": self.product_id}
