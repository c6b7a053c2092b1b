from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    BigInteger,
    Integer,
    String,
    TIMESTAMP,
    CheckConstraint,
    Index,
    event,
    func,
)
from app.db.base import Base
from app.core.exceptions import (
    InsufficientStockError,
    InvalidStockOperationError,
    InternalInconsistencyError,
)


DEFAULT_LOW_STOCK_THRESHOLD = 10
# stock_quantity is a 32-bit Integer column
MAX_STOCK_QUANTITY = 2**31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"

    id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    name = Column(
        String(100),
        nullable=False,
        comment="Product name, unique ignoring case",
    )

    description = Column(
        String(500),
        nullable=True,
    )

    stock_quantity = Column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
        comment="Units currently in stock",
    )

    low_stock_threshold = Column(
        Integer,
        nullable=False,
        default=DEFAULT_LOW_STOCK_THRESHOLD,
        server_default=str(DEFAULT_LOW_STOCK_THRESHOLD),
        comment="Stock at or below this level is low",
    )

    created_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        nullable=False,
    )

    updated_at = Column(
        TIMESTAMP(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    version = Column(
        Integer,
        nullable=False,
        comment="Optimistic lock version",
    )

    __table_args__ = (
        CheckConstraint(
            "stock_quantity >= 0",
            name="ck_products_stock_quantity_non_negative",
        ),
        CheckConstraint(
            "low_stock_threshold >= 0",
            name="ck_products_low_stock_threshold_non_negative",
        ),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.low_stock_threshold

    def add_stock(self, quantity: int) -> None:
        """Increase stock by a positive quantity."""
        if quantity <= 0:
            raise InvalidStockOperationError("Quantity to add must be positive")
        self.stock_quantity += quantity
        self.check_invariants()

    def remove_stock(self, quantity: int) -> None:
        """Decrease stock by a positive quantity no larger than the stock."""
        if quantity <= 0:
            raise InvalidStockOperationError("Quantity to remove must be positive")
        if self.stock_quantity < quantity:
            raise InsufficientStockError(self.id, quantity, self.stock_quantity)
        self.stock_quantity -= quantity
        self.check_invariants()

    def check_invariants(self) -> None:
        if self.stock_quantity is None or self.stock_quantity < 0:
            raise InternalInconsistencyError(
                f"Stock quantity cannot be negative (product ID {self.id}: {self.stock_quantity})"
            )
        if self.low_stock_threshold is None or self.low_stock_threshold < 0:
            raise InternalInconsistencyError(
                f"Low stock threshold cannot be negative (product ID {self.id}: {self.low_stock_threshold})"
            )

    def __repr__(self) -> str:
        return (
            f"<Product id={self.id} name={self.name!r} "
            f"stock={self.stock_quantity} threshold={self.low_stock_threshold}>"
        )


# Case-insensitive unique name; the service pre-check only gives a nicer error.
# SQLite lower() folds ASCII letters only, so on SQLite "Äpfel" and "äpfel"
# count as different names. PostgreSQL folds the full Unicode range.
Index(
    "uq_products_name_lower",
    func.lower(Product.name),
    unique=True,
)


@event.listens_for(Product, "before_insert")
@event.listens_for(Product, "before_update")
def _validate_before_write(mapper, connection, target):
    # column defaults are not applied to the instance until the INSERT
    if target.stock_quantity is None:
        target.stock_quantity = 0
    if target.low_stock_threshold is None:
        target.low_stock_threshold = DEFAULT_LOW_STOCK_THRESHOLD
    target.check_invariants()
