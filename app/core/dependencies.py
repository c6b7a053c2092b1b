"""Dependency injection"""

import logging
from typing import Generator, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.locks import RedlockStockLock, local_stock_lock
from app.db.session import SessionLocal
from app.models.product import Product
from app.services.product_service import LowStockNotifier, ProductService

logger = logging.getLogger(__name__)


def get_db() -> Generator[Session, None, None]:
    """Database session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_stock_lock():
    """Per-product stock lock selected by STOCK_LOCK_BACKEND"""
    if settings.STOCK_LOCK_BACKEND == "redis":
        from app.core.redis import redlock

        return RedlockStockLock(redlock, ttl_ms=settings.STOCK_LOCK_TTL_MS)
    return local_stock_lock


def dispatch_low_stock_alert(product: Product) -> None:
    """Queue the low-stock alert task.

    The stock change is already committed, so a broker failure is logged
    instead of failing the request.
    """
    from tasks.inventory_tasks import notify_low_stock

    try:
        notify_low_stock.delay(
            product.id,
            product.name,
            product.stock_quantity,
            product.low_stock_threshold,
        )
    except Exception as e:
        logger.error(f"Failed to queue low stock alert for product {product.id}: {e}")


def get_low_stock_notifier() -> Optional[LowStockNotifier]:
    """Low-stock notifier, or None when alerts are disabled"""
    if not settings.LOW_STOCK_ALERTS_ENABLED:
        return None
    return dispatch_low_stock_alert


def get_product_service(
    db: Session = Depends(get_db),
    stock_lock=Depends(get_stock_lock),
    notifier=Depends(get_low_stock_notifier),
) -> ProductService:
    """Product service instance"""
    return ProductService(
        db=db,
        stock_lock=stock_lock,
        low_stock_notifier=notifier,
        lock_timeout=settings.STOCK_LOCK_TIMEOUT,
    )


__all__ = [
    "get_db",
    "get_stock_lock",
    "get_low_stock_notifier",
    "get_product_service",
    "dispatch_low_stock_alert",
]
