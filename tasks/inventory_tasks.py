"""Inventory Celery tasks"""

import logging

from celery_app import app
from app.db.session import SessionLocal
from app.services.product_service import ProductService

logger = logging.getLogger(__name__)


@app.task(name='tasks.inventory.notify_low_stock')
def notify_low_stock(product_id: int, name: str, stock_quantity: int, low_stock_threshold: int):
    """Record a low-stock alert raised by a stock removal.

    Args:
        product_id: product that dropped to or below its threshold
        name: product name at the time of the removal
        stock_quantity: stock left after the removal
        low_stock_threshold: the product's threshold

    Returns:
        The alert payload
    """
    alert = {
        "product_id": product_id,
        "name": name,
        "stock_quantity": stock_quantity,
        "low_stock_threshold": low_stock_threshold,
        "shortfall": max(low_stock_threshold - stock_quantity, 0),
    }
    logger.warning(
        f"Low stock alert: product {product_id} ({name}) has {stock_quantity} units, "
        f"threshold {low_stock_threshold}"
    )
    return alert


@app.task(name='tasks.inventory.low_stock_report')
def low_stock_report():
    """Collect every product at or below its low stock threshold.

    Returns:
        Report dict with the count and one entry per product
    """
    db = SessionLocal()
    try:
        service = ProductService(db)
        products = service.list_low_stock()
        report = {
            "count": len(products),
            "products": [
                {
                    "id": p.id,
                    "name": p.name,
                    "stock_quantity": p.stock_quantity,
                    "low_stock_threshold": p.low_stock_threshold,
                }
                for p in products
            ],
        }
        logger.info(f"Low stock report: {report['count']} products")
        return report
    except Exception as e:
        logger.error(f"Low stock report failed: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()


__all__ = [
    'notify_low_stock',
    'low_stock_report',
]
