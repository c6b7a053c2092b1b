"""Local low stock report script"""

import argparse
import json
import logging

from app.db.session import SessionLocal
from app.services.product_service import ProductService

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def run_report():
    """Load every product at or below its low stock threshold.

    Returns:
        List of row dicts ordered by product id
    """
    db = SessionLocal()
    try:
        service = ProductService(db)
        rows = [
            {
                "id": p.id,
                "name": p.name,
                "stock_quantity": p.stock_quantity,
                "low_stock_threshold": p.low_stock_threshold,
            }
            for p in service.list_low_stock()
        ]
        logger.info(f"Low stock report: {len(rows)} products")
        return rows
    except Exception as e:
        logger.error(f"Low stock report failed: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()


def format_rows(rows) -> str:
    if not rows:
        return "No products are low on stock"
    lines = [f"{'ID':>6}  {'STOCK':>8}  {'THRESHOLD':>9}  NAME"]
    for row in rows:
        lines.append(
            f"{row['id']:>6}  {row['stock_quantity']:>8}  "
            f"{row['low_stock_threshold']:>9}  {row['name']}"
        )
    return "\n".join(lines)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Low stock report')
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the report as JSON'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Verbose logging'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        rows = run_report()
    except Exception as e:
        print(f"Report failed: {str(e)}")
        return 1

    if args.json:
        print(json.dumps(rows, indent=2))
    else:
        print(format_rows(rows))
    return 0


if __name__ == "__main__":
    exit(main())
