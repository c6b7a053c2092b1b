"""Product and stock management API routes"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from app.core.dependencies import get_product_service
from app.models.product import Product
from app.schemas.base import OperationResponse
from app.schemas.product import (
    ProductCreate,
    ProductEnvelope,
    ProductListEnvelope,
    ProductResponse,
    ProductUpdate,
    StockSummaryEnvelope,
    StockUpdate,
)
from app.services.product_service import ProductService

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/products",
    tags=["Products"],
    responses={
        400: {"description": "Invalid stock operation or insufficient stock"},
        404: {"description": "Product not found"},
        409: {"description": "Duplicate product name or concurrent update"},
        422: {"description": "Request validation failed"},
        429: {"description": "Product stock is busy, retry later"},
        500: {"description": "Internal server error"}
    }
)

# Handlers are plain functions: stock mutations may block on the product
# lock and must run in the thread pool, not on the event loop.


def _one(product: Product, message: Optional[str] = None) -> ProductEnvelope:
    return ProductEnvelope(
        success=True,
        message=message,
        data=ProductResponse.model_validate(product),
    )


def _many(products: List[Product]) -> ProductListEnvelope:
    return ProductListEnvelope(
        success=True,
        count=len(products),
        data=[ProductResponse.model_validate(p) for p in products],
    )


@router.get(
    "",
    response_model=ProductListEnvelope,
    summary="List products",
)
def list_products(service: ProductService = Depends(get_product_service)):
    """All products ordered by id."""
    return _many(service.list_all())


@router.get(
    "/low-stock",
    response_model=ProductListEnvelope,
    summary="List low stock products",
    description="""Products whose stock is at or below their low stock threshold.

    The low stock flag is computed on every read and never stored.
    """,
)
def list_low_stock(service: ProductService = Depends(get_product_service)):
    return _many(service.list_low_stock())


@router.get(
    "/out-of-stock",
    response_model=ProductListEnvelope,
    summary="List out of stock products",
)
def list_out_of_stock(service: ProductService = Depends(get_product_service)):
    return _many(service.list_out_of_stock())


@router.get(
    "/stock-range",
    response_model=ProductListEnvelope,
    summary="List products by stock range",
)
def list_by_stock_range(
    min_quantity: int = Query(0, alias="min", ge=0, description="Minimum stock (inclusive)"),
    max_quantity: int = Query(..., alias="max", ge=0, description="Maximum stock (inclusive)"),
    service: ProductService = Depends(get_product_service),
):
    return _many(service.list_by_stock_range(min_quantity, max_quantity))


@router.get(
    "/summary",
    response_model=StockSummaryEnvelope,
    summary="Stock summary",
)
def stock_summary(service: ProductService = Depends(get_product_service)):
    """Product count, total units, low stock and out of stock counts."""
    return StockSummaryEnvelope(success=True, data=service.stock_summary())


@router.get(
    "/search",
    response_model=ProductListEnvelope,
    summary="Search products by name",
    description="Case-insensitive substring match. An empty or missing name matches every product.",
)
def search_products(
    name: Optional[str] = Query(None, max_length=100, description="Part of the product name"),
    service: ProductService = Depends(get_product_service),
):
    return _many(service.search_by_name(name or ""))


@router.get(
    "/{product_id}",
    response_model=ProductEnvelope,
    summary="Get product",
    responses={
        200: {
            "description": "Product found",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": None,
                        "data": {
                            "id": 1,
                            "name": "Laptop",
                            "description": None,
                            "stock_quantity": 50,
                            "low_stock_threshold": 10,
                            "is_low_stock": False,
                            "version": 1,
                            "created_at": "2024-01-01T00:00:00Z",
                            "updated_at": "2024-01-01T00:00:00Z"
                        }
                    }
                }
            }
        }
    }
)
def get_product(
    product_id: int = Path(..., gt=0, description="Product ID"),
    service: ProductService = Depends(get_product_service),
):
    return _one(service.get_by_id(product_id))


@router.post(
    "",
    response_model=ProductEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create product",
    description="""Create a product.

    - Name must be unique, ignoring case
    - Initial stock 0 to 1,000,000
    - Low stock threshold 0 to 10,000, default 10
    """,
)
def create_product(
    payload: ProductCreate = Body(...),
    service: ProductService = Depends(get_product_service),
):
    product = service.create(**payload.model_dump())
    return _one(product, "Product created")


@router.put(
    "/{product_id}",
    response_model=ProductEnvelope,
    summary="Update product",
    description="""Partially update name, description or low stock threshold.

    Only the fields present in the body are changed. Stock can only be
    changed through the stock endpoints.
    """,
)
def update_product(
    product_id: int = Path(..., gt=0, description="Product ID"),
    payload: ProductUpdate = Body(...),
    service: ProductService = Depends(get_product_service),
):
    product = service.update(product_id, **payload.changes())
    return _one(product, "Product updated")


@router.delete(
    "/{product_id}",
    response_model=OperationResponse,
    summary="Delete product",
)
def delete_product(
    product_id: int = Path(..., gt=0, description="Product ID"),
    service: ProductService = Depends(get_product_service),
):
    service.delete(product_id)
    return OperationResponse(success=True, message="Product deleted", data=True)


@router.patch(
    "/{product_id}/stock/add",
    response_model=ProductEnvelope,
    summary="Add stock",
    description="""Add 1 to 10,000 units to a product.

    The product row is locked for the duration of the change, so
    concurrent stock changes to the same product are applied one at a time.
    """,
)
def add_stock(
    product_id: int = Path(..., gt=0, description="Product ID"),
    payload: StockUpdate = Body(...),
    service: ProductService = Depends(get_product_service),
):
    product = service.add_stock(product_id, payload.quantity)
    return _one(product, "Stock added")


@router.patch(
    "/{product_id}/stock/remove",
    response_model=ProductEnvelope,
    summary="Remove stock",
    description="""Remove 1 to 10,000 units from a product.

    Fails with 400 when the product has fewer units than requested. A low
    stock alert is queued when the product ends at or below its threshold.
    """,
    responses={
        400: {
            "description": "Insufficient stock",
            "content": {
                "application/json": {
                    "example": {
                        "success": False,
                        "code": "insufficient_stock",
                        "message": "Insufficient stock for product ID 1. Requested: 1000, Available: 65",
                        "product_id": 1,
                        "requested": 1000,
                        "available": 65
                    }
                }
            }
        }
    }
)
def remove_stock(
    product_id: int = Path(..., gt=0, description="Product ID"),
    payload: StockUpdate = Body(...),
    service: ProductService = Depends(get_product_service),
):
    product = service.remove_stock(product_id, payload.quantity)
    return _one(product, "Stock removed")
