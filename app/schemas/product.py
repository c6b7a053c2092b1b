"""Product request and response models."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.product import DEFAULT_LOW_STOCK_THRESHOLD
from app.schemas.base import BaseResponse

MAX_INITIAL_STOCK = 1_000_000
MAX_LOW_STOCK_THRESHOLD = 10_000
MAX_QUANTITY_PER_OPERATION = 10_000


# ==================== Request models ====================

class ProductCreate(BaseModel):
    """Create product request"""
    model_config = ConfigDict(extra="forbid")

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Product name (unique, case-insensitive)",
        examples=["Laptop"]
    )
    description: Optional[str] = Field(
        None,
        max_length=500,
        description="Product description",
        examples=["15 inch business laptop"]
    )
    stock_quantity: int = Field(
        ...,
        ge=0,
        le=MAX_INITIAL_STOCK,
        description="Initial stock quantity",
        examples=[50]
    )
    low_stock_threshold: int = Field(
        DEFAULT_LOW_STOCK_THRESHOLD,
        ge=0,
        le=MAX_LOW_STOCK_THRESHOLD,
        description="Stock at or below this level is reported as low",
        examples=[10]
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Product name is required")
        return value


class ProductUpdate(BaseModel):
    """Partial update request.

    Only the fields present in the request are applied; use
    ``model_fields_set`` to tell an omitted field from an explicit null.
    Stock is changed through the stock endpoints only.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(
        None,
        min_length=1,
        max_length=100,
        description="New product name"
    )
    description: Optional[str] = Field(
        None,
        max_length=500,
        description="New description; null clears it"
    )
    low_stock_threshold: Optional[int] = Field(
        None,
        ge=0,
        le=MAX_LOW_STOCK_THRESHOLD,
        description="New low stock threshold"
    )

    @field_validator("name")
    @classmethod
    def name_present(cls, value: Optional[str]) -> str:
        if value is None or not value.strip():
            raise ValueError("Product name cannot be blank")
        return value

    @field_validator("low_stock_threshold")
    @classmethod
    def threshold_present(cls, value: Optional[int]) -> int:
        if value is None:
            raise ValueError("Low stock threshold cannot be null")
        return value

    def changes(self) -> dict:
        """Fields explicitly supplied by the caller."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class StockUpdate(BaseModel):
    """Stock add/remove request"""
    quantity: int = Field(
        ...,
        ge=1,
        le=MAX_QUANTITY_PER_OPERATION,
        description="Units to add or remove",
        examples=[25]
    )


# ==================== Response models ====================

class ProductResponse(BaseModel):
    """Product as returned by the API"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    stock_quantity: int
    low_stock_threshold: int
    is_low_stock: bool
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProductEnvelope(BaseResponse):
    """Single product response"""
    data: ProductResponse


class ProductListEnvelope(BaseResponse):
    """Product list response"""
    count: int = Field(..., ge=0, description="Number of products returned")
    data: List[ProductResponse]


class StockSummary(BaseModel):
    """Inventory-wide stock figures"""
    product_count: int = Field(..., ge=0)
    total_stock_quantity: int = Field(..., ge=0)
    low_stock_count: int = Field(..., ge=0)
    out_of_stock_count: int = Field(..., ge=0)


class StockSummaryEnvelope(BaseResponse):
    """Stock summary response"""
    data: StockSummary
