"""Product and ledger schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, StrictInt, field_validator

from stockroom.core.validators import MAX_DB_INT
from stockroom.schemas.common import CamelModel
from stockroom.schemas.supplier import SupplierSummary


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class ProductBase(CamelModel):
    """Base product schema."""

    name: str = Field(..., max_length=255)
    brand: Optional[str] = Field(default=None, max_length=255)
    barcode: Optional[str] = Field(default=None, max_length=64)
    supplier_id: Optional[int] = Field(default=None, gt=0, le=MAX_DB_INT)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("brand", "barcode")
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class ProductCreate(ProductBase):
    """Product creation schema."""

    pass


class ProductUpdate(ProductBase):
    """Product update schema."""

    pass


class ProductResponse(CamelModel):
    """Product response schema."""

    id: int
    name: str
    brand: Optional[str] = None
    barcode: Optional[str] = None
    supplier_id: Optional[int] = None
    supplier: Optional[SupplierSummary] = None
    created_at: datetime
    updated_at: datetime


class PriceHistoryResponse(CamelModel):
    """One price-history entry."""

    id: int
    product_id: int
    price_cents: int
    effective_from: datetime


class StockMovementResponse(CamelModel):
    """One stock movement."""

    id: int
    product_id: int
    quantity: int
    reason: str
    created_at: datetime


class ProductDetailResponse(ProductResponse):
    """Product with its most recent ledger entries (newest first)."""

    price_history: List[PriceHistoryResponse] = []
    stock_movements: List[StockMovementResponse] = []


class SetPriceRequest(CamelModel):
    """Body of the set-price call. Price is in integer cents."""

    price_cents: StrictInt


class AdjustStockRequest(CamelModel):
    """Body of the adjust-stock call. Quantity is a signed delta."""

    quantity: StrictInt
    reason: str = Field(..., max_length=500)


class AdjustStockResponse(CamelModel):
    movement: StockMovementResponse
    current_stock: int


class ProductSummaryResponse(CamelModel):
    """Product with its derived price and stock."""

    product: ProductResponse
    latest_price: Optional[PriceHistoryResponse] = None
    current_stock: int


class LowStockItem(ProductResponse):
    current_stock: int
