"""Supplier schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from stockroom.schemas.common import CamelModel


class SupplierBase(CamelModel):
    """Base supplier schema."""

    name: str = Field(..., max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v


class SupplierCreate(SupplierBase):
    """Supplier creation schema."""

    pass


class SupplierUpdate(SupplierBase):
    """Supplier update schema."""

    pass


class SupplierSummary(CamelModel):
    """Supplier reference embedded in other responses."""

    id: int
    name: str


class SupplierResponse(SupplierBase):
    """Supplier response schema."""

    id: int
    created_at: datetime
    updated_at: datetime


class SupplierProductItem(CamelModel):
    """Product listed under a supplier."""

    id: int
    name: str
    brand: Optional[str] = None
    barcode: Optional[str] = None


class SupplierDetailResponse(SupplierResponse):
    """Supplier with its products."""

    products: List[SupplierProductItem] = []
