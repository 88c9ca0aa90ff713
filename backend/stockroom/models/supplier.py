"""Supplier model."""

from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockroom.db.base import Base, TimestampMixin


class Supplier(Base, TimestampMixin):
    """Supplier of products and sender of invoices."""

    __tablename__ = "suppliers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)

    # Relationships
    products: Mapped[list["Product"]] = relationship(
        "Product", back_populates="supplier", order_by="Product.id"
    )
    invoices: Mapped[list["Invoice"]] = relationship("Invoice", back_populates="supplier")


# Forward references
from stockroom.models.product import Product
from stockroom.models.invoice import Invoice
