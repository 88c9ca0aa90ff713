"""SQLAlchemy models."""

from stockroom.models.user import User
from stockroom.models.supplier import Supplier
from stockroom.models.product import Product, PriceHistory, StockMovement
from stockroom.models.invoice import Invoice, InvoiceStatus

__all__ = [
    "User",
    "Supplier",
    "Product",
    "PriceHistory",
    "StockMovement",
    "Invoice",
    "InvoiceStatus",
]
