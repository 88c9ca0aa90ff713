"""Price and stock ledgers for products.

Both ledgers are append-only. The current price is the newest price-history
entry and the current stock is the sum of every stock movement, so nothing
ever rewrites a stored balance.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from stockroom.core.errors import not_found, validation_error
from stockroom.core.validators import MAX_DB_INT, is_nonzero_integer
from stockroom.models.product import PriceHistory, Product, StockMovement

logger = logging.getLogger(__name__)


class LedgerService:
    """Reads and appends product ledger entries within the caller's session.

    Methods that append do not commit; the caller owns the transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_product(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if product is None:
            raise not_found("Product not found")
        return product

    # ------------------------------------------------------------------
    # Price history
    # ------------------------------------------------------------------

    def set_price(self, product_id: int, price_cents: int) -> PriceHistory:
        """Append a price entry effective now."""
        if (
            isinstance(price_cents, bool)
            or not isinstance(price_cents, int)
            or not 0 < price_cents <= MAX_DB_INT
        ):
            raise validation_error("priceCents must be a positive integer")
        self.get_product(product_id)
        return self.append_price(product_id, price_cents)

    def append_price(self, product_id: int, price_cents: int) -> PriceHistory:
        entry = PriceHistory(
            product_id=product_id,
            price_cents=price_cents,
            effective_from=datetime.now(timezone.utc),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def latest_price(self, product_id: int) -> Optional[PriceHistory]:
        return (
            self.db.query(PriceHistory)
            .filter(PriceHistory.product_id == product_id)
            .order_by(PriceHistory.effective_from.desc(), PriceHistory.id.desc())
            .first()
        )

    def price_history(self, product_id: int) -> List[PriceHistory]:
        """All price entries, oldest first."""
        return (
            self.db.query(PriceHistory)
            .filter(PriceHistory.product_id == product_id)
            .order_by(PriceHistory.effective_from.asc(), PriceHistory.id.asc())
            .all()
        )

    def recent_prices(self, product_id: int, limit: int = 10) -> List[PriceHistory]:
        return (
            self.db.query(PriceHistory)
            .filter(PriceHistory.product_id == product_id)
            .order_by(PriceHistory.effective_from.desc(), PriceHistory.id.desc())
            .limit(limit)
            .all()
        )

    # ------------------------------------------------------------------
    # Stock movements
    # ------------------------------------------------------------------

    def adjust_stock(self, product_id: int, quantity: int, reason: str) -> StockMovement:
        """Append a signed stock delta. Stock may go negative."""
        if not is_nonzero_integer(quantity):
            raise validation_error("quantity must be a non-zero integer")
        if not reason or not reason.strip():
            raise validation_error("reason is required")
        self.get_product(product_id)
        return self.append_movement(product_id, int(quantity), reason.strip())

    def append_movement(self, product_id: int, quantity: int, reason: str) -> StockMovement:
        movement = StockMovement(
            product_id=product_id,
            quantity=quantity,
            reason=reason,
            created_at=datetime.now(timezone.utc),
        )
        self.db.add(movement)
        self.db.flush()
        return movement

    def current_stock(self, product_id: int) -> int:
        total = (
            self.db.query(func.coalesce(func.sum(StockMovement.quantity), 0))
            .filter(StockMovement.product_id == product_id)
            .scalar()
        )
        return int(total or 0)

    def recent_movements(self, product_id: int, limit: int = 10) -> List[StockMovement]:
        return (
            self.db.query(StockMovement)
            .filter(StockMovement.product_id == product_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
            .all()
        )

    def has_ledger_entries(self, product_id: int) -> bool:
        has_price = (
            self.db.query(PriceHistory.id).filter(PriceHistory.product_id == product_id).first()
            is not None
        )
        if has_price:
            return True
        return (
            self.db.query(StockMovement.id).filter(StockMovement.product_id == product_id).first()
            is not None
        )

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def low_stock(self, threshold: int) -> List[tuple[Product, int]]:
        """Products whose current stock is at or below ``threshold``.

        Ordered by stock ascending, then product id.
        """
        if (
            isinstance(threshold, bool)
            or not isinstance(threshold, int)
            or not 0 <= threshold <= MAX_DB_INT
        ):
            raise validation_error("threshold must be a non-negative integer")

        stock = (
            self.db.query(
                StockMovement.product_id.label("product_id"),
                func.sum(StockMovement.quantity).label("total"),
            )
            .group_by(StockMovement.product_id)
            .subquery()
        )
        current = func.coalesce(stock.c.total, 0)
        rows = (
            self.db.query(Product, current)
            .outerjoin(stock, stock.c.product_id == Product.id)
            .filter(current <= threshold)
            .order_by(current.asc(), Product.id.asc())
            .all()
        )
        return [(product, int(total)) for product, total in rows]
