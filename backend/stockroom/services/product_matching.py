"""Strategies that suggest a catalog product for an extracted invoice line.

Suggestions are hints for the reviewer only; nothing is applied without the
operator choosing a product.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from difflib import SequenceMatcher
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy.orm import Session

from stockroom.core.config import settings
from stockroom.models.product import Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductMatch:
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    brand: Optional[str] = None
    score: float = 0.0

    @classmethod
    def for_product(cls, product: Product, score: float) -> "ProductMatch":
        return cls(
            product_id=product.id,
            product_name=product.name,
            brand=product.brand,
            score=score,
        )


NO_MATCH = ProductMatch()


class ProductMatcher(Protocol):
    def match(self, line: Dict[str, Any], supplier_id: Optional[int] = None) -> ProductMatch:
        ...


def apply_match(line: Dict[str, Any], match: ProductMatch) -> Dict[str, Any]:
    """Copy a match into the matched-product fields of a normalized line."""
    line["matched_product_id"] = match.product_id
    line["matched_product_name"] = match.product_name
    line["matched_brand"] = match.brand
    line["match_score"] = match.score
    return line


class NoProductMatcher:
    """Never suggests anything."""

    def match(self, line: Dict[str, Any], supplier_id: Optional[int] = None) -> ProductMatch:
        return NO_MATCH


class BarcodeProductMatcher:
    """Exact match on the barcode printed on the invoice line."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def match(self, line: Dict[str, Any], supplier_id: Optional[int] = None) -> ProductMatch:
        barcode = line.get("barcode")
        if not barcode:
            return NO_MATCH
        product = self.db.query(Product).filter(Product.barcode == barcode).first()
        if product is None:
            return NO_MATCH
        return ProductMatch.for_product(product, 1.0)


class FuzzyNameProductMatcher:
    """Best ``SequenceMatcher`` ratio between line description and product name.

    Products of the invoice's supplier are tried first; the whole catalog is
    searched only when none of them clears the threshold.
    """

    def __init__(self, db: Session, threshold: float = 0.6) -> None:
        self.db = db
        self.threshold = threshold
        self._catalog: Optional[List[Product]] = None

    def _products(self) -> List[Product]:
        if self._catalog is None:
            self._catalog = self.db.query(Product).order_by(Product.id).all()
        return self._catalog

    @staticmethod
    def _score(description: str, product: Product) -> float:
        name_score = SequenceMatcher(None, description, product.name.lower()).ratio()
        if product.brand:
            branded = f"{product.brand} {product.name}".lower()
            return max(name_score, SequenceMatcher(None, description, branded).ratio())
        return name_score

    def _best(self, description: str, products: List[Product]) -> ProductMatch:
        best: Optional[Product] = None
        best_score = 0.0
        for product in products:
            score = self._score(description, product)
            if score > best_score:
                best_score = score
                best = product
        if best is not None and best_score >= self.threshold:
            return ProductMatch.for_product(best, round(best_score, 3))
        return NO_MATCH

    def match(self, line: Dict[str, Any], supplier_id: Optional[int] = None) -> ProductMatch:
        description = (line.get("description") or "").strip().lower()
        if not description:
            return NO_MATCH

        products = self._products()
        if supplier_id is not None:
            own = [p for p in products if p.supplier_id == supplier_id]
            found = self._best(description, own)
            if found.product_id is not None:
                return found
        return self._best(description, products)


def build_product_matcher(db: Session, strategy: Optional[str] = None) -> ProductMatcher:
    """Create the matcher named by ``strategy`` (defaults to the configured one)."""
    strategy = strategy or settings.invoice_product_matching
    if strategy == "barcode":
        return BarcodeProductMatcher(db)
    if strategy == "fuzzy_name":
        return FuzzyNameProductMatcher(db, threshold=settings.fuzzy_match_threshold)
    if strategy != "none":
        logger.warning(f"Unknown product matching strategy {strategy!r}, matching disabled")
    return NoProductMatcher()
