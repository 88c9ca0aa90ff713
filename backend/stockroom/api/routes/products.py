"""Product routes, including the price and stock ledgers of a product."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, status
from sqlalchemy import func, or_
from sqlalchemy.orm import joinedload

from stockroom.core.rate_limit import limiter
from stockroom.core.validators import MAX_DB_INT, PositiveIntId
from stockroom.db.session import DbSession
from stockroom.models.product import Product
from stockroom.models.supplier import Supplier
from stockroom.schemas.product import (
    AdjustStockRequest,
    AdjustStockResponse,
    PriceHistoryResponse,
    ProductCreate,
    ProductDetailResponse,
    ProductResponse,
    ProductSummaryResponse,
    ProductUpdate,
    SetPriceRequest,
    StockMovementResponse,
)
from stockroom.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_product_or_404(db, product_id: int) -> Product:
    product = (
        db.query(Product)
        .options(joinedload(Product.supplier))
        .filter(Product.id == product_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


def _check_product_fields(db, data: ProductCreate, product_id: Optional[int] = None) -> None:
    """Referenced supplier must exist and the barcode must be unused."""
    if data.supplier_id is not None and db.get(Supplier, data.supplier_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")

    if data.barcode:
        query = db.query(Product.id).filter(Product.barcode == data.barcode)
        if product_id is not None:
            query = query.filter(Product.id != product_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A product with this barcode already exists",
            )


@router.get("", response_model=List[ProductResponse])
@limiter.limit("60/minute")
def list_products(
    request: Request,
    db: DbSession,
    search: Optional[str] = Query(None, description="Search by name, barcode or brand"),
    brand: Optional[str] = Query(None, description="Filter by brand (case-insensitive)"),
    supplier_id: Optional[int] = Query(
        None, alias="supplierId", gt=0, le=MAX_DB_INT, description="Filter by supplier"
    ),
):
    """List products with optional filters."""
    query = db.query(Product).options(joinedload(Product.supplier))

    if search and search.strip():
        search_term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Product.name.ilike(search_term),
                Product.barcode.ilike(search_term),
                Product.brand.ilike(search_term),
            )
        )
    if brand and brand.strip():
        query = query.filter(func.lower(Product.brand) == brand.strip().lower())
    if supplier_id is not None:
        query = query.filter(Product.supplier_id == supplier_id)

    return query.order_by(Product.id).all()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_product(request: Request, body: ProductCreate, db: DbSession):
    """Create a new product."""
    _check_product_fields(db, body)

    product = Product(
        name=body.name,
        brand=body.brand,
        barcode=body.barcode,
        supplier_id=body.supplier_id,
    )
    db.add(product)
    db.commit()
    logger.info(f"Created product {product.id} ({product.name})")
    return _get_product_or_404(db, product.id)


@router.get("/by-barcode/{barcode}", response_model=ProductResponse)
@limiter.limit("60/minute")
def get_product_by_barcode(request: Request, barcode: str, db: DbSession):
    """Get a product by barcode (EAN/UPC)."""
    product = (
        db.query(Product)
        .options(joinedload(Product.supplier))
        .filter(Product.barcode == barcode.strip())
        .first()
    )
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.get("/{product_id}", response_model=ProductDetailResponse)
@limiter.limit("60/minute")
def get_product(request: Request, product_id: PositiveIntId, db: DbSession):
    """Get a product with its 10 latest price entries and stock movements."""
    product = _get_product_or_404(db, product_id)
    ledger = LedgerService(db)
    detail = ProductResponse.model_validate(product).model_dump()
    return ProductDetailResponse(
        **detail,
        price_history=[PriceHistoryResponse.model_validate(p) for p in ledger.recent_prices(product_id)],
        stock_movements=[StockMovementResponse.model_validate(m) for m in ledger.recent_movements(product_id)],
    )


@router.put("/{product_id}", response_model=ProductResponse)
@limiter.limit("30/minute")
def update_product(request: Request, product_id: PositiveIntId, body: ProductUpdate, db: DbSession):
    """Update a product."""
    product = _get_product_or_404(db, product_id)
    _check_product_fields(db, body, product_id=product_id)

    product.name = body.name
    product.brand = body.brand
    product.barcode = body.barcode
    product.supplier_id = body.supplier_id
    db.commit()
    db.expire_all()
    return _get_product_or_404(db, product_id)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_product(request: Request, product_id: PositiveIntId, db: DbSession):
    """Delete a product that has no ledger history."""
    product = _get_product_or_404(db, product_id)
    if LedgerService(db).has_ledger_entries(product_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Product has price or stock history and cannot be deleted",
        )
    db.delete(product)
    db.commit()
    logger.info(f"Deleted product {product_id}")


# ==================== LEDGERS ====================

@router.post(
    "/{product_id}/set-price",
    response_model=PriceHistoryResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
def set_price(request: Request, product_id: PositiveIntId, body: SetPriceRequest, db: DbSession):
    """Record a new price (integer cents) effective now."""
    entry = LedgerService(db).set_price(product_id, body.price_cents)
    db.commit()
    db.refresh(entry)
    return entry


@router.get("/{product_id}/price-history", response_model=List[PriceHistoryResponse])
@limiter.limit("60/minute")
def get_price_history(request: Request, product_id: PositiveIntId, db: DbSession):
    """Full price history, oldest first."""
    ledger = LedgerService(db)
    ledger.get_product(product_id)
    return ledger.price_history(product_id)


@router.post(
    "/{product_id}/adjust-stock",
    response_model=AdjustStockResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit("30/minute")
def adjust_stock(request: Request, product_id: PositiveIntId, body: AdjustStockRequest, db: DbSession):
    """Record a signed stock change and return the resulting stock level."""
    ledger = LedgerService(db)
    movement = ledger.adjust_stock(product_id, body.quantity, body.reason)
    db.commit()
    db.refresh(movement)
    return AdjustStockResponse(
        movement=StockMovementResponse.model_validate(movement),
        current_stock=ledger.current_stock(product_id),
    )


@router.get("/{product_id}/summary", response_model=ProductSummaryResponse)
@limiter.limit("60/minute")
def get_product_summary(request: Request, product_id: PositiveIntId, db: DbSession):
    """Product with its latest price and current stock."""
    product = _get_product_or_404(db, product_id)
    ledger = LedgerService(db)
    latest = ledger.latest_price(product_id)
    return ProductSummaryResponse(
        product=ProductResponse.model_validate(product),
        latest_price=PriceHistoryResponse.model_validate(latest) if latest else None,
        current_stock=ledger.current_stock(product_id),
    )
