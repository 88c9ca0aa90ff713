"""Reporting routes."""

from fastapi import APIRouter, Query, Request

from stockroom.core.rate_limit import limiter
from stockroom.core.validators import MAX_DB_INT
from stockroom.db.session import DbSession
from stockroom.schemas.product import LowStockItem, ProductResponse
from stockroom.services.ledger_service import LedgerService

router = APIRouter()


@router.get("/low-stock", response_model=list[LowStockItem])
@limiter.limit("60/minute")
def low_stock(
    request: Request,
    db: DbSession,
    threshold: int = Query(
        5, ge=0, le=MAX_DB_INT, description="Report products with stock at or below this"
    ),
):
    """Products whose current stock is at or below the threshold, lowest first."""
    rows = LedgerService(db).low_stock(threshold)
    return [
        LowStockItem(**ProductResponse.model_validate(product).model_dump(), current_stock=stock)
        for product, stock in rows
    ]
