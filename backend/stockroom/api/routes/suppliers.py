"""Supplier routes."""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from sqlalchemy.orm import selectinload

from stockroom.core.rate_limit import limiter
from stockroom.core.validators import PositiveIntId
from stockroom.db.session import DbSession
from stockroom.models.invoice import Invoice
from stockroom.models.product import Product
from stockroom.models.supplier import Supplier
from stockroom.schemas.supplier import (
    SupplierCreate,
    SupplierDetailResponse,
    SupplierResponse,
    SupplierUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_supplier_or_404(db, supplier_id: int) -> Supplier:
    supplier = db.get(Supplier, supplier_id)
    if not supplier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return supplier


@router.get("", response_model=list[SupplierResponse])
@limiter.limit("60/minute")
def list_suppliers(request: Request, db: DbSession):
    """List all suppliers, ordered by name."""
    return db.query(Supplier).order_by(Supplier.name, Supplier.id).all()


@router.post("", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("30/minute")
def create_supplier(request: Request, body: SupplierCreate, db: DbSession):
    """Create a new supplier."""
    supplier = Supplier(name=body.name)
    db.add(supplier)
    db.commit()
    db.refresh(supplier)
    logger.info(f"Created supplier {supplier.id} ({supplier.name})")
    return supplier


@router.get("/{supplier_id}", response_model=SupplierDetailResponse)
@limiter.limit("60/minute")
def get_supplier(request: Request, supplier_id: PositiveIntId, db: DbSession):
    """Get a supplier with its products."""
    supplier = (
        db.query(Supplier)
        .options(selectinload(Supplier.products))
        .filter(Supplier.id == supplier_id)
        .first()
    )
    if not supplier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return supplier


@router.put("/{supplier_id}", response_model=SupplierResponse)
@limiter.limit("30/minute")
def update_supplier(request: Request, supplier_id: PositiveIntId, body: SupplierUpdate, db: DbSession):
    """Rename a supplier."""
    supplier = _get_supplier_or_404(db, supplier_id)
    supplier.name = body.name
    db.commit()
    db.refresh(supplier)
    return supplier


@router.delete("/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("30/minute")
def delete_supplier(request: Request, supplier_id: PositiveIntId, db: DbSession):
    """Delete a supplier that nothing references any more."""
    supplier = _get_supplier_or_404(db, supplier_id)

    has_products = db.query(Product.id).filter(Product.supplier_id == supplier_id).first()
    has_invoices = db.query(Invoice.id).filter(Invoice.supplier_id == supplier_id).first()
    if has_products or has_invoices:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Supplier still has products or invoices",
        )

    db.delete(supplier)
    db.commit()
    logger.info(f"Deleted supplier {supplier_id}")
