"""API routes."""

from fastapi import APIRouter, Depends

from stockroom.api.routes import auth, invoices, products, reports, suppliers
from stockroom.core.auth import get_current_user

api_router = APIRouter()

# Session endpoints are public; everything else requires a signed-in user
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

protected = [Depends(get_current_user)]
api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"], dependencies=protected)
api_router.include_router(products.router, prefix="/products", tags=["products"], dependencies=protected)
api_router.include_router(reports.router, prefix="/reports", tags=["reports"], dependencies=protected)
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"], dependencies=protected)
