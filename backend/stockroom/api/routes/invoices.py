"""Invoice ingestion routes: upload, parse, apply, and listing."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status

from stockroom.core.config import settings
from stockroom.core.rate_limit import limiter
from stockroom.core.validators import MAX_DB_INT, PositiveIntId
from stockroom.db.session import DbSession
from stockroom.models.invoice import InvoiceStatus
from stockroom.schemas.invoice import (
    ApplyInvoiceRequest,
    ApplyInvoiceResult,
    InvoiceFileInfo,
    InvoiceResponse,
    InvoiceUploadResponse,
    ParsedInvoiceResponse,
)
from stockroom.schemas.pagination import PaginatedResponse
from stockroom.schemas.supplier import SupplierSummary
from stockroom.services.invoice_extraction import InvoiceExtractor, get_invoice_extractor
from stockroom.services.invoice_service import ApplyLine, InvoiceService
from stockroom.services.invoice_storage import InvoiceFileStorage, get_invoice_storage
from stockroom.services.product_matching import build_product_matcher

logger = logging.getLogger(__name__)

router = APIRouter()


def get_invoice_service(
    db: DbSession,
    storage: Annotated[InvoiceFileStorage, Depends(get_invoice_storage)],
    extractor: Annotated[InvoiceExtractor, Depends(get_invoice_extractor)],
) -> InvoiceService:
    return InvoiceService(db, storage=storage, extractor=extractor, matcher=build_product_matcher(db))


InvoiceServiceDep = Annotated[InvoiceService, Depends(get_invoice_service)]


@router.get("", response_model=PaginatedResponse[InvoiceResponse])
@limiter.limit("60/minute")
def list_invoices(
    request: Request,
    service: InvoiceServiceDep,
    supplier_id: Optional[int] = Query(None, alias="supplierId", gt=0, le=MAX_DB_INT),
    invoice_status: Optional[InvoiceStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0, le=MAX_DB_INT, description="Number of items to skip"),
    limit: int = Query(50, ge=1, le=500, description="Maximum items to return"),
):
    """List invoices, newest first."""
    items, total = service.list_invoices(
        supplier_id=supplier_id, status=invoice_status, skip=skip, limit=limit
    )
    return PaginatedResponse[InvoiceResponse].create(
        items=[InvoiceResponse.model_validate(i) for i in items],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.post("/upload", response_model=InvoiceUploadResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def upload_invoice(
    request: Request,
    service: InvoiceServiceDep,
    file: Optional[UploadFile] = File(None),
    supplier_id: Optional[str] = Form(None, alias="supplierId"),
    supplier_id_snake: Optional[str] = Form(None, alias="supplier_id"),
):
    """Upload a supplier invoice image or PDF.

    Multipart fields: ``supplierId`` and ``file``.
    """
    content = None
    if file is not None:
        # One byte past the limit is enough to know the upload is too large
        content = file.file.read(settings.max_upload_size_bytes + 1)

    invoice = service.upload(
        supplier_id if supplier_id is not None else supplier_id_snake,
        filename=file.filename if file is not None else None,
        content_type=file.content_type if file is not None else None,
        content=content,
        max_size=settings.max_upload_size_bytes,
    )
    return InvoiceUploadResponse(
        invoice_id=invoice.id,
        supplier=SupplierSummary.model_validate(invoice.supplier),
        file=InvoiceFileInfo(
            original_name=invoice.original_name,
            mime_type=invoice.mime_type,
            stored_path=invoice.stored_path,
        ),
        status=invoice.status,
        created_at=invoice.created_at,
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
@limiter.limit("60/minute")
def get_invoice(request: Request, invoice_id: PositiveIntId, service: InvoiceServiceDep):
    """Get one invoice."""
    return InvoiceResponse.model_validate(service.get_invoice(invoice_id))


@router.post("/{invoice_id}/parse", response_model=ParsedInvoiceResponse)
@limiter.limit("10/minute")
def parse_invoice(request: Request, invoice_id: PositiveIntId, service: InvoiceServiceDep):
    """Extract line items from the stored invoice for review."""
    return ParsedInvoiceResponse.model_validate(service.parse(invoice_id))


@router.post("/{invoice_id}/apply", response_model=ApplyInvoiceResult)
@limiter.limit("20/minute")
def apply_invoice(
    request: Request,
    invoice_id: PositiveIntId,
    body: ApplyInvoiceRequest,
    service: InvoiceServiceDep,
):
    """Apply reviewed lines to stock and prices; allowed once per invoice."""
    lines = None
    if body.lines is not None:
        lines = [
            ApplyLine(
                apply=line.apply,
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                apply_stock=line.apply_stock,
                apply_price=line.apply_price,
                parsed_line_no=line.parsed_line_no,
                line_index=line.line_index,
            )
            for line in body.lines
        ]
    result = service.apply(invoice_id, lines)
    return ApplyInvoiceResult(
        invoice_id=result.invoice_id,
        applied_lines=result.applied_lines,
        skipped_lines=result.skipped_lines,
    )
