"""Invoice pipeline schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Union

from pydantic import Field

from stockroom.models.invoice import InvoiceStatus
from stockroom.schemas.common import CamelModel
from stockroom.schemas.supplier import SupplierSummary

Number = Union[int, float]


class InvoiceFileInfo(CamelModel):
    original_name: str
    mime_type: str
    stored_path: str


class InvoiceUploadResponse(CamelModel):
    """Returned after an invoice file has been stored."""

    invoice_id: int
    supplier: SupplierSummary
    file: InvoiceFileInfo
    status: InvoiceStatus
    created_at: datetime


class InvoiceResponse(CamelModel):
    """Invoice as listed or fetched."""

    id: int
    supplier_id: int
    supplier: SupplierSummary
    original_name: str
    stored_path: str
    mime_type: str
    status: InvoiceStatus
    version: int
    created_at: datetime
    updated_at: datetime


class ParsedInvoiceLine(CamelModel):
    """One normalized line item extracted from an invoice. Never persisted."""

    line_no: Optional[Number] = None
    code: Optional[str] = None
    description: str = ""
    barcode: Optional[str] = None
    quantity: Optional[Number] = None
    unit: Optional[str] = None
    unit_price: Optional[Number] = None
    total_price: Optional[Number] = None
    matched_product_id: Optional[int] = None
    matched_product_name: Optional[str] = None
    matched_brand: Optional[str] = None
    match_score: float = 0


class ParsedInvoiceResponse(CamelModel):
    """Result of parsing an uploaded invoice."""

    invoice_id: int
    supplier_id: int
    supplier_name: str
    supplier_from_document: Optional[str] = None
    issue_date: Optional[str] = None
    currency: Optional[str] = None
    lines: List[ParsedInvoiceLine] = []


class ApplyInvoiceLineInput(CamelModel):
    """Operator decision for one reviewed line.

    ``quantity`` and ``unit_price`` are kept as sent; the apply step checks
    them per line so errors can name the offending line.
    """

    line_index: Optional[int] = None
    parsed_line_no: Optional[Number] = None
    apply: bool = False
    product_id: Optional[int] = None
    quantity: Any = None
    unit_price: Any = None
    apply_stock: bool = False
    apply_price: bool = False


class ApplyInvoiceRequest(CamelModel):
    lines: Optional[List[ApplyInvoiceLineInput]] = Field(default=None)


class ApplyInvoiceResult(CamelModel):
    invoice_id: int
    applied_lines: int
    skipped_lines: int
