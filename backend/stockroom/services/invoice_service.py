"""Invoice ingestion pipeline: upload, parse and apply.

Flow:
1. ``upload`` stores the document and records an UPLOADED invoice.
2. ``parse`` sends the stored bytes to the extractor, normalizes the reply,
   attaches product suggestions and moves the invoice to PARSED. Parsed lines
   are returned to the reviewer and never stored.
3. ``apply`` writes the reviewed lines to the product ledgers in a single
   transaction and marks the invoice APPLIED. An invoice is applied at most
   once.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from stockroom.core.errors import (
    ErrorKind,
    ServiceError,
    conflict,
    not_found,
    validation_error,
)
from stockroom.core.file_utils import display_filename, resolve_invoice_mime_type
from stockroom.core.validators import MAX_DB_INT, fits_db_integer, parse_positive_id
from stockroom.models.invoice import Invoice, InvoiceStatus
from stockroom.models.product import Product
from stockroom.models.supplier import Supplier
from stockroom.services.invoice_extraction import InvoiceExtractor
from stockroom.services.invoice_normalization import normalize_document
from stockroom.services.invoice_storage import InvoiceFileStorage
from stockroom.services.ledger_service import LedgerService
from stockroom.services.product_matching import NoProductMatcher, ProductMatcher, apply_match

logger = logging.getLogger(__name__)


@dataclass
class ApplyLine:
    """One reviewed line as handed to ``apply``."""

    apply: bool = False
    product_id: Optional[int] = None
    quantity: Any = None
    unit_price: Any = None
    apply_stock: bool = False
    apply_price: bool = False
    parsed_line_no: Any = None
    line_index: Optional[int] = None


@dataclass
class ApplyResult:
    invoice_id: int
    applied_lines: int
    skipped_lines: int


def line_label(line: ApplyLine, position: int) -> str:
    """Human-readable line reference: the parsed line number, else its index."""
    ref = line.parsed_line_no
    if ref is None:
        ref = line.line_index if line.line_index is not None else position
    if isinstance(ref, float) and ref.is_integer():
        ref = int(ref)
    return f"line {ref}"


def require_stock_quantity(value: Any, label: str) -> int:
    """Quantity for a stock movement: a non-zero integer that fits the ledger column."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise validation_error(f"Invalid quantity for {label}", line=label)
    if isinstance(value, float) and (not math.isfinite(value) or not value.is_integer()):
        raise validation_error(f"Invalid quantity for {label}", line=label)
    quantity = int(value)
    if quantity == 0:
        raise validation_error(f"Quantity must be non-zero for {label}", line=label)
    if not fits_db_integer(quantity):
        raise validation_error(f"Invalid quantity for {label}", line=label)
    return quantity


def require_unit_price_cents(value: Any, label: str) -> int:
    """Unit price converted to integer cents, rounding half up.

    The result must be positive and fit the ledger column.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise validation_error(f"Invalid unitPrice for {label}", line=label)
    if isinstance(value, float) and not math.isfinite(value):
        raise validation_error(f"Invalid unitPrice for {label}", line=label)
    # Huge ints cannot be converted to float
    if value <= 0 or value * 100 > MAX_DB_INT:
        raise validation_error(f"Invalid unitPrice for {label}", line=label)
    cents = math.floor(value * 100 + 0.5)
    if cents <= 0:
        raise validation_error(f"Invalid unitPrice for {label}", line=label)
    return cents


class InvoiceService:
    """Runs the invoice pipeline against one database session."""

    def __init__(
        self,
        db: Session,
        storage: Optional[InvoiceFileStorage] = None,
        extractor: Optional[InvoiceExtractor] = None,
        matcher: Optional[ProductMatcher] = None,
    ) -> None:
        self.db = db
        self.storage = storage
        self.extractor = extractor
        self.matcher = matcher or NoProductMatcher()

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = (
            self.db.query(Invoice)
            .options(joinedload(Invoice.supplier))
            .filter(Invoice.id == invoice_id)
            .first()
        )
        if invoice is None:
            raise not_found("Invoice not found")
        return invoice

    def list_invoices(
        self,
        supplier_id: Optional[int] = None,
        status: Optional[InvoiceStatus] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[List[Invoice], int]:
        query = self.db.query(Invoice).options(joinedload(Invoice.supplier))
        if supplier_id is not None:
            query = query.filter(Invoice.supplier_id == supplier_id)
        if status is not None:
            query = query.filter(Invoice.status == status)
        total = query.count()
        items = (
            query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def upload(
        self,
        supplier_id_raw: Any,
        filename: Optional[str],
        content_type: Optional[str],
        content: Optional[bytes],
        max_size: int,
    ) -> Invoice:
        """Store an invoice document for a supplier and record it as UPLOADED."""
        if supplier_id_raw is None or (isinstance(supplier_id_raw, str) and not supplier_id_raw.strip()):
            raise validation_error("supplierId is required")
        supplier_id = parse_positive_id(supplier_id_raw, "Invalid supplierId")

        supplier = self.db.get(Supplier, supplier_id)
        if supplier is None:
            raise not_found("Supplier not found")

        if content is None:
            raise validation_error("No file uploaded (field 'file' is required)")
        if len(content) == 0:
            raise validation_error("Uploaded file is empty")
        if len(content) > max_size:
            raise ServiceError(
                ErrorKind.TOO_LARGE,
                f"File exceeds the {max_size // (1024 * 1024)} MB upload limit",
            )

        mime_type = resolve_invoice_mime_type(filename, content_type)
        if mime_type is None:
            raise validation_error("Unsupported file type; upload an image or PDF")

        stored_path = self.storage.save(content, filename)
        invoice = Invoice(
            supplier_id=supplier.id,
            original_name=display_filename(filename),
            stored_path=stored_path,
            mime_type=mime_type,
            status=InvoiceStatus.UPLOADED,
        )
        self.db.add(invoice)
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            self.storage.delete(stored_path)
            raise
        self.db.refresh(invoice)

        logger.info(
            f"Invoice {invoice.id} uploaded for supplier {supplier.id} "
            f"({mime_type}, {len(content)} bytes)"
        )
        return invoice

    # ------------------------------------------------------------------
    # Parse
    # ------------------------------------------------------------------

    def parse(self, invoice_id: int) -> Dict[str, Any]:
        """Extract, normalize and match the lines of an uploaded invoice."""
        invoice = self.get_invoice(invoice_id)
        content = self.storage.read(invoice.stored_path)

        raw = self.extractor.extract(content, invoice.mime_type)
        document = normalize_document(raw)

        lines = [
            apply_match(line, self.matcher.match(line, supplier_id=invoice.supplier_id))
            for line in document["line_items"]
        ]

        if not self._mark_parsed(invoice_id):
            logger.info(f"Invoice {invoice.id} re-parsed after apply; status left APPLIED")
        self.db.refresh(invoice)

        logger.info(f"Invoice {invoice.id} parsed: {len(lines)} line(s)")
        return {
            "invoice_id": invoice.id,
            "supplier_id": invoice.supplier_id,
            "supplier_name": invoice.supplier.name,
            "supplier_from_document": document["supplier_name"],
            "issue_date": document["issue_date"],
            "currency": document["currency"],
            "lines": lines,
        }

    # ------------------------------------------------------------------
    # Apply
    # ------------------------------------------------------------------

    def apply(self, invoice_id: int, lines: Optional[Sequence[ApplyLine]]) -> ApplyResult:
        """Apply reviewed lines to stock and price ledgers in one transaction.

        Lines with ``apply`` false or no product are skipped without any
        validation. Any failing line rolls the whole call back.

        Raises:
            ServiceError: VALIDATION for a missing line list or a bad line,
                NOT_FOUND for an unknown invoice or product, CONFLICT if the
                invoice is (or concurrently becomes) APPLIED.
        """
        if lines is None:
            raise validation_error("lines is required")

        invoice = self.db.get(Invoice, invoice_id)
        if invoice is None:
            raise not_found("Invoice not found")
        if invoice.status == InvoiceStatus.APPLIED:
            raise conflict("Invoice already applied")

        ledger = LedgerService(self.db)
        applied = 0
        skipped = 0

        try:
            self._claim_for_apply(invoice_id)

            for position, line in enumerate(lines):
                label = line_label(line, position)

                if not line.apply or line.product_id is None:
                    skipped += 1
                    continue

                if (
                    not fits_db_integer(line.product_id)
                    or self.db.get(Product, line.product_id) is None
                ):
                    raise not_found(f"Product not found for {label}", line=label)

                if line.apply_stock:
                    quantity = require_stock_quantity(line.quantity, label)
                    ledger.append_movement(
                        line.product_id, quantity, f"Invoice {invoice_id} {label}"
                    )

                if line.apply_price:
                    cents = require_unit_price_cents(line.unit_price, label)
                    ledger.append_price(line.product_id, cents)

                applied += 1

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            f"Invoice {invoice_id} applied: {applied} line(s) applied, {skipped} skipped"
        )
        return ApplyResult(invoice_id=invoice_id, applied_lines=applied, skipped_lines=skipped)

    def _mark_parsed(self, invoice_id: int) -> bool:
        """Move the invoice to PARSED unless it is APPLIED by now.

        The status check and the write are one statement, so an apply that
        commits while extraction runs is never undone. Returns False when the
        invoice was left APPLIED.
        """
        try:
            result = self.db.execute(
                update(Invoice)
                .where(Invoice.id == invoice_id, Invoice.status != InvoiceStatus.APPLIED)
                .values(status=InvoiceStatus.PARSED, version=Invoice.version + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result.rowcount == 1

    def _claim_for_apply(self, invoice_id: int) -> None:
        """Move the invoice to APPLIED unless another call already did.

        The status check and the write are one statement, so of two
        concurrent applies only one can see a row count of 1.
        """
        result = self.db.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id, Invoice.status != InvoiceStatus.APPLIED)
            .values(status=InvoiceStatus.APPLIED, version=Invoice.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.warning(f"Invoice {invoice_id} was applied concurrently")
            raise conflict("Invoice already applied")
