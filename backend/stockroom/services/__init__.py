# Services module

from stockroom.services.ledger_service import LedgerService
from stockroom.services.invoice_storage import InvoiceFileStorage, get_invoice_storage
from stockroom.services.invoice_extraction import (
    InvoiceExtractor,
    OpenAIInvoiceExtractor,
    get_invoice_extractor,
)
from stockroom.services.product_matching import (
    BarcodeProductMatcher,
    FuzzyNameProductMatcher,
    NoProductMatcher,
    ProductMatcher,
    build_product_matcher,
)
from stockroom.services.invoice_service import ApplyLine, ApplyResult, InvoiceService

__all__ = [
    "LedgerService",
    "InvoiceFileStorage",
    "get_invoice_storage",
    "InvoiceExtractor",
    "OpenAIInvoiceExtractor",
    "get_invoice_extractor",
    "BarcodeProductMatcher",
    "FuzzyNameProductMatcher",
    "NoProductMatcher",
    "ProductMatcher",
    "build_product_matcher",
    "ApplyLine",
    "ApplyResult",
    "InvoiceService",
]
