"""Supplier invoice model."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import Enum as SQLEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockroom.db.base import Base, TimestampMixin, VersionMixin


class InvoiceStatus(str, Enum):
    """Pipeline position of an invoice. Only ever moves forward."""

    UPLOADED = "UPLOADED"
    PARSED = "PARSED"
    APPLIED = "APPLIED"


class Invoice(Base, TimestampMixin, VersionMixin):
    """An uploaded invoice document and where it is in the pipeline."""

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(primary_key=True)
    supplier_id: Mapped[int] = mapped_column(
        ForeignKey("suppliers.id"), nullable=False, index=True
    )
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    stored_path: Mapped[str] = mapped_column(String(500), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        SQLEnum(InvoiceStatus, name="invoice_status", native_enum=False, length=16),
        default=InvoiceStatus.UPLOADED,
        nullable=False,
        index=True,
    )

    supplier: Mapped["Supplier"] = relationship("Supplier", back_populates="invoices")


# Forward references
from stockroom.models.supplier import Supplier
