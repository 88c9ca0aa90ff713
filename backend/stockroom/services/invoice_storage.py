"""On-disk storage for uploaded invoice files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from stockroom.core.config import settings
from stockroom.core.errors import ErrorKind, ServiceError
from stockroom.core.file_utils import generate_secure_filename, is_safe_path

logger = logging.getLogger(__name__)

# Relative to the data directory; this is the form persisted on Invoice rows
INVOICE_SUBDIR = Path("uploads") / "invoices"


class InvoiceFileStorage:
    """Stores invoice uploads under ``<base_dir>/uploads/invoices``.

    Paths handed back to callers are relative to ``base_dir`` so the
    database does not depend on where the data directory is mounted.
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    @property
    def invoice_dir(self) -> Path:
        return self.base_dir / INVOICE_SUBDIR

    def save(self, content: bytes, original_filename: Optional[str]) -> str:
        """Write ``content`` under a fresh UUID name and return its relative path."""
        self.invoice_dir.mkdir(parents=True, exist_ok=True)
        filename = generate_secure_filename(original_filename)
        target = self.invoice_dir / filename
        try:
            target.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to store invoice file {filename}: {e}")
            raise ServiceError(ErrorKind.STORAGE, "Failed to store invoice file")
        logger.info(f"Stored invoice file {filename} ({len(content)} bytes)")
        return (INVOICE_SUBDIR / filename).as_posix()

    def resolve(self, stored_path: str) -> Path:
        full_path = self.base_dir / stored_path
        if not is_safe_path(str(self.base_dir), str(full_path)):
            raise ServiceError(ErrorKind.STORAGE, "Invalid stored invoice path")
        return full_path

    def read(self, stored_path: str) -> bytes:
        full_path = self.resolve(stored_path)
        try:
            return full_path.read_bytes()
        except FileNotFoundError:
            logger.error(f"Stored invoice file is missing: {stored_path}")
            raise ServiceError(ErrorKind.STORAGE, "Stored invoice file is missing")
        except OSError as e:
            logger.error(f"Failed to read invoice file {stored_path}: {e}")
            raise ServiceError(ErrorKind.STORAGE, "Failed to read stored invoice file")

    def delete(self, stored_path: str) -> None:
        """Remove a stored file; used to clean up after a failed upload."""
        full_path = self.resolve(stored_path)
        full_path.unlink(missing_ok=True)


def get_invoice_storage() -> InvoiceFileStorage:
    """Dependency provider for the configured invoice storage."""
    return InvoiceFileStorage(settings.data_path)
