"""File upload security utilities."""

import os
import re
import uuid
from pathlib import Path
from typing import Optional, Set

# Invoice scans: photos from the camera plus PDFs exported by suppliers
ALLOWED_INVOICE_MIME_TYPES: Set[str] = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
    "image/heic",
    "image/heif",
    "application/pdf",
}

# MIME types browsers send when they don't know better
GENERIC_MIME_TYPES: Set[str] = {"", "application/octet-stream", "binary/octet-stream"}

MIME_TYPE_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".pdf": "application/pdf",
}

CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1f\x7f]")


def display_filename(filename: Optional[str]) -> str:
    """
    Reduce an uploaded filename to something safe to store and show back.

    Drops any directory part and control characters but otherwise keeps the
    name the user chose.

    Args:
        filename: Original filename from upload

    Returns:
        Cleaned filename, at most 255 characters
    """
    if not filename:
        return "unnamed"

    filename = os.path.basename(filename.replace("\\", "/"))
    filename = CONTROL_CHARS_PATTERN.sub("", filename).strip()
    return filename[:255] or "unnamed"


def safe_extension(filename: Optional[str]) -> str:
    """Lowercased extension of ``filename`` or "" when it has none or looks unsafe."""
    if not filename:
        return ""
    _, ext = os.path.splitext(filename)
    ext = ext.lower()
    if ext and not re.match(r"^\.[a-z0-9]+$", ext):
        return ""
    return ext


def generate_secure_filename(original_filename: Optional[str]) -> str:
    """
    Generate a UUID-based filename while preserving the original extension.

    Args:
        original_filename: Original filename from upload

    Returns:
        UUID-based filename with original extension
    """
    return f"{uuid.uuid4().hex}{safe_extension(original_filename)}"


def resolve_invoice_mime_type(filename: Optional[str], content_type: Optional[str]) -> Optional[str]:
    """Return the accepted MIME type of an invoice upload, or None if not accepted.

    The declared content type wins when it is specific; a missing or generic
    one falls back to the file extension.
    """
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime == "image/jpg":
        mime = "image/jpeg"
    if mime not in GENERIC_MIME_TYPES:
        return mime if mime in ALLOWED_INVOICE_MIME_TYPES else None
    return MIME_TYPE_BY_EXTENSION.get(safe_extension(filename))


def is_safe_path(base_path: str, target_path: str) -> bool:
    """
    Check if a target path is safely within the base path.

    Args:
        base_path: The base directory that should contain the file
        target_path: The full path to validate

    Returns:
        True if target_path is safely within base_path
    """
    base = Path(base_path).resolve()
    target = Path(target_path).resolve()

    try:
        target.relative_to(base)
        return True
    except ValueError:
        return False
