"""Normalization of raw extraction output into reviewable line items.

Extraction output is untrusted: any field may be missing, of the wrong type
or padded with whitespace. Everything here is pure and never raises.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]


def to_nullable_number(value: Any) -> Optional[Number]:
    """Finite numbers pass through, numeric strings are converted, all else is None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text or "_" in text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def to_nullable_string(value: Any) -> Optional[str]:
    """Trimmed string, or None for non-strings and blank strings."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None


def normalize_line_item(raw: Any) -> Dict[str, Any]:
    """Normalize one extracted line; matched-product fields start empty."""
    if not isinstance(raw, dict):
        raw = {}
    description = raw.get("description")
    return {
        "line_no": to_nullable_number(raw.get("line_no")),
        "code": to_nullable_string(raw.get("code")),
        "description": description.strip() if isinstance(description, str) else "",
        "barcode": to_nullable_string(raw.get("barcode")),
        "quantity": to_nullable_number(raw.get("quantity")),
        "unit": to_nullable_string(raw.get("unit")),
        "unit_price": to_nullable_number(raw.get("unit_price")),
        "total_price": to_nullable_number(raw.get("total_price")),
        "matched_product_id": None,
        "matched_product_name": None,
        "matched_brand": None,
        "match_score": 0,
    }


def normalize_document(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize the whole extraction reply.

    Returns a dict with ``supplier_name``, ``issue_date``, ``currency`` and
    ``line_items`` (a list of normalized lines, in extraction order).
    """
    items = raw.get("line_items")
    if not isinstance(items, list):
        items = []
    lines: List[Dict[str, Any]] = [normalize_line_item(item) for item in items]
    return {
        "supplier_name": to_nullable_string(raw.get("supplier_name")),
        "issue_date": to_nullable_string(raw.get("issue_date")),
        "currency": to_nullable_string(raw.get("currency")),
        "line_items": lines,
    }
