"""Reusable parameter validators."""

import math
from typing import Annotated, Any

from fastapi import Path

from stockroom.core.errors import validation_error

# Largest value an Integer column holds on every supported database (int32)
MAX_DB_INT = 2**31 - 1
MIN_DB_INT = -(2**31)

# Positive integer ID validator for path parameters
PositiveIntId = Annotated[
    int, Path(gt=0, le=MAX_DB_INT, description="Resource ID (must be positive)")
]


def fits_db_integer(value: int) -> bool:
    """True when ``value`` can be stored in (or compared against) an Integer column."""
    return MIN_DB_INT <= value <= MAX_DB_INT


def parse_positive_id(value: Any, message: str) -> int:
    """Parse a client-supplied id (form field, JSON value) into a positive int.

    Accepts ints and numeric strings; anything that is not a whole number
    between 1 and ``MAX_DB_INT`` raises a validation error carrying ``message``.
    """
    if value is None or isinstance(value, bool):
        raise validation_error(message)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise validation_error(message)
        try:
            value = float(value)
        except ValueError:
            raise validation_error(message)
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise validation_error(message)
        value = int(value)
    if not isinstance(value, int) or not 0 < value <= MAX_DB_INT:
        raise validation_error(message)
    return value


def is_nonzero_integer(value: Any) -> bool:
    """True for an int (or integral float) other than zero that fits an Integer column.

    Booleans are rejected.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return False
        value = int(value)
    if isinstance(value, int):
        return value != 0 and fits_db_integer(value)
    return False
