"""Service-level error taxonomy.

Services raise ``ServiceError`` tagged with an ``ErrorKind``; the exception
handlers registered in ``stockroom.main`` turn the kind into an HTTP status.
Callers branch on ``error.kind``, never on the message text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Kinds of failure a service can report."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    TOO_LARGE = "too_large"
    CONFIGURATION = "configuration"
    UPSTREAM = "upstream"
    STORAGE = "storage"


HTTP_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.TOO_LARGE: 413,
    ErrorKind.CONFIGURATION: 500,
    ErrorKind.UPSTREAM: 500,
    ErrorKind.STORAGE: 500,
}


class ServiceError(Exception):
    """Raised by services for any expected failure.

    Attributes:
        kind: What went wrong, used to pick the HTTP status.
        message: Caller-safe description.
        line: Label of the invoice line that failed, when relevant.
    """

    def __init__(self, kind: ErrorKind, message: str, line: Optional[str] = None):
        self.kind = kind
        self.message = message
        self.line = line
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "errorKind": self.kind.value}
        if self.line is not None:
            body["line"] = self.line
        return body


def validation_error(message: str, line: Optional[str] = None) -> ServiceError:
    return ServiceError(ErrorKind.VALIDATION, message, line=line)


def not_found(message: str, line: Optional[str] = None) -> ServiceError:
    return ServiceError(ErrorKind.NOT_FOUND, message, line=line)


def conflict(message: str) -> ServiceError:
    return ServiceError(ErrorKind.CONFLICT, message)
