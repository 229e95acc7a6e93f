"""
Shipping Rates Error Taxonomy

Every failure raised by the quoting pipeline is a CarrierError carrying one
ErrorKind from a closed set. Callers branch on ``kind``; the message is for
humans and logs only.

Kinds:
    AUTH_FAILED        credential fetch failed, or carrier rejected the token
    VALIDATION_FAILED  rate request failed domain validation (no I/O happened)
    NETWORK_ERROR      timeout, aborted connection, or no response at all
    RATE_LIMITED       carrier returned HTTP 429
    CARRIER_API_ERROR  carrier returned an error status or a malformed body
"""
import enum
from typing import Any, Dict, Optional


class ErrorKind(str, enum.Enum):
    """Closed set of failure kinds."""
    AUTH_FAILED = "AUTH_FAILED"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    CARRIER_API_ERROR = "CARRIER_API_ERROR"


# Advisory only: the core never retries on its own
RETRYABLE_KINDS = frozenset({ErrorKind.NETWORK_ERROR, ErrorKind.RATE_LIMITED})


class CarrierError(Exception):
    """
    The single error type raised by the quoting pipeline.

    Attributes:
        kind: ErrorKind for programmatic handling
        message: Human-readable error description
        context: Structured detail (HTTP status, raw body, validation issues...)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.kind = ErrorKind(kind)
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(kind={self.kind.value!r}, message={self.message!r})"
