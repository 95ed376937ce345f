"""
POS Core Errors — Tagged Error Value
======================================
Every rejected operation in the core raises a PosError.

There is no exception hierarchy per failure. The failure is described
by data instead:

    kind:          What class of failure (ErrorKind)
    code:          Machine-readable reason (SCREAMING_SNAKE_CASE)
    detail:        Technical explanation (logs, audit)
    user_message:  Text safe to show an operator at the till

Input validation and state errors are distinguished by kind, never by
catching different classes. Nothing here is fatal to the process.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


# ══════════════════════════════════════════════════════════════
# ERROR KINDS
# ══════════════════════════════════════════════════════════════

class ErrorKind(Enum):
    """Closed set of failure classes raised by the core."""
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    CURRENCY_MISMATCH = "CURRENCY_MISMATCH"
    INSUFFICIENT_AMOUNT = "INSUFFICIENT_AMOUNT"
    INVALID_STATE = "INVALID_STATE"
    INSUFFICIENT_CASH = "INSUFFICIENT_CASH"


VALIDATION_KINDS = frozenset({
    ErrorKind.INVALID_ARGUMENT,
    ErrorKind.CURRENCY_MISMATCH,
    ErrorKind.INSUFFICIENT_AMOUNT,
})

STATE_KINDS = frozenset({
    ErrorKind.INVALID_STATE,
    ErrorKind.INSUFFICIENT_CASH,
})


# ══════════════════════════════════════════════════════════════
# ERROR VALUE
# ══════════════════════════════════════════════════════════════

class PosError(Exception):
    """
    Structured, raisable error value.

    Usage:
        raise PosError(
            ErrorKind.INVALID_STATE,
            "Sales channel is required.",
            code="BILL_SALES_CHANNEL_REQUIRED",
        )
    """

    def __init__(
        self,
        kind: ErrorKind,
        detail: str,
        *,
        code: Optional[str] = None,
        user_message: Optional[str] = None,
    ):
        if not isinstance(kind, ErrorKind):
            raise TypeError(f"kind must be ErrorKind, got {type(kind).__name__}.")
        self.kind = kind
        self.code = code or kind.value
        self.detail = detail
        self.user_message = user_message or detail
        super().__init__(detail)

    @property
    def is_validation_error(self) -> bool:
        return self.kind in VALIDATION_KINDS

    @property
    def is_state_error(self) -> bool:
        return self.kind in STATE_KINDS

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "detail": self.detail,
            "user_message": self.user_message,
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self.detail}"

    def __repr__(self) -> str:
        return (
            f"PosError(kind={self.kind.value}, code={self.code!r}, "
            f"detail={self.detail!r})"
        )
