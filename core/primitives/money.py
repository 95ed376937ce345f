"""
POS Money Primitive — Fixed-Point Currency Value
==================================================
Engine: Core Primitives

Money is the only monetary type the core passes around: unit prices,
discounts, line totals, bill totals, cash tendered and change.

RULES (NON-NEGOTIABLE):
- Amounts are Decimal, quantized to 2 places with ROUND_HALF_UP
  at construction (every result of arithmetic is a new Money)
- Amounts are never negative; this domain has no negative money
- Currency is explicit on every value (ISO 4217, 3 letters)
- Binary operations across currencies are rejected, never converted
- Floats are accepted only through str() so 1.005 means 1.005
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from core.errors import ErrorKind, PosError

Number = Union[Decimal, int, str, float]

SCALE = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value: Number, field_name: str = "value") -> Decimal:
    """Coerce a caller-supplied number to Decimal without float noise."""
    if value is None:
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} cannot be None.",
        )
    if isinstance(value, bool):
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} must be a number, got bool.",
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"{field_name} '{value}' is not a valid number.",
            ) from None
    else:
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} must be a number, got {type(value).__name__}.",
        )
    if not result.is_finite():
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} must be finite, got {value}.",
        )
    return result


def round_half_up(value: Decimal) -> Decimal:
    return value.quantize(SCALE, rounding=ROUND_HALF_UP)


# ══════════════════════════════════════════════════════════════
# MONEY VALUE OBJECT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Money:
    """
    Monetary value with 2-digit fractional precision.

    Money(amount="10.50", currency="LKR") == Money(amount=Decimal("10.5"), currency="LKR")
    """
    amount: Decimal
    currency: str

    def __post_init__(self):
        if not self.currency or not isinstance(self.currency, str):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "currency must be a non-empty ISO 4217 string.",
            )
        code = self.currency
        if len(code) != 3 or not (code.isascii() and code.isalpha()):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"currency must be 3-letter ISO 4217 code, "
                f"got '{self.currency}'.",
            )
        amount = to_decimal(self.amount, "amount")
        if amount < 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Amount cannot be negative, got {amount}.",
                user_message="Amounts must be zero or more.",
            )
        # -0 normalizes to 0
        object.__setattr__(self, "amount", round_half_up(amount.copy_abs()))
        object.__setattr__(self, "currency", self.currency.upper())

    # ── Constructors ──────────────────────────────────────────

    @classmethod
    def of(cls, amount: Number, currency: str) -> Money:
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    # ── Arithmetic ────────────────────────────────────────────

    def add(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def subtract(self, other: Money) -> Money:
        self._assert_same_currency(other)
        if other.amount > self.amount:
            raise PosError(
                ErrorKind.INSUFFICIENT_AMOUNT,
                f"Cannot subtract more than available amount: "
                f"{other} from {self}.",
            )
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def multiply_by_quantity(self, quantity: int) -> Money:
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"quantity must be int, got {type(quantity).__name__}.",
            )
        if quantity < 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Quantity cannot be negative, got {quantity}.",
            )
        return Money(amount=self.amount * quantity, currency=self.currency)

    def multiply_by_factor(self, factor: Number) -> Money:
        factor = to_decimal(factor, "factor")
        if factor < 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Factor cannot be negative, got {factor}.",
            )
        return Money(amount=self.amount * factor, currency=self.currency)

    def divide(self, divisor: Number) -> Money:
        divisor = to_decimal(divisor, "divisor")
        if divisor <= 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Divisor must be positive, got {divisor}.",
            )
        return Money(amount=self.amount / divisor, currency=self.currency)

    def percentage(self, percent: Number) -> Money:
        """Return percent% of this amount (e.g. 5 → 5%)."""
        return self.multiply_by_factor(to_decimal(percent, "percent") / HUNDRED)

    # ── Comparisons ───────────────────────────────────────────

    def is_greater_than(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def is_greater_than_or_equal(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    def is_less_than(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def is_less_than_or_equal(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def __add__(self, other: Money) -> Money:
        return self.add(other)

    def __sub__(self, other: Money) -> Money:
        return self.subtract(other)

    def __lt__(self, other: Money) -> bool:
        return self.is_less_than(other)

    def __le__(self, other: Money) -> bool:
        return self.is_less_than_or_equal(other)

    def __gt__(self, other: Money) -> bool:
        return self.is_greater_than(other)

    def __ge__(self, other: Money) -> bool:
        return self.is_greater_than_or_equal(other)

    def _assert_same_currency(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Cannot operate with {type(other).__name__}.",
            )
        if self.currency != other.currency:
            raise PosError(
                ErrorKind.CURRENCY_MISMATCH,
                f"Currency mismatch: {self.currency} vs {other.currency}.",
            )

    # ── Serialization ─────────────────────────────────────────

    def to_dict(self) -> dict:
        return {"amount": str(self.amount), "currency": self.currency}

    @classmethod
    def from_dict(cls, data: dict) -> Money:
        return cls(amount=data["amount"], currency=data["currency"])

    def __str__(self) -> str:
        return f"{self.currency} {self.amount}"
