"""
POS Billing Engine — Bill Value Types
=======================================
BillLineItem: one product/batch/quantity/price/discount entry.
BillSnapshot: the immutable result of BillAccumulator.build().

Both are frozen. A snapshot holds its items in a tuple, so nothing
handed to persistence or receipt rendering can be mutated afterwards.

A line's discount percentage and discount amount describe the same
discount. Either may be the one the cashier entered; the other is
derived at 2 dp half-up:

    amount     = round(line_subtotal × pct / 100)
    percentage = round(amount × 100 / line_subtotal)   (0 on a free line)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Tuple

from core.errors import ErrorKind, PosError
from core.primitives.money import HUNDRED, Money
from core.primitives.refs import Ref

PERCENT_SCALE = Decimal("0.01")


def percentage_of(line_subtotal: Money, discount_amount: Money) -> Decimal:
    """Discount amount as a percentage of the line subtotal, 2 dp half-up."""
    if line_subtotal.is_zero() or discount_amount.is_zero():
        return Decimal("0")
    pct = discount_amount.amount * HUNDRED / line_subtotal.amount
    return pct.quantize(PERCENT_SCALE, rounding=ROUND_HALF_UP)


def discount_matches(
    line_subtotal: Money, discount_percentage: Decimal, discount_amount: Money,
) -> bool:
    """True when percentage and amount describe the same line discount."""
    return (
        line_subtotal.percentage(discount_percentage) == discount_amount
        or percentage_of(line_subtotal, discount_amount) == discount_percentage
    )


# ══════════════════════════════════════════════════════════════
# LINE ITEM
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BillLineItem:
    """
    line_total = quantity × unit_price − discount_amount (never negative).
    discount_percentage agrees with discount_amount.
    """
    product_ref: Ref
    batch_ref: Ref
    quantity: int
    unit_price: Money
    discount_percentage: Decimal
    discount_amount: Money
    line_total: Money

    def __post_init__(self):
        if not isinstance(self.quantity, int) or self.quantity <= 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "quantity must be positive integer.",
            )
        if not Decimal("0") <= self.discount_percentage <= HUNDRED:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"discount_percentage must be between 0 and 100, "
                f"got {self.discount_percentage}.",
            )
        if not discount_matches(
            self.line_subtotal, self.discount_percentage, self.discount_amount,
        ):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"discount_percentage {self.discount_percentage}% does not match "
                f"discount_amount {self.discount_amount} on {self.line_subtotal}.",
                code="DISCOUNT_MISMATCH",
            )
        expected = self.line_subtotal.subtract(self.discount_amount)
        if expected != self.line_total:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"line_total {self.line_total} does not equal "
                f"{self.line_subtotal} − {self.discount_amount}.",
            )

    @property
    def line_subtotal(self) -> Money:
        return self.unit_price.multiply_by_quantity(self.quantity)

    def to_dict(self) -> dict:
        return {
            "product_ref": self.product_ref,
            "batch_ref": self.batch_ref,
            "quantity": self.quantity,
            "unit_price": self.unit_price.to_dict(),
            "discount_percentage": str(self.discount_percentage),
            "discount_amount": self.discount_amount.to_dict(),
            "line_total": self.line_total.to_dict(),
        }


# ══════════════════════════════════════════════════════════════
# BILL SNAPSHOT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class BillSnapshot:
    """
    Finished sale transaction.

    Invariants:
        final_total == subtotal − total_discount
        change_amount == cash_tendered − final_total  (when cash tendered)
    """
    serial_number: str
    bill_date: datetime
    sales_channel_ref: Ref
    employee_ref: Ref
    items: Tuple[BillLineItem, ...]
    subtotal: Money
    total_discount: Money
    final_total: Money
    customer_ref: Optional[Ref] = None
    delivery_address: Optional[str] = None
    cash_tendered: Optional[Money] = None
    change_amount: Optional[Money] = None

    def __post_init__(self):
        if not self.serial_number or not self.serial_number.strip():
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "serial_number must be non-empty.",
            )
        if not isinstance(self.items, tuple) or len(self.items) == 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "items must be non-empty tuple.",
            )
        if self.subtotal.subtract(self.total_discount) != self.final_total:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "final_total must equal subtotal − total_discount.",
            )
        if self.cash_tendered is not None:
            if self.change_amount is None:
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    "change_amount is required when cash is tendered.",
                )
            if self.cash_tendered.subtract(self.final_total) != self.change_amount:
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    "change_amount must equal cash_tendered − final_total.",
                )

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def currency(self) -> str:
        return self.final_total.currency

    def to_dict(self) -> dict:
        return {
            "serial_number": self.serial_number,
            "bill_date": self.bill_date.isoformat(),
            "sales_channel_ref": self.sales_channel_ref,
            "employee_ref": self.employee_ref,
            "customer_ref": self.customer_ref,
            "delivery_address": self.delivery_address,
            "items": [item.to_dict() for item in self.items],
            "subtotal": self.subtotal.to_dict(),
            "total_discount": self.total_discount.to_dict(),
            "final_total": self.final_total.to_dict(),
            "cash_tendered": (
                self.cash_tendered.to_dict() if self.cash_tendered is not None else None
            ),
            "change_amount": (
                self.change_amount.to_dict() if self.change_amount is not None else None
            ),
        }
