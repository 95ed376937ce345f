"""
POS Billing Engine — Bill Accumulator
=======================================
Stateful builder for one sale transaction.

Lifecycle:
    BUILDING   → items and header fields may change
    FINALIZED  → build() succeeded; every further mutation is rejected

RULES:
- One accumulator per in-flight sale. No internal locking.
- Every item mutation recomputes the totals from the full item list
  (never incrementally):
      subtotal       = Σ unit_price × quantity
      total_discount = Σ item discount_amount
      final_total    = subtotal − total_discount
- Global discounts are added on top of total_discount when their
  setters run. They are additive (two calls compound) and a later item
  mutation recomputes from the items alone, dropping them.
- A rejected operation leaves the accumulator exactly as it was.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from core.errors import ErrorKind, PosError
from core.primitives.money import HUNDRED, Money, Number, to_decimal
from core.primitives.refs import Ref, require_ref
from core.time import Clock, SystemClock
from engines.billing.models import (
    BillLineItem,
    BillSnapshot,
    discount_matches,
    percentage_of,
)

logger = logging.getLogger("pos.billing")


class BillState(Enum):
    BUILDING = "BUILDING"
    FINALIZED = "FINALIZED"


class BillAccumulator:
    """
    Fluent bill builder.

    Usage:
        snapshot = (
            BillAccumulator(currency="LKR", clock=clock)
            .with_serial_number("INV-0001")
            .with_sales_channel("STORE-1")
            .with_employee(7)
            .add_item("P-1", "B-1", 3, Money.of("50.00", "LKR"))
            .with_cash_tendered(Money.of("200.00", "LKR"))
            .build()
        )
    """

    def __init__(self, currency: str = "LKR", clock: Optional[Clock] = None):
        zero = Money.zero(currency)
        self._currency = zero.currency
        self._clock = clock or SystemClock()
        self._state = BillState.BUILDING

        self._serial_number: Optional[str] = None
        self._bill_date: datetime = self._clock.now_utc()
        self._sales_channel_ref: Optional[Ref] = None
        self._employee_ref: Optional[Ref] = None
        self._customer_ref: Optional[Ref] = None
        self._delivery_address: Optional[str] = None
        self._cash_tendered: Optional[Money] = None

        self._items: List[BillLineItem] = []
        self._subtotal = zero
        self._total_discount = zero
        self._final_total = zero

    # ── Read-only views ───────────────────────────────────────

    @property
    def state(self) -> BillState:
        return self._state

    @property
    def currency(self) -> str:
        return self._currency

    @property
    def items(self) -> Tuple[BillLineItem, ...]:
        return tuple(self._items)

    @property
    def item_count(self) -> int:
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        return not self._items

    @property
    def subtotal(self) -> Money:
        return self._subtotal

    @property
    def total_discount(self) -> Money:
        return self._total_discount

    @property
    def final_total(self) -> Money:
        return self._final_total

    @property
    def bill_date(self) -> datetime:
        return self._bill_date

    @property
    def cash_tendered(self) -> Optional[Money]:
        return self._cash_tendered

    # ── Header fields ─────────────────────────────────────────

    def with_serial_number(self, serial_number: str) -> BillAccumulator:
        self._ensure_building()
        if not isinstance(serial_number, str) or not serial_number.strip():
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "Bill serial number must be non-empty.",
            )
        self._serial_number = serial_number.strip()
        return self

    def with_bill_date(self, bill_date: datetime) -> BillAccumulator:
        self._ensure_building()
        if not isinstance(bill_date, datetime):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"bill_date must be datetime, got {type(bill_date).__name__}.",
            )
        self._bill_date = bill_date
        return self

    def with_sales_channel(self, sales_channel_ref: Ref) -> BillAccumulator:
        self._ensure_building()
        self._sales_channel_ref = require_ref(sales_channel_ref, "sales_channel_ref")
        return self

    def with_employee(self, employee_ref: Ref) -> BillAccumulator:
        self._ensure_building()
        self._employee_ref = require_ref(employee_ref, "employee_ref")
        return self

    def with_customer(self, customer_ref: Optional[Ref]) -> BillAccumulator:
        """Customer is optional; None clears it."""
        self._ensure_building()
        if customer_ref is None:
            self._customer_ref = None
        else:
            self._customer_ref = require_ref(customer_ref, "customer_ref")
        return self

    def with_delivery_address(self, address: Optional[str]) -> BillAccumulator:
        self._ensure_building()
        if address is not None and not isinstance(address, str):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"delivery address must be str, got {type(address).__name__}.",
            )
        if address is not None:
            address = address.strip() or None
        self._delivery_address = address
        return self

    def with_cash_tendered(self, cash: Optional[Money]) -> BillAccumulator:
        self._ensure_building()
        if cash is not None:
            self._check_money(cash, "cash_tendered")
        self._cash_tendered = cash
        return self

    # ── Global discounts ──────────────────────────────────────

    def with_global_discount_percentage(
        self, percentage: Optional[Number],
    ) -> BillAccumulator:
        """
        Add percentage% of the current subtotal to the total discount.

        Not idempotent: calling twice adds the discount twice.
        None or non-positive values are ignored.
        """
        self._ensure_building()
        if percentage is None:
            return self
        pct = to_decimal(percentage, "percentage")
        if pct <= 0:
            return self
        if pct > HUNDRED:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Global discount percentage must not exceed 100, got {pct}.",
            )
        self._apply_global_discount(self._subtotal.percentage(pct))
        return self

    def with_global_discount_amount(self, amount: Optional[Money]) -> BillAccumulator:
        """Add a fixed amount to the total discount. Additive, like the percentage form."""
        self._ensure_building()
        if amount is None:
            return self
        self._check_money(amount, "discount amount")
        if amount.is_zero():
            return self
        self._apply_global_discount(amount)
        return self

    def _apply_global_discount(self, additional: Money) -> None:
        total_discount = self._total_discount.add(additional)
        # Raises INSUFFICIENT_AMOUNT before anything is assigned.
        final_total = self._subtotal.subtract(total_discount)
        self._total_discount = total_discount
        self._final_total = final_total
        logger.debug(
            f"Global discount {additional} applied, "
            f"total discount now {total_discount}"
        )

    # ── Items ─────────────────────────────────────────────────

    def add_item(
        self,
        product_ref: Ref,
        batch_ref: Ref,
        quantity: int,
        unit_price: Money,
        discount_percentage: Optional[Number] = None,
        discount_amount: Optional[Money] = None,
    ) -> BillAccumulator:
        """
        Append one line and recompute totals.

        Give the discount as a percentage, as an amount, or both. A
        missing side is derived from the other; when both are given
        they must agree (see engines.billing.models).

        Raises:
            PosError(INVALID_ARGUMENT): missing refs, quantity <= 0,
                discount percentage outside 0..100, percentage and
                amount that disagree (code DISCOUNT_MISMATCH)
            PosError(CURRENCY_MISMATCH): price or discount in another currency
            PosError(INSUFFICIENT_AMOUNT): discount larger than the line subtotal
        """
        self._ensure_building()
        product = require_ref(product_ref, "product_ref")
        batch = require_ref(batch_ref, "batch_ref")
        quantity = _positive_quantity(quantity)
        self._check_money(unit_price, "unit_price")
        line_subtotal = unit_price.multiply_by_quantity(quantity)

        pct = None
        if discount_percentage is not None:
            pct = to_decimal(discount_percentage, "discount_percentage")
            if not Decimal("0") <= pct <= HUNDRED:
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"discount_percentage must be between 0 and 100, got {pct}.",
                )
        if discount_amount is not None:
            self._check_money(discount_amount, "discount_amount")
        elif pct is not None:
            discount_amount = line_subtotal.percentage(pct)
        else:
            discount_amount = Money.zero(self._currency)

        line_total = line_subtotal.subtract(discount_amount)
        if pct is None:
            pct = percentage_of(line_subtotal, discount_amount)
        elif not discount_matches(line_subtotal, pct, discount_amount):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Discount {pct}% does not match discount amount "
                f"{discount_amount} on {line_subtotal}.",
                code="DISCOUNT_MISMATCH",
            )

        item = BillLineItem(
            product_ref=product,
            batch_ref=batch,
            quantity=quantity,
            unit_price=unit_price,
            discount_percentage=pct,
            discount_amount=discount_amount,
            line_total=line_total,
        )

        self._items.append(item)
        self._recalculate()
        logger.debug(
            f"Item added: product={product} batch={batch} qty={quantity} "
            f"line_total={line_total}"
        )
        return self

    def add_item_with_percentage_discount(
        self,
        product_ref: Ref,
        batch_ref: Ref,
        quantity: int,
        unit_price: Money,
        discount_percentage: Number,
    ) -> BillAccumulator:
        """discount_amount = line subtotal × pct / 100, rounded half-up to cents."""
        return self.add_item(
            product_ref, batch_ref, quantity, unit_price,
            discount_percentage=discount_percentage,
        )

    def add_item_with_fixed_discount(
        self,
        product_ref: Ref,
        batch_ref: Ref,
        quantity: int,
        unit_price: Money,
        discount_amount: Money,
    ) -> BillAccumulator:
        """discount_percentage = amount × 100 / line subtotal, 2 dp half-up (0 when either is zero)."""
        if discount_amount is None:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "discount_amount is required for a fixed discount.",
            )
        return self.add_item(
            product_ref, batch_ref, quantity, unit_price,
            discount_amount=discount_amount,
        )

    def remove_last_item(self) -> BillAccumulator:
        self._ensure_building()
        if self._items:
            removed = self._items.pop()
            self._recalculate()
            logger.debug(f"Item removed: product={removed.product_ref}")
        return self

    def clear_items(self) -> BillAccumulator:
        self._ensure_building()
        if self._items:
            self._items.clear()
            self._recalculate()
        return self

    def _recalculate(self) -> None:
        subtotal = Money.zero(self._currency)
        total_discount = Money.zero(self._currency)
        for item in self._items:
            subtotal = subtotal.add(item.line_subtotal)
            total_discount = total_discount.add(item.discount_amount)
        self._subtotal = subtotal
        self._total_discount = total_discount
        self._final_total = subtotal.subtract(total_discount)

    # ── Build ─────────────────────────────────────────────────

    def build(self) -> BillSnapshot:
        """
        Validate and produce the immutable bill.

        Raises:
            PosError(INVALID_STATE): a required field or the items are missing,
                or the bill is already finalized
            PosError(INSUFFICIENT_CASH): cash tendered below final_total
        """
        self._ensure_building()
        if not self._serial_number:
            raise PosError(
                ErrorKind.INVALID_STATE,
                "Bill serial number is required.",
                code="BILL_SERIAL_REQUIRED",
            )
        if self._sales_channel_ref is None:
            raise PosError(
                ErrorKind.INVALID_STATE,
                "Sales channel is required.",
                code="BILL_SALES_CHANNEL_REQUIRED",
            )
        if self._employee_ref is None:
            raise PosError(
                ErrorKind.INVALID_STATE,
                "Employee is required.",
                code="BILL_EMPLOYEE_REQUIRED",
            )
        if not self._items:
            raise PosError(
                ErrorKind.INVALID_STATE,
                "Bill must contain at least one item.",
                code="BILL_ITEMS_REQUIRED",
            )

        change_amount = None
        if self._cash_tendered is not None:
            if self._cash_tendered.is_less_than(self._final_total):
                raise PosError(
                    ErrorKind.INSUFFICIENT_CASH,
                    f"Cash tendered is less than the bill total: "
                    f"{self._cash_tendered} < {self._final_total}.",
                    user_message="Cash tendered is less than the bill total",
                )
            change_amount = self._cash_tendered.subtract(self._final_total)

        snapshot = BillSnapshot(
            serial_number=self._serial_number,
            bill_date=self._bill_date,
            sales_channel_ref=self._sales_channel_ref,
            employee_ref=self._employee_ref,
            items=tuple(self._items),
            subtotal=self._subtotal,
            total_discount=self._total_discount,
            final_total=self._final_total,
            customer_ref=self._customer_ref,
            delivery_address=self._delivery_address,
            cash_tendered=self._cash_tendered,
            change_amount=change_amount,
        )
        self._state = BillState.FINALIZED
        logger.info(
            f"Bill {snapshot.serial_number} finalized: "
            f"{snapshot.item_count} item(s), total {snapshot.final_total}"
        )
        return snapshot

    # ── Guards ────────────────────────────────────────────────

    def _ensure_building(self) -> None:
        if self._state is not BillState.BUILDING:
            raise PosError(
                ErrorKind.INVALID_STATE,
                "Bill is already finalized.",
                code="BILL_FINALIZED",
            )

    def _check_money(self, value, field_name: str) -> None:
        if not isinstance(value, Money):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"{field_name} must be Money, got {type(value).__name__}.",
            )
        if value.currency != self._currency:
            raise PosError(
                ErrorKind.CURRENCY_MISMATCH,
                f"Currency mismatch: {value.currency} vs {self._currency}.",
            )


def _positive_quantity(quantity) -> int:
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"Quantity must be positive, got {quantity!r}.",
        )
    return quantity
