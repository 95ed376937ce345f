"""
Tests for engines.billing — BillAccumulator and bill value types.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.errors import ErrorKind, PosError
from core.primitives.money import Money
from core.time import FixedClock
from engines.billing.accumulator import BillAccumulator, BillState
from engines.billing.models import BillLineItem, BillSnapshot

LKR = "LKR"
NOW = datetime(2026, 3, 1, 10, 15, 0, tzinfo=timezone.utc)


def lkr(amount) -> Money:
    return Money.of(amount, LKR)


def _accumulator() -> BillAccumulator:
    return BillAccumulator(currency=LKR, clock=FixedClock(NOW))


def _ready_bill() -> BillAccumulator:
    """Header complete, two items: 50.00 × 3 and 20.00 × 2 less 5.00."""
    return (
        _accumulator()
        .with_serial_number("INV-0001")
        .with_sales_channel("STORE-1")
        .with_employee(7)
        .add_item("P-1", "B-1", 3, lkr("50.00"))
        .add_item("P-2", "B-2", 2, lkr("20.00"), discount_amount=lkr("5.00"))
    )


def _assert_totals_consistent(acc: BillAccumulator) -> None:
    assert acc.final_total == acc.subtotal.subtract(acc.total_discount)


# ══════════════════════════════════════════════════════════════
# INITIAL STATE
# ══════════════════════════════════════════════════════════════

class TestInitialState:
    def test_starts_empty_and_building(self):
        acc = _accumulator()
        assert acc.state == BillState.BUILDING
        assert acc.is_empty
        assert acc.item_count == 0
        assert acc.subtotal == Money.zero(LKR)
        assert acc.total_discount == Money.zero(LKR)
        assert acc.final_total == Money.zero(LKR)
        assert acc.currency == LKR

    def test_bill_date_defaults_to_clock(self):
        assert _accumulator().bill_date == NOW

    def test_invalid_currency(self):
        with pytest.raises(PosError):
            BillAccumulator(currency="RUPEE")

    def test_setters_are_fluent(self):
        acc = _accumulator()
        assert acc.with_serial_number("A") is acc
        assert acc.with_customer(None) is acc
        assert acc.with_delivery_address(None) is acc


# ══════════════════════════════════════════════════════════════
# ITEMS & TOTALS
# ══════════════════════════════════════════════════════════════

class TestItems:
    def test_two_item_totals(self):
        acc = _ready_bill()
        assert acc.subtotal == lkr("190.00")
        assert acc.total_discount == lkr("5.00")
        assert acc.final_total == lkr("185.00")
        assert acc.item_count == 2

    def test_line_item_values(self):
        item = _ready_bill().items[1]
        assert item.line_subtotal == lkr("40.00")
        assert item.line_total == lkr("35.00")
        assert item.discount_amount == lkr("5.00")

    def test_percentage_discount_derives_amount(self):
        acc = _accumulator().add_item_with_percentage_discount(
            "P-1", "B-1", 3, lkr("33.33"), discount_percentage="10",
        )
        item = acc.items[0]
        assert item.discount_amount == lkr("10.00")  # 99.99 × 10% = 9.999
        assert item.discount_percentage == Decimal("10")
        assert acc.final_total == lkr("89.99")

    def test_fixed_discount_derives_percentage(self):
        acc = _accumulator().add_item_with_fixed_discount(
            "P-1", "B-1", 3, lkr("10.00"), discount_amount=lkr("1.00"),
        )
        assert acc.items[0].discount_percentage == Decimal("3.33")
        assert acc.final_total == lkr("29.00")

    def test_fixed_discount_on_free_item(self):
        acc = _accumulator().add_item_with_fixed_discount(
            "P-1", "B-1", 1, Money.zero(LKR), discount_amount=Money.zero(LKR),
        )
        assert acc.items[0].discount_percentage == Decimal("0")

    def test_fixed_discount_larger_than_line_rejected(self):
        acc = _accumulator()
        with pytest.raises(PosError) as exc:
            acc.add_item_with_fixed_discount(
                "P-1", "B-1", 1, lkr("10.00"), discount_amount=lkr("10.01"),
            )
        assert exc.value.kind == ErrorKind.INSUFFICIENT_AMOUNT
        assert acc.is_empty

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True])
    def test_bad_quantity_rejected(self, quantity):
        acc = _accumulator()
        with pytest.raises(PosError, match="Quantity must be positive"):
            acc.add_item("P-1", "B-1", quantity, lkr("1.00"))
        assert acc.is_empty

    @pytest.mark.parametrize("ref", [None, "", "   ", 0, -3, False])
    def test_bad_product_ref_rejected(self, ref):
        with pytest.raises(PosError) as exc:
            _accumulator().add_item(ref, "B-1", 1, lkr("1.00"))
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_missing_batch_rejected(self):
        with pytest.raises(PosError, match="batch_ref"):
            _accumulator().add_item("P-1", None, 1, lkr("1.00"))

    def test_refs_are_trimmed(self):
        acc = _accumulator().add_item("  P-1 ", 42, 1, lkr("1.00"))
        assert acc.items[0].product_ref == "P-1"
        assert acc.items[0].batch_ref == 42

    def test_foreign_currency_rejected(self):
        with pytest.raises(PosError) as exc:
            _accumulator().add_item("P-1", "B-1", 1, Money.of("1.00", "USD"))
        assert exc.value.kind == ErrorKind.CURRENCY_MISMATCH

    def test_unit_price_must_be_money(self):
        with pytest.raises(PosError, match="must be Money"):
            _accumulator().add_item("P-1", "B-1", 1, "1.00")

    def test_discount_percentage_out_of_range(self):
        acc = _accumulator()
        with pytest.raises(PosError, match="between 0 and 100"):
            acc.add_item_with_percentage_discount("P-1", "B-1", 1, lkr("1.00"), 101)
        assert acc.is_empty

    def test_remove_last_item(self):
        acc = _ready_bill().remove_last_item()
        assert acc.item_count == 1
        assert acc.subtotal == lkr("150.00")
        assert acc.total_discount == Money.zero(LKR)
        assert acc.final_total == lkr("150.00")

    def test_remove_and_clear_on_empty_are_noops(self):
        acc = _accumulator()
        assert acc.remove_last_item() is acc
        assert acc.clear_items() is acc
        assert acc.is_empty
        assert acc.final_total == Money.zero(LKR)

    def test_clear_items(self):
        acc = _ready_bill().clear_items()
        assert acc.is_empty
        assert acc.subtotal == Money.zero(LKR)
        assert acc.final_total == Money.zero(LKR)

    def test_items_view_is_a_copy(self):
        acc = _ready_bill()
        items = acc.items
        acc.remove_last_item()
        assert len(items) == 2
        assert acc.item_count == 1

    def test_totals_consistent_after_every_mutation(self):
        acc = _accumulator()
        prices = ["0.99", "10.00", "3.33", "250.50", "0.00"]
        for i, price in enumerate(prices, start=1):
            acc.add_item(f"P-{i}", f"B-{i}", i, lkr(price))
            _assert_totals_consistent(acc)
            acc.add_item_with_percentage_discount(f"Q-{i}", "B", i, lkr(price), 7)
            _assert_totals_consistent(acc)
        for _ in range(3):
            acc.remove_last_item()
            _assert_totals_consistent(acc)
        acc.clear_items()
        _assert_totals_consistent(acc)


class TestLineDiscountSides:
    def test_percentage_only_derives_amount(self):
        acc = _accumulator().add_item("P-1", "B-1", 2, lkr("10.00"), discount_percentage=50)
        item = acc.items[0]
        assert item.discount_amount == lkr("10.00")
        assert item.line_total == lkr("10.00")

    def test_amount_only_derives_percentage(self):
        acc = _accumulator().add_item("P-1", "B-1", 4, lkr("10.00"), discount_amount=lkr("5.00"))
        assert acc.items[0].discount_percentage == Decimal("12.50")
        assert acc.final_total == lkr("35.00")

    def test_matching_pair_accepted(self):
        acc = _accumulator().add_item(
            "P-1", "B-1", 3, lkr("10.00"),
            discount_percentage="3.33",
            discount_amount=lkr("1.00"),
        )
        item = acc.items[0]
        assert item.discount_percentage == Decimal("3.33")
        assert item.discount_amount == lkr("1.00")
        assert acc.final_total == lkr("29.00")

    def test_mismatched_pair_rejected(self):
        acc = _accumulator()
        with pytest.raises(PosError, match="does not match") as exc:
            acc.add_item(
                "P-1", "B-1", 2, lkr("10.00"),
                discount_percentage=50,
                discount_amount=lkr("1.00"),
            )
        assert exc.value.kind == ErrorKind.INVALID_ARGUMENT
        assert exc.value.code == "DISCOUNT_MISMATCH"
        assert acc.is_empty
        assert acc.final_total == Money.zero(LKR)

    def test_no_discount_given(self):
        item = _accumulator().add_item("P-1", "B-1", 1, lkr("10.00")).items[0]
        assert item.discount_amount == Money.zero(LKR)
        assert item.discount_percentage == Decimal("0")


# ══════════════════════════════════════════════════════════════
# GLOBAL DISCOUNTS
# ══════════════════════════════════════════════════════════════

class TestGlobalDiscounts:
    def test_percentage_against_current_subtotal(self):
        acc = _ready_bill().with_global_discount_percentage(10)
        assert acc.total_discount == lkr("24.00")  # 5.00 + 10% of 190.00
        assert acc.final_total == lkr("166.00")

    def test_percentage_is_not_idempotent(self):
        # Calling twice compounds. Kept deliberately; callers must apply once.
        acc = _ready_bill()
        acc.with_global_discount_percentage(10)
        acc.with_global_discount_percentage(10)
        assert acc.total_discount == lkr("43.00")
        assert acc.final_total == lkr("147.00")

    def test_amount_is_additive(self):
        acc = _ready_bill()
        acc.with_global_discount_amount(lkr("10.00"))
        acc.with_global_discount_amount(lkr("10.00"))
        assert acc.total_discount == lkr("25.00")
        assert acc.final_total == lkr("165.00")

    def test_later_item_mutation_drops_global_discount(self):
        acc = _ready_bill().with_global_discount_amount(lkr("10.00"))
        acc.add_item("P-3", "B-3", 1, lkr("10.00"))
        assert acc.total_discount == lkr("5.00")
        assert acc.final_total == lkr("195.00")

    @pytest.mark.parametrize("pct", [None, 0, -5])
    def test_non_positive_percentage_ignored(self, pct):
        acc = _ready_bill().with_global_discount_percentage(pct)
        assert acc.total_discount == lkr("5.00")

    def test_none_or_zero_amount_ignored(self):
        acc = _ready_bill()
        acc.with_global_discount_amount(None)
        acc.with_global_discount_amount(Money.zero(LKR))
        assert acc.total_discount == lkr("5.00")

    def test_discount_beyond_subtotal_rejected_without_change(self):
        acc = _ready_bill()
        with pytest.raises(PosError) as exc:
            acc.with_global_discount_amount(lkr("186.00"))
        assert exc.value.kind == ErrorKind.INSUFFICIENT_AMOUNT
        assert acc.total_discount == lkr("5.00")
        assert acc.final_total == lkr("185.00")

    def test_percentage_above_hundred_rejected(self):
        with pytest.raises(PosError, match="must not exceed 100"):
            _ready_bill().with_global_discount_percentage(150)


# ══════════════════════════════════════════════════════════════
# BUILD
# ══════════════════════════════════════════════════════════════

class TestBuild:
    def test_change_computed(self):
        bill = _ready_bill().with_cash_tendered(lkr("200.00")).build()
        assert bill.change_amount == lkr("15.00")
        assert bill.cash_tendered == lkr("200.00")
        assert bill.final_total == lkr("185.00")

    def test_exact_cash_gives_zero_change(self):
        bill = _ready_bill().with_cash_tendered(lkr("185.00")).build()
        assert bill.change_amount == Money.zero(LKR)

    def test_insufficient_cash(self):
        acc = _ready_bill().with_cash_tendered(lkr("100.00"))
        with pytest.raises(PosError) as exc:
            acc.build()
        assert exc.value.kind == ErrorKind.INSUFFICIENT_CASH
        assert exc.value.user_message == "Cash tendered is less than the bill total"
        assert exc.value.is_state_error
        # Still building: the cashier can take more cash and retry.
        assert acc.state == BillState.BUILDING
        assert acc.with_cash_tendered(lkr("200.00")).build().change_amount == lkr("15.00")

    def test_no_cash_means_no_change(self):
        bill = _ready_bill().build()
        assert bill.cash_tendered is None
        assert bill.change_amount is None

    @pytest.mark.parametrize("missing, code", [
        ("serial", "BILL_SERIAL_REQUIRED"),
        ("channel", "BILL_SALES_CHANNEL_REQUIRED"),
        ("employee", "BILL_EMPLOYEE_REQUIRED"),
        ("items", "BILL_ITEMS_REQUIRED"),
    ])
    def test_missing_preconditions(self, missing, code):
        acc = _accumulator()
        if missing != "serial":
            acc.with_serial_number("INV-9")
        if missing != "channel":
            acc.with_sales_channel(1)
        if missing != "employee":
            acc.with_employee(2)
        if missing != "items":
            acc.add_item("P-1", "B-1", 1, lkr("1.00"))

        with pytest.raises(PosError) as exc:
            acc.build()
        assert exc.value.kind == ErrorKind.INVALID_STATE
        assert exc.value.code == code

    def test_blank_serial_rejected_on_set(self):
        with pytest.raises(PosError, match="serial number must be non-empty"):
            _accumulator().with_serial_number("   ")

    def test_snapshot_fields(self):
        bill_date = datetime(2026, 2, 28, 18, 0, tzinfo=timezone.utc)
        bill = (
            _ready_bill()
            .with_bill_date(bill_date)
            .with_customer("C-9")
            .with_delivery_address("  12 Galle Road, Colombo  ")
            .build()
        )
        assert isinstance(bill, BillSnapshot)
        assert bill.serial_number == "INV-0001"
        assert bill.bill_date == bill_date
        assert bill.sales_channel_ref == "STORE-1"
        assert bill.employee_ref == 7
        assert bill.customer_ref == "C-9"
        assert bill.delivery_address == "12 Galle Road, Colombo"
        assert bill.item_count == 2
        assert bill.total_quantity == 5
        assert bill.currency == LKR
        assert isinstance(bill.items, tuple)

    def test_blank_delivery_address_stored_as_none(self):
        bill = _ready_bill().with_delivery_address("   ").build()
        assert bill.delivery_address is None

    def test_finalized_rejects_mutation(self):
        acc = _ready_bill()
        acc.build()
        assert acc.state == BillState.FINALIZED
        for mutate in (
            lambda: acc.add_item("P-9", "B-9", 1, lkr("1.00")),
            lambda: acc.remove_last_item(),
            lambda: acc.clear_items(),
            lambda: acc.with_serial_number("INV-2"),
            lambda: acc.with_global_discount_percentage(5),
            lambda: acc.build(),
        ):
            with pytest.raises(PosError) as exc:
                mutate()
            assert exc.value.code == "BILL_FINALIZED"

    def test_snapshot_to_dict(self):
        data = _ready_bill().with_cash_tendered(lkr("200.00")).build().to_dict()
        assert data["serial_number"] == "INV-0001"
        assert data["bill_date"] == NOW.isoformat()
        assert data["final_total"] == {"amount": "185.00", "currency": "LKR"}
        assert data["change_amount"] == {"amount": "15.00", "currency": "LKR"}
        assert len(data["items"]) == 2
        assert data["items"][1]["discount_amount"]["amount"] == "5.00"


# ══════════════════════════════════════════════════════════════
# VALUE TYPES
# ══════════════════════════════════════════════════════════════

class TestValueTypes:
    def test_line_item_total_must_match(self):
        with pytest.raises(PosError, match="does not equal"):
            BillLineItem(
                product_ref="P-1",
                batch_ref="B-1",
                quantity=2,
                unit_price=lkr("10.00"),
                discount_percentage=Decimal("0"),
                discount_amount=Money.zero(LKR),
                line_total=lkr("19.00"),
            )

    def test_snapshot_requires_items(self):
        with pytest.raises(PosError, match="items must be non-empty"):
            BillSnapshot(
                serial_number="INV-1",
                bill_date=NOW,
                sales_channel_ref=1,
                employee_ref=1,
                items=(),
                subtotal=Money.zero(LKR),
                total_discount=Money.zero(LKR),
                final_total=Money.zero(LKR),
            )

    def test_snapshot_is_frozen(self):
        bill = _ready_bill().build()
        with pytest.raises(AttributeError):
            bill.serial_number = "X"

    def test_line_item_discount_sides_must_agree(self):
        with pytest.raises(PosError) as exc:
            BillLineItem(
                product_ref="P-1",
                batch_ref="B-1",
                quantity=2,
                unit_price=lkr("10.00"),
                discount_percentage=Decimal("50"),
                discount_amount=lkr("1.00"),
                line_total=lkr("19.00"),
            )
        assert exc.value.code == "DISCOUNT_MISMATCH"
