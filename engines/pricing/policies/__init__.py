"""
POS Pricing Engine — Policies
===============================
Closed set of pricing policies as tagged variants.

    REGULAR        always applicable; base × quantity
    BULK_DISCOUNT  quantity >= min_quantity; base × quantity × (1 − pct/100)
    VIP            customer_class == "VIP";  base × quantity × (1 − pct/100)

Policies are pure: same input → same price. No state, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.errors import ErrorKind, PosError
from core.primitives.money import HUNDRED, Money, Number, to_decimal

VIP_CUSTOMER_CLASS = "VIP"


class PricingPolicyKind(Enum):
    REGULAR = "REGULAR"
    BULK_DISCOUNT = "BULK_DISCOUNT"
    VIP = "VIP"


@dataclass(frozen=True)
class PricingPolicy:
    """
    One pricing rule.

    Use the constructors rather than building the dataclass directly:
        PricingPolicy.regular()
        PricingPolicy.bulk_discount(min_quantity=10, discount_percentage=5)
        PricingPolicy.vip(discount_percentage=15)
    """
    kind: PricingPolicyKind
    min_quantity: int = 0
    discount_percentage: Decimal = Decimal("0")

    def __post_init__(self):
        if not isinstance(self.kind, PricingPolicyKind):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "kind must be PricingPolicyKind enum.",
            )
        pct = to_decimal(self.discount_percentage, "discount_percentage")
        if not Decimal("0") <= pct <= HUNDRED:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"discount_percentage must be between 0 and 100, got {pct}.",
            )
        object.__setattr__(self, "discount_percentage", pct)
        if not isinstance(self.min_quantity, int) or self.min_quantity < 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "min_quantity must be a non-negative integer.",
            )
        if self.kind == PricingPolicyKind.REGULAR and pct != 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "REGULAR pricing carries no discount.",
            )

    # ── Constructors ──────────────────────────────────────────

    @classmethod
    def regular(cls) -> PricingPolicy:
        return cls(kind=PricingPolicyKind.REGULAR)

    @classmethod
    def bulk_discount(
        cls, min_quantity: int, discount_percentage: Number,
    ) -> PricingPolicy:
        return cls(
            kind=PricingPolicyKind.BULK_DISCOUNT,
            min_quantity=min_quantity,
            discount_percentage=to_decimal(discount_percentage, "discount_percentage"),
        )

    @classmethod
    def vip(cls, discount_percentage: Number) -> PricingPolicy:
        return cls(
            kind=PricingPolicyKind.VIP,
            discount_percentage=to_decimal(discount_percentage, "discount_percentage"),
        )

    # ── Contract ──────────────────────────────────────────────

    @property
    def name(self) -> str:
        if self.kind == PricingPolicyKind.BULK_DISCOUNT:
            return (
                f"Bulk Discount ({self.discount_percentage:.1f}% "
                f"for {self.min_quantity}+ items)"
            )
        if self.kind == PricingPolicyKind.VIP:
            return f"VIP Pricing ({self.discount_percentage:.1f}% discount)"
        return "Regular Pricing"

    def is_applicable(
        self,
        base_price: Money,
        quantity: int,
        customer_class: Optional[str] = None,
    ) -> bool:
        if self.kind == PricingPolicyKind.BULK_DISCOUNT:
            return quantity >= self.min_quantity
        if self.kind == PricingPolicyKind.VIP:
            return customer_class == VIP_CUSTOMER_CLASS
        return True

    def calculate(
        self,
        base_price: Money,
        quantity: int,
        customer_class: Optional[str] = None,
    ) -> Money:
        """
        Price for the whole quantity.

        A discounting policy that does not apply to the input returns
        the undiscounted price.
        """
        total = base_price.multiply_by_quantity(quantity)
        if self.kind == PricingPolicyKind.REGULAR:
            return total
        if not self.is_applicable(base_price, quantity, customer_class):
            return total
        return total.multiply_by_factor(
            Decimal("1") - self.discount_percentage / HUNDRED
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "min_quantity": self.min_quantity,
            "discount_percentage": str(self.discount_percentage),
        }
