"""
POS Pricing Engine — Selector Service
=======================================
Picks the most favorable applicable pricing policy for a sale line.

Selection rule:
- Regular pricing (base × quantity) is the baseline
- Every registered, applicable policy is priced in registration order
- A policy replaces the current best only when STRICTLY cheaper,
  so ties stay with the earlier-registered policy

Registration is append-only and belongs to setup time. After setup
the selector is safe for concurrent read-only use.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from threading import Lock
from typing import Iterable, Optional, Tuple

from core.config.settings import TIER_BULK_DISCOUNT, TIER_VIP, PricingTier
from core.errors import ErrorKind, PosError
from core.primitives.money import HUNDRED, Money
from engines.pricing.policies import PricingPolicy, PricingPolicyKind

logger = logging.getLogger("pos.pricing")


# ══════════════════════════════════════════════════════════════
# PRICING DECISION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingDecision:
    """
    Outcome of one selection.

    original_price = base × quantity before any discount
    savings        = original_price − final_price (never negative)
    """
    policy: PricingPolicy
    final_price: Money
    original_price: Money
    savings: Money

    @property
    def policy_name(self) -> str:
        return self.policy.name

    @property
    def has_savings(self) -> bool:
        return self.savings.is_positive()

    @property
    def savings_percentage(self) -> Decimal:
        """Savings as a percentage of the original price, 1 decimal place."""
        if not self.has_savings or self.original_price.is_zero():
            return Decimal("0.0")
        pct = self.savings.amount * HUNDRED / self.original_price.amount
        return pct.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

    @property
    def savings_description(self) -> str:
        if self.has_savings:
            return f"You save {self.savings} ({self.savings_percentage}%)"
        return "No discount applied"

    def to_dict(self) -> dict:
        return {
            "policy": self.policy.to_dict(),
            "final_price": self.final_price.to_dict(),
            "original_price": self.original_price.to_dict(),
            "savings": self.savings.to_dict(),
        }


# ══════════════════════════════════════════════════════════════
# PRICING SELECTOR
# ══════════════════════════════════════════════════════════════

class PricingSelector:
    """Append-only catalogue of pricing policies with best-price selection."""

    def __init__(self, policies: Iterable[PricingPolicy] = ()):
        self._default = PricingPolicy.regular()
        self._policies: Tuple[PricingPolicy, ...] = (self._default,)
        self._lock = Lock()
        for policy in policies:
            self.register(policy)

    @classmethod
    def from_tiers(cls, tiers: Iterable[PricingTier]) -> PricingSelector:
        """Build a selector from admin-configured tiers (in order)."""
        policies = []
        for tier in tiers:
            if tier.kind == TIER_BULK_DISCOUNT:
                policies.append(PricingPolicy.bulk_discount(
                    min_quantity=tier.min_quantity,
                    discount_percentage=tier.discount_percentage,
                ))
            elif tier.kind == TIER_VIP:
                policies.append(PricingPolicy.vip(tier.discount_percentage))
            else:
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"Unsupported pricing tier kind '{tier.kind}'.",
                )
        return cls(policies)

    def register(self, policy: PricingPolicy) -> None:
        """
        Append a policy.

        Raises:
            PosError(INVALID_ARGUMENT): not a PricingPolicy, or this exact
                policy object is already registered
        """
        if not isinstance(policy, PricingPolicy):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Expected PricingPolicy, got {type(policy).__name__}.",
            )
        with self._lock:
            if any(existing is policy for existing in self._policies):
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"Pricing policy '{policy.name}' already registered.",
                    code="DUPLICATE_PRICING_POLICY",
                )
            self._policies = self._policies + (policy,)
        logger.info(f"Pricing policy registered: {policy.name}")

    @property
    def default_policy(self) -> PricingPolicy:
        return self._default

    @property
    def policies(self) -> Tuple[PricingPolicy, ...]:
        return self._policies

    @property
    def policy_count(self) -> int:
        return len(self._policies)

    def select(
        self,
        base_price: Money,
        quantity: int,
        customer_class: Optional[str] = None,
    ) -> PricingDecision:
        """Return the lowest price any applicable policy offers."""
        original_price = self._default.calculate(base_price, quantity, customer_class)
        best_policy = self._default
        best_price = original_price

        for policy in self._policies:
            if not policy.is_applicable(base_price, quantity, customer_class):
                continue
            price = policy.calculate(base_price, quantity, customer_class)
            if price.is_less_than(best_price):
                best_price = price
                best_policy = policy

        decision = PricingDecision(
            policy=best_policy,
            final_price=best_price,
            original_price=original_price,
            savings=original_price.subtract(best_price),
        )
        logger.debug(
            f"Pricing selected: {best_policy.name} "
            f"(qty={quantity}, class={customer_class}) → {best_price}"
        )
        return decision

    def price_with(
        self,
        policy: PricingPolicy,
        base_price: Money,
        quantity: int,
        customer_class: Optional[str] = None,
    ) -> Money:
        """Price with one specific policy, falling back to Regular."""
        if policy.is_applicable(base_price, quantity, customer_class):
            return policy.calculate(base_price, quantity, customer_class)
        return self._default.calculate(base_price, quantity, customer_class)
