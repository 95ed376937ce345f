"""
POS Inventory Engine — Inventory Change Events
================================================
Stock-mutating code builds an InventoryChangeEvent and publishes it on
the EventBus. Listeners (logging, alert buffers) consume the stream.

Events are immutable. Producers fill only the fields that matter for
their kind; description rendering tolerates the rest being absent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from core.errors import ErrorKind, PosError
from core.primitives.money import Money
from core.primitives.refs import Ref, require_ref, require_text
from core.time import Clock


# ══════════════════════════════════════════════════════════════
# EVENT KINDS
# ══════════════════════════════════════════════════════════════

class InventoryEventKind(Enum):
    STOCK_LOW = "STOCK_LOW"
    STOCK_OUT = "STOCK_OUT"
    STOCK_RESTOCKED = "STOCK_RESTOCKED"
    PRODUCT_SOLD = "PRODUCT_SOLD"
    BATCH_EXPIRED = "BATCH_EXPIRED"
    BATCH_NEAR_EXPIRY = "BATCH_NEAR_EXPIRY"
    PRICE_CHANGED = "PRICE_CHANGED"
    PRODUCT_CREATED = "PRODUCT_CREATED"
    PRODUCT_DEACTIVATED = "PRODUCT_DEACTIVATED"


ALERT_KINDS = frozenset({
    InventoryEventKind.STOCK_LOW,
    InventoryEventKind.STOCK_OUT,
    InventoryEventKind.BATCH_EXPIRED,
    InventoryEventKind.BATCH_NEAR_EXPIRY,
})


def stock_level_kind(
    new_quantity: int, low_stock_threshold: int,
) -> Optional[InventoryEventKind]:
    """
    Classify a post-mutation stock level.

    0 (or below)            → STOCK_OUT
    1..low_stock_threshold  → STOCK_LOW
    above the threshold     → None (nothing to report)
    """
    if new_quantity <= 0:
        return InventoryEventKind.STOCK_OUT
    if new_quantity <= low_stock_threshold:
        return InventoryEventKind.STOCK_LOW
    return None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _show(value) -> str:
    return "unknown" if value is None else str(value)


def _difference(larger: Optional[int], smaller: Optional[int]) -> str:
    if larger is None or smaller is None:
        return "unknown"
    return str(larger - smaller)


# ══════════════════════════════════════════════════════════════
# EVENT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InventoryChangeEvent:
    """
    One inventory state change.

    product_ref and location_name are required. timestamp is stamped
    when the event is built and is not a constructor argument;
    producers holding a Clock use InventoryChangeEvent.create().
    """
    kind: InventoryEventKind
    product_ref: Ref
    location_name: str
    product_code: Optional[str] = None
    product_name: Optional[str] = None
    batch_ref: Optional[Ref] = None
    old_quantity: Optional[int] = None
    new_quantity: Optional[int] = None
    old_price: Optional[Money] = None
    new_price: Optional[Money] = None
    message: Optional[str] = None
    actor_ref: Optional[Ref] = None
    timestamp: datetime = field(init=False, default_factory=_utc_now)

    def __post_init__(self):
        if not isinstance(self.kind, InventoryEventKind):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "kind must be InventoryEventKind enum.",
            )
        object.__setattr__(
            self, "product_ref", require_ref(self.product_ref, "product_ref"),
        )
        object.__setattr__(
            self, "location_name", require_text(self.location_name, "location_name"),
        )
        for field_name in ("old_price", "new_price"):
            value = getattr(self, field_name)
            if value is not None and not isinstance(value, Money):
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"{field_name} must be Money, got {type(value).__name__}.",
                )

    @classmethod
    def create(
        cls,
        clock: Clock,
        kind: InventoryEventKind,
        product_ref: Ref,
        location_name: str,
        **details,
    ) -> InventoryChangeEvent:
        """Build an event stamped with clock.now_utc()."""
        event = cls(kind, product_ref, location_name, **details)
        object.__setattr__(event, "timestamp", clock.now_utc())
        return event

    @property
    def is_alert(self) -> bool:
        return self.kind in ALERT_KINDS

    @property
    def description(self) -> str:
        """Explicit message verbatim, otherwise a kind-specific sentence."""
        if self.message and self.message.strip():
            return self.message

        product = f"{_show(self.product_name)} ({_show(self.product_code)})"
        kind = self.kind
        if kind == InventoryEventKind.STOCK_LOW:
            return (
                f"Low stock alert for {product} - Only "
                f"{_show(self.new_quantity)} units remaining at "
                f"{_show(self.location_name)}"
            )
        if kind == InventoryEventKind.STOCK_OUT:
            return f"Out of stock: {product} at {_show(self.location_name)}"
        if kind == InventoryEventKind.STOCK_RESTOCKED:
            return (
                f"Stock restocked: {product} - "
                f"{_difference(self.new_quantity, self.old_quantity)} units added at "
                f"{_show(self.location_name)}"
            )
        if kind == InventoryEventKind.PRODUCT_SOLD:
            return (
                f"Product sold: {product} - "
                f"{_difference(self.old_quantity, self.new_quantity)} units sold from "
                f"{_show(self.location_name)}"
            )
        if kind == InventoryEventKind.BATCH_EXPIRED:
            return f"Batch expired: {product} - Batch ID {_show(self.batch_ref)}"
        if kind == InventoryEventKind.BATCH_NEAR_EXPIRY:
            return f"Batch near expiry: {product} - Batch ID {_show(self.batch_ref)}"
        if kind == InventoryEventKind.PRICE_CHANGED:
            return (
                f"Price changed for {product} - From "
                f"{_show(self.old_price)} to {_show(self.new_price)}"
            )
        if kind == InventoryEventKind.PRODUCT_CREATED:
            return f"New product created: {product}"
        return f"Product deactivated: {product}"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "product_ref": self.product_ref,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "batch_ref": self.batch_ref,
            "location_name": self.location_name,
            "old_quantity": self.old_quantity,
            "new_quantity": self.new_quantity,
            "old_price": self.old_price.to_dict() if self.old_price is not None else None,
            "new_price": self.new_price.to_dict() if self.new_price is not None else None,
            "message": self.message,
            "actor_ref": self.actor_ref,
            "timestamp": self.timestamp.isoformat(),
            "description": self.description,
        }

    def __str__(self) -> str:
        return f"[{self.timestamp.isoformat()}] {self.kind.value} - {self.description}"
