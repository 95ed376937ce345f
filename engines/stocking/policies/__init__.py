"""
POS Stocking Engine — Distribution Policies
=============================================
How a newly stocked quantity is split across warehouse, shelf and
the online channel.

    PHYSICAL     warehouse = floor(total × 0.8), shelf = rest, online = 0
    ONLINE_ONLY  online = total
    HYBRID       physical = floor(total × 0.6)
                 shelf = floor(physical × 0.25), warehouse = physical − shelf
                 online = total − physical

Splits truncate; the complementary bucket takes the remainder, so the
three buckets always sum exactly to the input.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from enum import Enum

from core.errors import ErrorKind, PosError

PHYSICAL_WAREHOUSE_RATIO = Decimal("0.8")
HYBRID_PHYSICAL_RATIO = Decimal("0.6")
HYBRID_SHELF_RATIO = Decimal("0.25")


class DistributionPolicyKind(Enum):
    PHYSICAL = "PHYSICAL"
    ONLINE_ONLY = "ONLINE_ONLY"
    HYBRID = "HYBRID"


# ══════════════════════════════════════════════════════════════
# DISTRIBUTION RESULT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InventoryDistribution:
    """
    Initial stock placement for one product.

    physical_quantity is the warehouse (back-store) portion.
    """
    physical_quantity: int
    shelf_quantity: int
    online_quantity: int
    requires_shelf_configuration: bool
    summary: str

    def __post_init__(self):
        for field_name in ("physical_quantity", "shelf_quantity", "online_quantity"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or value < 0:
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"{field_name} must be a non-negative integer, got {value!r}.",
                )

    @property
    def total_quantity(self) -> int:
        return self.physical_quantity + self.shelf_quantity + self.online_quantity

    def to_dict(self) -> dict:
        return {
            "physical_quantity": self.physical_quantity,
            "shelf_quantity": self.shelf_quantity,
            "online_quantity": self.online_quantity,
            "requires_shelf_configuration": self.requires_shelf_configuration,
            "summary": self.summary,
        }


def _floor_share(quantity: int, ratio: Decimal) -> int:
    return int((Decimal(quantity) * ratio).to_integral_value(rounding=ROUND_FLOOR))


def _percent_of(part: int, total: int) -> str:
    if total == 0:
        return "0%"
    return f"{Decimal(part) * 100 / Decimal(total):.0f}%"


# ══════════════════════════════════════════════════════════════
# DISTRIBUTION POLICY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DistributionPolicy:
    kind: DistributionPolicyKind

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self.kind]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self.kind]

    @property
    def requires_physical_storage(self) -> bool:
        return self.kind != DistributionPolicyKind.ONLINE_ONLY

    def configure(self, total_quantity: int) -> InventoryDistribution:
        if (
            not isinstance(total_quantity, int)
            or isinstance(total_quantity, bool)
            or total_quantity < 0
        ):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"total_quantity must be a non-negative integer, got {total_quantity!r}.",
            )

        if self.kind == DistributionPolicyKind.PHYSICAL:
            return self._configure_physical(total_quantity)
        if self.kind == DistributionPolicyKind.ONLINE_ONLY:
            return self._configure_online_only(total_quantity)
        return self._configure_hybrid(total_quantity)

    def _configure_physical(self, total: int) -> InventoryDistribution:
        warehouse = _floor_share(total, PHYSICAL_WAREHOUSE_RATIO)
        shelf = total - warehouse
        summary = (
            "Physical Store Distribution:\n"
            f"- Warehouse Stock: {warehouse} units ({_percent_of(warehouse, total)})\n"
            f"- Shelf Display: {shelf} units ({_percent_of(shelf, total)})\n"
            "- Online Availability: 0 units\n"
            "Note: Requires shelf capacity configuration"
        )
        return InventoryDistribution(
            physical_quantity=warehouse,
            shelf_quantity=shelf,
            online_quantity=0,
            requires_shelf_configuration=True,
            summary=summary,
        )

    def _configure_online_only(self, total: int) -> InventoryDistribution:
        summary = (
            "Online Store Distribution:\n"
            "- Warehouse Stock: 0 units\n"
            "- Shelf Display: 0 units\n"
            f"- Online Availability: {total} units (100%)\n"
            "Note: No physical storage or shelf configuration required"
        )
        return InventoryDistribution(
            physical_quantity=0,
            shelf_quantity=0,
            online_quantity=total,
            requires_shelf_configuration=False,
            summary=summary,
        )

    def _configure_hybrid(self, total: int) -> InventoryDistribution:
        total_physical = _floor_share(total, HYBRID_PHYSICAL_RATIO)
        shelf = _floor_share(total_physical, HYBRID_SHELF_RATIO)
        warehouse = total_physical - shelf
        online = total - total_physical
        summary = (
            "Hybrid Store Distribution:\n"
            f"- Warehouse Stock: {warehouse} units ({_percent_of(warehouse, total)})\n"
            f"- Shelf Display: {shelf} units ({_percent_of(shelf, total)})\n"
            f"- Online Availability: {online} units ({_percent_of(online, total)})\n"
            "Note: Requires shelf capacity configuration for physical portion"
        )
        return InventoryDistribution(
            physical_quantity=warehouse,
            shelf_quantity=shelf,
            online_quantity=online,
            requires_shelf_configuration=True,
            summary=summary,
        )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "display_name": self.display_name,
            "requires_physical_storage": self.requires_physical_storage,
        }


_DISPLAY_NAMES = {
    DistributionPolicyKind.PHYSICAL: "Physical Store Only",
    DistributionPolicyKind.ONLINE_ONLY: "Online Store Only",
    DistributionPolicyKind.HYBRID: "Hybrid (Physical + Online)",
}

_DESCRIPTIONS = {
    DistributionPolicyKind.PHYSICAL: (
        "Product will be stored in physical locations with shelf management. "
        "Requires shelf capacity setup and physical inventory tracking."
    ),
    DistributionPolicyKind.ONLINE_ONLY: (
        "Product will be available exclusively online. "
        "No physical storage or shelf management required."
    ),
    DistributionPolicyKind.HYBRID: (
        "Product will be available both in physical store and online. "
        "Inventory is distributed across channels with shelf management "
        "for physical portion."
    ),
}

PHYSICAL = DistributionPolicy(DistributionPolicyKind.PHYSICAL)
ONLINE_ONLY = DistributionPolicy(DistributionPolicyKind.ONLINE_ONLY)
HYBRID = DistributionPolicy(DistributionPolicyKind.HYBRID)

CATALOGUE = (PHYSICAL, ONLINE_ONLY, HYBRID)
