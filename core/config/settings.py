"""
POS Core Config — Explicit Settings
=====================================
Doctrine: no configuration singleton. The composition root builds a
PosSettings once and hands it to whatever needs it.

Settings may come from a mapping (file, admin screen, test) or from
environment variables. Either way they are validated here, so engines
never see a malformed tier or a negative capacity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol, Tuple

from core.errors import ErrorKind, PosError
from core.primitives.money import to_decimal


TIER_BULK_DISCOUNT = "BULK_DISCOUNT"
TIER_VIP = "VIP"
VALID_TIER_KINDS = frozenset({TIER_BULK_DISCOUNT, TIER_VIP})

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


# ══════════════════════════════════════════════════════════════
# PRICING TIER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PricingTier:
    """
    Admin-configured discount tier.

    kind:                 BULK_DISCOUNT | VIP
    min_quantity:         Threshold for BULK_DISCOUNT (ignored for VIP)
    discount_percentage:  0–100
    """

    kind: str
    discount_percentage: Decimal
    min_quantity: int = 0

    def __post_init__(self) -> None:
        if self.kind not in VALID_TIER_KINDS:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Pricing tier kind '{self.kind}' not valid. "
                f"Must be one of: {sorted(VALID_TIER_KINDS)}",
            )
        pct = to_decimal(self.discount_percentage, "discount_percentage")
        if not Decimal("0") <= pct <= Decimal("100"):
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
        if self.kind == TIER_BULK_DISCOUNT and self.min_quantity < 1:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "BULK_DISCOUNT tier requires min_quantity >= 1.",
            )

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "discount_percentage": str(self.discount_percentage),
            "min_quantity": self.min_quantity,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PricingTier:
        return cls(
            kind=str(data["kind"]).upper(),
            discount_percentage=data["discount_percentage"],
            min_quantity=int(data.get("min_quantity", 0)),
        )


DEFAULT_PRICING_TIERS: Tuple[PricingTier, ...] = (
    PricingTier(kind=TIER_BULK_DISCOUNT, min_quantity=10, discount_percentage=Decimal("5")),
    PricingTier(kind=TIER_BULK_DISCOUNT, min_quantity=25, discount_percentage=Decimal("10")),
    PricingTier(kind=TIER_VIP, discount_percentage=Decimal("15")),
)


# ══════════════════════════════════════════════════════════════
# SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PosSettings:
    """Runtime settings for one POS deployment."""

    currency: str = "LKR"
    alert_capacity: int = 50
    low_stock_threshold: int = 10
    log_level: str = "INFO"
    pricing_tiers: Tuple[PricingTier, ...] = field(
        default_factory=lambda: DEFAULT_PRICING_TIERS
    )

    def __post_init__(self) -> None:
        if (
            not self.currency
            or not isinstance(self.currency, str)
            or len(self.currency) != 3
            or not (self.currency.isascii() and self.currency.isalpha())
        ):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"currency must be 3-letter ISO 4217 code, got '{self.currency}'.",
            )
        object.__setattr__(self, "currency", self.currency.upper())
        _require_positive_int(self.alert_capacity, "alert_capacity")
        if not isinstance(self.low_stock_threshold, int) or self.low_stock_threshold < 0:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                "low_stock_threshold must be a non-negative integer.",
            )
        level = str(self.log_level).upper()
        if level not in VALID_LOG_LEVELS:
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"log_level '{self.log_level}' not valid. "
                f"Must be one of: {sorted(VALID_LOG_LEVELS)}",
            )
        object.__setattr__(self, "log_level", level)
        tiers = tuple(self.pricing_tiers)
        for tier in tiers:
            if not isinstance(tier, PricingTier):
                raise PosError(
                    ErrorKind.INVALID_ARGUMENT,
                    f"pricing_tiers must contain PricingTier, "
                    f"got {type(tier).__name__}.",
                )
        object.__setattr__(self, "pricing_tiers", tiers)

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "alert_capacity": self.alert_capacity,
            "low_stock_threshold": self.low_stock_threshold,
            "log_level": self.log_level,
            "pricing_tiers": [t.to_dict() for t in self.pricing_tiers],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PosSettings:
        """Build settings from a plain mapping. Missing keys keep defaults."""
        kwargs: dict = {}
        if "currency" in data:
            kwargs["currency"] = str(data["currency"])
        if "alert_capacity" in data:
            kwargs["alert_capacity"] = _parse_int(data["alert_capacity"], "alert_capacity")
        if "low_stock_threshold" in data:
            kwargs["low_stock_threshold"] = _parse_int(
                data["low_stock_threshold"], "low_stock_threshold"
            )
        if "log_level" in data:
            kwargs["log_level"] = str(data["log_level"])
        if "pricing_tiers" in data:
            kwargs["pricing_tiers"] = tuple(
                PricingTier.from_dict(t) for t in data["pricing_tiers"]
            )
        return cls(**kwargs)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str],
        prefix: str = "POS_",
    ) -> PosSettings:
        """
        Build settings from environment-style variables.

        POS_CURRENCY, POS_ALERT_CAPACITY, POS_LOW_STOCK_THRESHOLD,
        POS_LOG_LEVEL. Pricing tiers are not read from the environment.
        """
        keys = ("currency", "alert_capacity", "low_stock_threshold", "log_level")
        data = {}
        for key in keys:
            raw = environ.get(f"{prefix}{key.upper()}")
            if raw is not None and raw.strip():
                data[key] = raw.strip()
        return cls.from_dict(data)


# ══════════════════════════════════════════════════════════════
# SETTINGS STORE PROTOCOL
# ══════════════════════════════════════════════════════════════

class SettingsStore(Protocol):
    """Where a deployment keeps its settings (database, file, memory)."""

    def load(self) -> PosSettings:
        ...  # pragma: no cover

    def save(self, settings: PosSettings) -> None:
        ...  # pragma: no cover


class InMemorySettingsStore:
    """Simple in-memory settings store for testing and bootstrap."""

    def __init__(self, settings: Optional[PosSettings] = None) -> None:
        self._settings = settings or PosSettings()

    def load(self) -> PosSettings:
        return self._settings

    def save(self, settings: PosSettings) -> None:
        if not isinstance(settings, PosSettings):
            raise PosError(
                ErrorKind.INVALID_ARGUMENT,
                f"Expected PosSettings, got {type(settings).__name__}.",
            )
        self._settings = settings


# ══════════════════════════════════════════════════════════════
# HELPERS
# ══════════════════════════════════════════════════════════════

def _parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise PosError(ErrorKind.INVALID_ARGUMENT, f"{field_name} must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} must be an integer, got '{value}'.",
        ) from None


def _require_positive_int(value: Any, field_name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise PosError(
            ErrorKind.INVALID_ARGUMENT,
            f"{field_name} must be a positive integer, got {value!r}.",
        )
