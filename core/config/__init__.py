"""
POS Core Config — Public API
===============================
Explicit, validated runtime settings.
Doctrine: no configuration singleton.
"""

from core.config.settings import (
    DEFAULT_PRICING_TIERS,
    TIER_BULK_DISCOUNT,
    TIER_VIP,
    InMemorySettingsStore,
    PosSettings,
    PricingTier,
    SettingsStore,
)

__all__ = [
    "DEFAULT_PRICING_TIERS",
    "TIER_BULK_DISCOUNT",
    "TIER_VIP",
    "InMemorySettingsStore",
    "PosSettings",
    "PricingTier",
    "SettingsStore",
]
