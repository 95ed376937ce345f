"""
POS Runtime Wiring
===================
Constructs a PosRuntime for a till process or a test.

This module is adapter-only glue:
- settings and clock are passed in, never read from globals
- the event bus starts with the log and alert listeners registered
- run_self_check() refuses a runtime whose wiring is incomplete
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.config.settings import PosSettings
from core.errors import ErrorKind, PosError
from core.events import EventBus
from core.primitives.refs import Ref
from core.time import Clock, SystemClock
from engines.billing.accumulator import BillAccumulator
from engines.inventory.events import InventoryChangeEvent, stock_level_kind
from engines.inventory.subscriptions import AlertListener, LogListener
from engines.pricing.policies import PricingPolicyKind
from engines.pricing.services import PricingSelector
from engines.stocking.policies import CATALOGUE
from engines.stocking.services import DistributionSelector

logger = logging.getLogger("pos.bootstrap")


@dataclass
class PosRuntime:
    settings: PosSettings
    clock: Clock
    pricing: PricingSelector
    bus: EventBus
    alerts: AlertListener
    log_listener: LogListener

    def new_bill(self) -> BillAccumulator:
        """Fresh accumulator in the runtime currency. One per sale."""
        return BillAccumulator(currency=self.settings.currency, clock=self.clock)

    def new_distribution_selector(self) -> DistributionSelector:
        """Fresh selector for one product-creation flow."""
        return DistributionSelector(CATALOGUE)

    def publish(self, event: InventoryChangeEvent) -> dict:
        return self.bus.publish(event)

    def report_stock_level(
        self,
        *,
        product_ref: Ref,
        product_code: str,
        product_name: str,
        location_name: str,
        old_quantity: int,
        new_quantity: int,
        batch_ref: Optional[Ref] = None,
    ) -> Optional[InventoryChangeEvent]:
        """
        Publish STOCK_OUT / STOCK_LOW when new_quantity crosses the
        configured threshold. Returns the published event, or None.
        """
        kind = stock_level_kind(new_quantity, self.settings.low_stock_threshold)
        if kind is None:
            return None
        event = InventoryChangeEvent.create(
            self.clock,
            kind,
            product_ref=product_ref,
            location_name=location_name,
            product_code=product_code,
            product_name=product_name,
            batch_ref=batch_ref,
            old_quantity=old_quantity,
            new_quantity=new_quantity,
        )
        self.bus.publish(event)
        return event


def build_runtime(
    settings: Optional[PosSettings] = None,
    clock: Optional[Clock] = None,
) -> PosRuntime:
    settings = settings or PosSettings()
    clock = clock or SystemClock()

    logging.getLogger("pos").setLevel(settings.log_level)

    pricing = PricingSelector.from_tiers(settings.pricing_tiers)
    alerts = AlertListener(capacity=settings.alert_capacity)
    log_listener = LogListener()

    bus = EventBus()
    bus.register(log_listener)
    bus.register(alerts)

    logger.info(
        f"POS runtime built: currency={settings.currency}, "
        f"{pricing.policy_count} pricing policies, "
        f"{bus.listener_count} listeners"
    )
    return PosRuntime(
        settings=settings,
        clock=clock,
        pricing=pricing,
        bus=bus,
        alerts=alerts,
        log_listener=log_listener,
    )


# ══════════════════════════════════════════════════════════════
# SELF-CHECK
# ══════════════════════════════════════════════════════════════

def _fail(detail: str) -> None:
    raise PosError(
        ErrorKind.INVALID_STATE,
        f"Runtime self-check failed: {detail}",
        code="SELF_CHECK_FAILED",
    )


def run_self_check(runtime: PosRuntime) -> None:
    """
    Verify the wiring at startup.

    Check order:
    1. Regular pricing is the first registered policy
    2. Distribution catalogue holds the three policies
    3. Log and alert listeners are registered on the bus

    No auto-fix. The first failing check raises.
    """
    logger.info("POS runtime self-check starting")

    policies = runtime.pricing.policies
    if not policies or policies[0].kind != PricingPolicyKind.REGULAR:
        _fail("Regular pricing must be registered first.")
    logger.info("✓ Regular pricing registered first.")

    catalogue = runtime.new_distribution_selector().catalogue
    if len(catalogue) != 3:
        _fail(f"Expected 3 distribution policies, found {len(catalogue)}.")
    logger.info("✓ Distribution catalogue complete.")

    if not runtime.bus.is_registered(runtime.log_listener):
        _fail("Log listener is not registered.")
    if not runtime.bus.is_registered(runtime.alerts):
        _fail("Alert listener is not registered.")
    logger.info("✓ Inventory listeners registered.")

    logger.info("POS runtime self-check passed")
